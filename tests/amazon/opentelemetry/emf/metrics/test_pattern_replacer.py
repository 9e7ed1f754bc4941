# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import unittest

from amazon.opentelemetry.emf.metrics._pattern_replacer import replace_patterns


class TestReplacePatterns(unittest.TestCase):
    """Test log group and log stream template resolution."""

    def test_no_patterns(self):
        self.assertEqual(replace_patterns("/aws/metrics", {}), ("/aws/metrics", True))

    def test_replace_from_label(self):
        result = replace_patterns("/aws/ecs/{ClusterName}/{TaskId}", {"ClusterName": "prod", "TaskId": "t-1"})

        self.assertEqual(result, ("/aws/ecs/prod/t-1", True))

    def test_replace_from_resource_attribute(self):
        result = replace_patterns("/aws/ecs/{ClusterName}", {"aws.ecs.cluster.name": "prod"})

        self.assertEqual(result, ("/aws/ecs/prod", True))

    def test_missing_value_becomes_undefined(self):
        result = replace_patterns("/aws/ecs/{ClusterName}/{TaskId}", {"ClusterName": "prod"})

        self.assertEqual(result, ("/aws/ecs/prod/undefined", False))

    def test_empty_value_becomes_undefined(self):
        result = replace_patterns("{NodeName}", {"NodeName": ""})

        self.assertEqual(result, ("undefined", False))

    def test_unknown_placeholder_untouched(self):
        self.assertEqual(replace_patterns("/aws/{Unknown}", {"Unknown": "x"}), ("/aws/{Unknown}", True))


if __name__ == "__main__":
    unittest.main()
