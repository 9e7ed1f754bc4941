# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import os
import unittest
from unittest.mock import patch

from amazon.opentelemetry.emf.metrics._config import EmfExporterConfig
from amazon.opentelemetry.emf.metrics._metric_types import MetricDescriptor


class TestEmfExporterConfig(unittest.TestCase):
    """Test exporter configuration."""

    def test_defaults(self):
        config = EmfExporterConfig()

        self.assertEqual(config.namespace, "default")
        self.assertEqual(config.metric_descriptors, [])
        self.assertFalse(config.eks_fargate_container_insights_enabled)
        self.assertEqual(config.dimension_rollup_option, "ZeroAndSingleDimensionRollup")

    @patch.dict(os.environ, {"AWS_REGION": "eu-west-1"}, clear=True)
    def test_region_from_environment(self):
        self.assertEqual(EmfExporterConfig().aws_region, "eu-west-1")
        self.assertEqual(EmfExporterConfig(aws_region="us-east-2").aws_region, "us-east-2")

    @patch.dict(os.environ, {"AWS_DEFAULT_REGION": "ap-south-1"}, clear=True)
    def test_region_from_default_region(self):
        self.assertEqual(EmfExporterConfig().aws_region, "ap-south-1")

    def test_descriptors_from_dicts(self):
        config = EmfExporterConfig(
            metric_descriptors=[
                {"metric_name": "requests", "unit": "Count", "overwrite": True},
                MetricDescriptor("latency", "Milliseconds"),
            ]
        )

        self.assertEqual(
            config.descriptor_map(),
            {
                "requests": MetricDescriptor("requests", "Count", True),
                "latency": MetricDescriptor("latency", "Milliseconds", False),
            },
        )

    def test_invalid_descriptors_dropped(self):
        with self.assertLogs("amazon.opentelemetry.emf.metrics._config", level="WARNING") as logs:
            config = EmfExporterConfig(
                metric_descriptors=[
                    {"metric_name": "", "unit": "Count"},
                    {"metric_name": "bad", "unit": "furlongs"},
                    {"metric_name": "good", "unit": "Percent"},
                ]
            )

        self.assertEqual(list(config.descriptor_map()), ["good"])
        self.assertEqual(len(logs.records), 1)
        self.assertIn("bad", logs.output[0])

    def test_invalid_rollup_option(self):
        with self.assertRaises(ValueError):
            EmfExporterConfig(dimension_rollup_option="AllDimensions")


if __name__ == "__main__":
    unittest.main()
