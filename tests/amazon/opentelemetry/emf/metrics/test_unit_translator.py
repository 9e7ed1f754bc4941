# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import unittest

from amazon.opentelemetry.emf.metrics._metric_types import MetricDescriptor
from amazon.opentelemetry.emf.metrics._unit_translator import translate_unit


class TestTranslateUnit(unittest.TestCase):
    """Test unit translation."""

    def test_unit_mapping(self):
        """Test known OTel units are expanded."""
        self.assertEqual(translate_unit("m", "ms", {}), "Milliseconds")
        self.assertEqual(translate_unit("m", "s", {}), "Seconds")
        self.assertEqual(translate_unit("m", "us", {}), "Microseconds")
        self.assertEqual(translate_unit("m", "By", {}), "Bytes")
        self.assertEqual(translate_unit("m", "Bi", {}), "Bits")

    def test_unknown_unit_passes_through(self):
        self.assertEqual(translate_unit("m", "1", {}), "1")
        self.assertEqual(translate_unit("m", "Count", {}), "Count")
        self.assertEqual(translate_unit("m", "ns", {}), "ns")
        self.assertEqual(translate_unit("m", "", {}), "")

    def test_descriptor_used_when_unit_empty(self):
        descriptors = {"requests": MetricDescriptor("requests", "Count", overwrite=False)}

        self.assertEqual(translate_unit("requests", "", descriptors), "Count")
        # The data unit wins without overwrite
        self.assertEqual(translate_unit("requests", "ms", descriptors), "Milliseconds")

    def test_descriptor_overwrite(self):
        descriptors = {"requests": MetricDescriptor("requests", "Count", overwrite=True)}

        self.assertEqual(translate_unit("requests", "1", descriptors), "Count")
        self.assertEqual(translate_unit("requests", "ms", descriptors), "Count")
        self.assertEqual(translate_unit("requests", "", descriptors), "Count")

    def test_descriptor_for_other_metric_ignored(self):
        descriptors = {"requests": MetricDescriptor("requests", "Count", overwrite=True)}

        self.assertEqual(translate_unit("latency", "ms", descriptors), "Milliseconds")


if __name__ == "__main__":
    unittest.main()
