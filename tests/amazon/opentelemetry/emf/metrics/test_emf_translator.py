# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json
import time
import unittest

from amazon.opentelemetry.emf.metrics._emf_translator import _dimension_sets, translate_grouped_metric_to_emf
from amazon.opentelemetry.emf.metrics._metric_types import CWMetricMetadata, GroupIdentity, MetricInfo
from amazon.opentelemetry.emf.metrics.grouped_metric import GroupedMetricBucket


def create_bucket(labels, metrics, timestamp_ms=1234, rollup="NoDimensionRollup"):
    identity = GroupIdentity(
        namespace="TestNamespace", timestamp_ms=timestamp_ms, log_group="g", log_stream="s",
        dimension_rollup_option=rollup,
    )
    bucket = GroupedMetricBucket(labels, CWMetricMetadata(identity))
    bucket.metrics.update(metrics)
    return bucket


class TestEmfTranslator(unittest.TestCase):
    """Test EMF log creation from grouped metrics."""

    def test_translate_bucket(self):
        bucket = create_bucket(
            {"env": "prod", "host": "a"},
            {"latency": MetricInfo(12.5, "Milliseconds"), "requests": MetricInfo(3, "")},
        )

        emf_log = translate_grouped_metric_to_emf(bucket)

        self.assertEqual(
            emf_log,
            {
                "_aws": {
                    "Timestamp": 1234,
                    "CloudWatchMetrics": [
                        {
                            "Namespace": "TestNamespace",
                            "Dimensions": [["env", "host"]],
                            "Metrics": [{"Name": "latency", "Unit": "Milliseconds"}, {"Name": "requests"}],
                        }
                    ],
                },
                "Version": "1",
                "env": "prod",
                "host": "a",
                "latency": 12.5,
                "requests": 3,
            },
        )
        json.dumps(emf_log)

    def test_histogram_value(self):
        value = {"Count": 5, "Sum": 25.0, "Min": 1.0, "Max": 10.0}
        bucket = create_bucket({}, {"latency": MetricInfo(value, "Milliseconds")})

        emf_log = translate_grouped_metric_to_emf(bucket)

        self.assertEqual(emf_log["latency"], value)

    def test_zero_timestamp_uses_current_time(self):
        before = int(time.time() * 1000)

        emf_log = translate_grouped_metric_to_emf(create_bucket({}, {"m": MetricInfo(1, "")}, timestamp_ms=0))

        self.assertGreaterEqual(emf_log["_aws"]["Timestamp"], before)

    def test_empty_bucket_has_no_metric_directive(self):
        emf_log = translate_grouped_metric_to_emf(create_bucket({"env": "prod"}, {}))

        self.assertEqual(emf_log["_aws"]["CloudWatchMetrics"], [])


class TestDimensionSets(unittest.TestCase):
    """Test dimension rollup."""

    def test_no_rollup(self):
        self.assertEqual(_dimension_sets(["b", "a"], "NoDimensionRollup"), [["a", "b"]])

    def test_single_dimension_rollup(self):
        self.assertEqual(_dimension_sets(["b", "a"], "SingleDimensionRollup"), [["a", "b"], ["a"], ["b"]])

    def test_zero_and_single_dimension_rollup(self):
        self.assertEqual(
            _dimension_sets(["OTelLib", "b", "a"], "ZeroAndSingleDimensionRollup"),
            [["OTelLib", "a", "b"], ["OTelLib"], ["OTelLib", "a"], ["OTelLib", "b"]],
        )

    def test_single_label_not_duplicated(self):
        self.assertEqual(_dimension_sets(["a"], "SingleDimensionRollup"), [["a"]])

    def test_no_labels(self):
        self.assertEqual(_dimension_sets([], "NoDimensionRollup"), [])
        self.assertEqual(_dimension_sets([], "ZeroAndSingleDimensionRollup"), [[]])


if __name__ == "__main__":
    unittest.main()
