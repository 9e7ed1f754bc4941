# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import time
from typing import Any, Dict, List

from amazon.opentelemetry.emf.metrics._data_points import OTEL_LIB_DIMENSION_KEY
from amazon.opentelemetry.emf.metrics._metric_types import (
    SINGLE_DIMENSION_ROLLUP,
    ZERO_AND_SINGLE_DIMENSION_ROLLUP,
)
from amazon.opentelemetry.emf.metrics.grouped_metric import GroupedMetricBucket


def _dimension_sets(label_names: List[str], rollup_option: str) -> List[List[str]]:
    """
    Build the EMF dimension sets for a label set.

    The full label set is always included. Rollup adds one set per single label
    and, for ZeroAndSingleDimensionRollup, the empty set. OTelLib is kept in every
    rolled up set.
    """
    dimensions = sorted(name for name in label_names if name != OTEL_LIB_DIMENSION_KEY)
    prefix = [OTEL_LIB_DIMENSION_KEY] if OTEL_LIB_DIMENSION_KEY in label_names else []

    dimension_sets = []
    if dimensions or prefix:
        dimension_sets.append(prefix + dimensions)

    if rollup_option == ZERO_AND_SINGLE_DIMENSION_ROLLUP:
        dimension_sets.append(list(prefix))
    if rollup_option in (SINGLE_DIMENSION_ROLLUP, ZERO_AND_SINGLE_DIMENSION_ROLLUP) and len(dimensions) > 1:
        for name in dimensions:
            dimension_sets.append(prefix + [name])

    unique_sets = []
    for dimension_set in dimension_sets:
        if dimension_set not in unique_sets:
            unique_sets.append(dimension_set)
    return unique_sets


def translate_grouped_metric_to_emf(bucket: GroupedMetricBucket) -> Dict[str, Any]:
    """
    Create the EMF log dictionary of a grouped metric bucket.

    https://docs.aws.amazon.com/AmazonCloudWatch/latest/monitoring/CloudWatch_Embedded_Metric_Format_Specification.html

    Args:
        bucket: The grouped metric bucket

    Returns:
        The EMF log, ready to be JSON encoded
    """
    identity = bucket.metadata.group_identity
    timestamp_ms = identity.timestamp_ms or int(time.time() * 1000)

    emf_log: Dict[str, Any] = {"_aws": {"Timestamp": timestamp_ms, "CloudWatchMetrics": []}}
    emf_log["Version"] = "1"

    for name, value in bucket.labels.items():
        emf_log[name] = value

    metric_definitions = []
    for metric_name, metric in bucket.metrics.items():
        emf_log[metric_name] = metric.value
        metric_data = {"Name": metric_name}
        if metric.unit:
            metric_data["Unit"] = metric.unit
        metric_definitions.append(metric_data)

    if metric_definitions:
        emf_log["_aws"]["CloudWatchMetrics"].append(
            {
                "Namespace": identity.namespace,
                "Dimensions": _dimension_sets(list(bucket.labels), identity.dimension_rollup_option),
                "Metrics": metric_definitions,
            }
        )

    return emf_log
