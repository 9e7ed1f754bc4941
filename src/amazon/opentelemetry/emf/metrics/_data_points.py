# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import math
from typing import Any, Dict, List, Optional

from opentelemetry.sdk.metrics.export import ExponentialHistogram, Gauge, Histogram, Metric, Sum

from amazon.opentelemetry.emf.metrics._metric_types import MetricDataPoint

OTEL_LIB_DIMENSION_KEY = "OTelLib"


class ExtractionError(Exception):
    """Raised when data points cannot be extracted from a metric."""


def metric_data_type(metric: Metric) -> str:
    return type(metric.data).__name__


def _normalize_timestamp(time_unix_nano: Optional[int]) -> int:
    if not time_unix_nano:
        return 0
    return time_unix_nano // 1_000_000


def _create_labels(attributes: Optional[Dict[str, Any]], instrumentation_scope_name: str) -> Dict[str, str]:
    labels = {key: str(value) for key, value in (attributes or {}).items()}
    if instrumentation_scope_name:
        labels[OTEL_LIB_DIMENSION_KEY] = instrumentation_scope_name
    return labels


def _is_finite(value: Any) -> bool:
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def _exp_histogram_value(data_point: Any) -> Dict[str, Any]:
    """
    Convert exponential buckets to their midpoint values.

    Ref:
        https://github.com/open-telemetry/opentelemetry-collector-contrib/issues/22626
    """
    values = []
    counts = []
    # base = 2^(2^(-scale))
    base = math.pow(2, math.pow(2, float(-data_point.scale)))

    positive = getattr(data_point, "positive", None)
    if positive is not None and positive.bucket_counts:
        for i, count in enumerate(positive.bucket_counts):
            index = i + positive.offset
            if count > 0:
                values.append((math.pow(base, float(index)) + math.pow(base, float(index + 1))) / 2)
                counts.append(float(count))

    zero_count = getattr(data_point, "zero_count", 0)
    if zero_count > 0:
        values.append(0)
        counts.append(float(zero_count))

    negative = getattr(data_point, "negative", None)
    if negative is not None and negative.bucket_counts:
        for i, count in enumerate(negative.bucket_counts):
            index = i + negative.offset
            if count > 0:
                values.append(-(math.pow(base, float(index)) + math.pow(base, float(index + 1))) / 2)
                counts.append(float(count))

    return {
        "Values": values,
        "Counts": counts,
        "Count": data_point.count,
        "Sum": data_point.sum,
        "Max": data_point.max,
        "Min": data_point.min,
    }


def get_data_points(metric: Metric, instrumentation_scope_name: str = "") -> List[MetricDataPoint]:
    """
    Flatten the data points of an OTel SDK metric.

    Number points with a NaN or infinite value are returned with ``retained`` set
    to False.

    Args:
        metric: The SDK metric with Gauge, Sum, Histogram or ExponentialHistogram data
        instrumentation_scope_name: Scope name added as the OTelLib label when set

    Returns:
        The flattened data points, in the order of the metric data

    Raises:
        ExtractionError: If the metric data type is not supported
    """
    data = metric.data
    if not isinstance(data, (Gauge, Sum, Histogram, ExponentialHistogram)):
        raise ExtractionError(f"Unsupported metric data type {type(data).__name__} for metric {metric.name}")

    unit = metric.unit or ""
    data_points = []

    for dp in data.data_points:
        labels = _create_labels(dp.attributes, instrumentation_scope_name)
        timestamp_ms = _normalize_timestamp(dp.time_unix_nano)

        retained = True
        if isinstance(data, Histogram):
            value = {"Count": dp.count, "Sum": dp.sum, "Min": dp.min, "Max": dp.max}
        elif isinstance(data, ExponentialHistogram):
            value = _exp_histogram_value(dp)
        else:
            value = dp.value
            retained = _is_finite(value)

        data_points.append(
            MetricDataPoint(
                name=metric.name,
                value=value,
                unit=unit,
                timestamp_ms=timestamp_ms,
                labels=labels,
                retained=retained,
            )
        )

    return data_points
