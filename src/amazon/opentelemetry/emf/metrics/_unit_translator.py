# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Mapping

from amazon.opentelemetry.emf.metrics._metric_types import MetricDescriptor

# OTel to CloudWatch unit mapping
UNIT_MAPPING = {
    "ms": "Milliseconds",
    "s": "Seconds",
    "us": "Microseconds",
    "By": "Bytes",
    "Bi": "Bits",
}


def translate_unit(metric_name: str, unit: str, descriptors: Mapping[str, MetricDescriptor]) -> str:
    """
    Resolve the CloudWatch unit for a metric.

    A descriptor for the metric wins when the data has no unit or when the
    descriptor asks to overwrite it. Otherwise known OTel abbreviations are
    expanded and everything else is passed through unchanged.

    Args:
        metric_name: Name of the metric
        unit: Unit reported with the metric data
        descriptors: Metric name to descriptor lookup

    Returns:
        The unit string to emit
    """
    descriptor = descriptors.get(metric_name)
    if descriptor is not None and (unit == "" or descriptor.overwrite):
        return descriptor.unit
    return UNIT_MAPPING.get(unit, unit)
