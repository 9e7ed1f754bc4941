# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass, field
from typing import Any, Dict

NO_DIMENSION_ROLLUP = "NoDimensionRollup"
SINGLE_DIMENSION_ROLLUP = "SingleDimensionRollup"
ZERO_AND_SINGLE_DIMENSION_ROLLUP = "ZeroAndSingleDimensionRollup"


@dataclass
class MetricDataPoint:
    """A single observation of a metric, flattened for EMF grouping.

    ``timestamp_ms`` of 0 means the timestamp is unset. ``retained`` is False when
    extraction decided the point must not be emitted.
    """

    name: str
    value: Any
    unit: str = ""
    timestamp_ms: int = 0
    labels: Dict[str, str] = field(default_factory=dict)
    retained: bool = True


@dataclass(frozen=True)
class GroupIdentity:
    """The non-label part of a grouping key. Every field must match for two points to share a bucket."""

    namespace: str
    timestamp_ms: int = 0
    log_group: str = ""
    log_stream: str = ""
    metric_data_type: str = ""
    dimension_rollup_option: str = ZERO_AND_SINGLE_DIMENSION_ROLLUP


@dataclass(frozen=True)
class CWMetricMetadata:
    group_identity: GroupIdentity
    instrumentation_scope_name: str = ""
    receiver: str = ""


@dataclass
class MetricInfo:
    value: Any
    unit: str


@dataclass(frozen=True)
class MetricDescriptor:
    """Per metric name unit override. ``overwrite`` forces the unit even when the data carries one."""

    metric_name: str
    unit: str
    overwrite: bool = False
