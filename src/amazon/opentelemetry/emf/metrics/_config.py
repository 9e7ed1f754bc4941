# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import os
from typing import Dict, List, Optional, Union

from amazon.opentelemetry.emf.metrics._metric_types import (
    NO_DIMENSION_ROLLUP,
    SINGLE_DIMENSION_ROLLUP,
    ZERO_AND_SINGLE_DIMENSION_ROLLUP,
    MetricDescriptor,
)

logger = logging.getLogger(__name__)

# CloudWatch EMF supported units
# Ref: https://docs.aws.amazon.com/AmazonCloudWatch/latest/APIReference/API_MetricDatum.html
EMF_SUPPORTED_UNITS = {
    "Seconds",
    "Microseconds",
    "Milliseconds",
    "Bytes",
    "Kilobytes",
    "Megabytes",
    "Gigabytes",
    "Terabytes",
    "Bits",
    "Kilobits",
    "Megabits",
    "Gigabits",
    "Terabits",
    "Percent",
    "Count",
    "Bytes/Second",
    "Kilobytes/Second",
    "Megabytes/Second",
    "Gigabytes/Second",
    "Terabytes/Second",
    "Bits/Second",
    "Kilobits/Second",
    "Megabits/Second",
    "Gigabits/Second",
    "Terabits/Second",
    "Count/Second",
    "None",
}

DIMENSION_ROLLUP_OPTIONS = {NO_DIMENSION_ROLLUP, SINGLE_DIMENSION_ROLLUP, ZERO_AND_SINGLE_DIMENSION_ROLLUP}


class EmfExporterConfig:
    """Settings shared by the metric grouper and the CloudWatch EMF exporter."""

    def __init__(
        self,
        namespace: str = "default",
        log_group_name: str = "",
        log_stream_name: str = "",
        aws_region: Optional[str] = None,
        metric_descriptors: Optional[List[Union[MetricDescriptor, Dict]]] = None,
        eks_fargate_container_insights_enabled: bool = False,
        dimension_rollup_option: str = ZERO_AND_SINGLE_DIMENSION_ROLLUP,
    ):
        """
        Initialize the exporter configuration.

        Args:
            namespace: CloudWatch namespace for metrics
            log_group_name: Log group name, may contain {Placeholder} patterns
            log_stream_name: Log stream name, may contain {Placeholder} patterns
            aws_region: AWS region (AWS_REGION or AWS_DEFAULT_REGION if None)
            metric_descriptors: Unit overrides, as MetricDescriptor or dicts
            eks_fargate_container_insights_enabled: Whether to add the kubernetes metadata label
            dimension_rollup_option: One of NoDimensionRollup, SingleDimensionRollup,
                ZeroAndSingleDimensionRollup
        """
        if dimension_rollup_option not in DIMENSION_ROLLUP_OPTIONS:
            raise ValueError(f"Invalid dimension rollup option: {dimension_rollup_option}")

        self.namespace = namespace
        self.log_group_name = log_group_name
        self.log_stream_name = log_stream_name
        self.aws_region = aws_region or os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")
        self.eks_fargate_container_insights_enabled = eks_fargate_container_insights_enabled
        self.dimension_rollup_option = dimension_rollup_option
        self.metric_descriptors = self._validate_descriptors(metric_descriptors or [])

    @staticmethod
    def _validate_descriptors(descriptors: List[Union[MetricDescriptor, Dict]]) -> List[MetricDescriptor]:
        valid_descriptors = []
        for descriptor in descriptors:
            if isinstance(descriptor, dict):
                descriptor = MetricDescriptor(
                    metric_name=descriptor.get("metric_name", ""),
                    unit=descriptor.get("unit", ""),
                    overwrite=bool(descriptor.get("overwrite", False)),
                )
            if not descriptor.metric_name:
                continue
            if descriptor.unit not in EMF_SUPPORTED_UNITS:
                logger.warning(
                    "Dropped unsupported metric descriptor %s with unit %s", descriptor.metric_name, descriptor.unit
                )
                continue
            valid_descriptors.append(descriptor)
        return valid_descriptors

    def descriptor_map(self) -> Dict[str, MetricDescriptor]:
        return {descriptor.metric_name: descriptor for descriptor in self.metric_descriptors}
