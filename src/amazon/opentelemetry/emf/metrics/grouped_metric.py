# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import logging
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from opentelemetry.sdk.metrics.export import Metric

from amazon.opentelemetry.emf.metrics._config import EmfExporterConfig
from amazon.opentelemetry.emf.metrics._data_points import get_data_points
from amazon.opentelemetry.emf.metrics._grouped_metric_key import GroupedMetricKey, grouped_metric_key
from amazon.opentelemetry.emf.metrics._kubernetes_metadata import add_kubernetes_wrapper
from amazon.opentelemetry.emf.metrics._metric_types import CWMetricMetadata, MetricDataPoint, MetricInfo
from amazon.opentelemetry.emf.metrics._pattern_replacer import UNDEFINED, replace_patterns
from amazon.opentelemetry.emf.metrics._unit_translator import translate_unit

logger = logging.getLogger(__name__)

CONTAINER_INSIGHTS_TYPES = {"Pod", "Container"}

PatternResolver = Callable[[str, Mapping[str, str], Optional[logging.Logger]], Tuple[str, bool]]


class GroupedMetricBucket:
    """Metrics sharing namespace, timestamp, destination and labels. One bucket becomes one EMF log."""

    def __init__(self, labels: Dict[str, str], metadata: CWMetricMetadata):
        self.labels = dict(labels)
        self.metrics: Dict[str, MetricInfo] = {}
        self.metadata = metadata


GroupedMetrics = Dict[GroupedMetricKey, GroupedMetricBucket]


class MetricGrouper:
    """
    Folds metric data points into grouped metric buckets.

    The grouper keeps no state between calls. The caller owns the mapping of
    keys to buckets for one export cycle and passes it to every call.
    """

    def __init__(
        self,
        config: EmfExporterConfig,
        log: Optional[logging.Logger] = None,
        pattern_resolver: PatternResolver = replace_patterns,
    ):
        """
        Initialize the metric grouper.

        Args:
            config: Exporter configuration with templates, descriptors and feature flags
            log: Logger for duplicate warnings, defaults to the module logger
            pattern_resolver: Resolves log group and log stream templates from labels
        """
        self.config = config
        self.descriptors = config.descriptor_map()
        self.logger = log or logger
        self.pattern_resolver = pattern_resolver

    def add_to_grouped_metric(
        self,
        metric: Metric,
        grouped_metrics: GroupedMetrics,
        metadata: CWMetricMetadata,
        pattern_replace_succeeded: bool,
    ) -> None:
        """
        Extract the data points of an OTel metric and add them to the grouped metrics.

        Raises:
            ExtractionError: If the metric data cannot be extracted
        """
        data_points = get_data_points(metric, metadata.instrumentation_scope_name)
        self.add_data_points(metric.name, data_points, grouped_metrics, metadata, pattern_replace_succeeded)

    def add_data_points(
        self,
        metric_name: str,
        data_points: Iterable[MetricDataPoint],
        grouped_metrics: GroupedMetrics,
        metadata: CWMetricMetadata,
        pattern_replace_succeeded: bool,
    ) -> None:
        """
        Add the data points of one metric to their buckets.

        Args:
            metric_name: Name of the metric the data points belong to
            data_points: The extracted data points
            grouped_metrics: Key to bucket mapping of the current export cycle, updated in place
            metadata: Metadata of the metric, with the log group and log stream resolved from
                resource attributes where possible
            pattern_replace_succeeded: Whether resource attributes resolved both name templates
        """
        for dp in data_points:
            if not dp.retained:
                continue

            labels = dp.labels

            if labels.get("Type") in CONTAINER_INSIGHTS_TYPES and self.config.eks_fargate_container_insights_enabled:
                add_kubernetes_wrapper(labels)

            # Templates left unresolved by resource attributes get another chance with the point labels
            if not pattern_replace_succeeded:
                metadata = self._replace_undefined_patterns(metadata, labels)

            metric = MetricInfo(value=dp.value, unit=translate_unit(metric_name, dp.unit, self.descriptors))

            if dp.timestamp_ms > 0:
                metadata = dataclasses.replace(
                    metadata, group_identity=dataclasses.replace(metadata.group_identity, timestamp_ms=dp.timestamp_ms)
                )

            key = grouped_metric_key(metadata.group_identity, labels)
            bucket = grouped_metrics.get(key)
            if bucket is None:
                bucket = GroupedMetricBucket(labels, metadata)
                grouped_metrics[key] = bucket

            if metric_name in bucket.metrics:
                self.logger.warning("Duplicate metric found: Name=%s, Labels=%s", metric_name, labels)
            else:
                bucket.metrics[metric_name] = metric

    def _replace_undefined_patterns(self, metadata: CWMetricMetadata, labels: Dict[str, str]) -> CWMetricMetadata:
        identity = metadata.group_identity
        log_group = identity.log_group
        log_stream = identity.log_stream

        if UNDEFINED in log_group:
            log_group, _ = self.pattern_resolver(self.config.log_group_name, labels, self.logger)
        if UNDEFINED in log_stream:
            log_stream, _ = self.pattern_resolver(self.config.log_stream_name, labels, self.logger)

        if log_group == identity.log_group and log_stream == identity.log_stream:
            return metadata
        identity = dataclasses.replace(identity, log_group=log_group, log_stream=log_stream)
        return dataclasses.replace(metadata, group_identity=identity)
