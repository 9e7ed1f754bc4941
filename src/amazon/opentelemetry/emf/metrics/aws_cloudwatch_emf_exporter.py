# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

# pylint: disable=no-self-use

import copy
import json
import logging
import uuid
from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple

from opentelemetry.sdk.metrics import (
    Counter,
    Histogram,
    ObservableCounter,
    ObservableGauge,
    ObservableUpDownCounter,
    UpDownCounter,
)
from opentelemetry.sdk.metrics.export import (
    AggregationTemporality,
    MetricExporter,
    MetricExportResult,
    MetricsData,
)
from opentelemetry.sdk.resources import Resource

from amazon.opentelemetry.emf.metrics._cloudwatch_log_client import CloudWatchLogClient
from amazon.opentelemetry.emf.metrics._config import EmfExporterConfig
from amazon.opentelemetry.emf.metrics._data_points import ExtractionError, metric_data_type
from amazon.opentelemetry.emf.metrics._emf_translator import translate_grouped_metric_to_emf
from amazon.opentelemetry.emf.metrics._metric_types import CWMetricMetadata, GroupIdentity
from amazon.opentelemetry.emf.metrics._pattern_replacer import replace_patterns
from amazon.opentelemetry.emf.metrics.grouped_metric import GroupedMetrics, MetricGrouper

logger = logging.getLogger(__name__)


class AwsCloudWatchEmfExporter(MetricExporter):
    """
    OpenTelemetry metrics exporter for CloudWatch EMF format.

    Every export groups the data points by namespace, timestamp, destination and
    labels, and sends one EMF log per group to CloudWatch Logs. CloudWatch Logs
    extracts the metrics from the EMF logs.

    https://docs.aws.amazon.com/AmazonCloudWatch/latest/monitoring/CloudWatch_Embedded_Metric_Format_Specification.html
    """

    MAX_LOG_CLIENTS = 100

    def __init__(
        self,
        config: Optional[EmfExporterConfig] = None,
        preferred_temporality: Optional[Dict[type, AggregationTemporality]] = None,
        **kwargs,
    ):
        """
        Initialize the CloudWatch EMF exporter.

        Args:
            config: Exporter configuration, defaults to EmfExporterConfig()
            preferred_temporality: Optional dictionary mapping instrument types to aggregation temporality
            **kwargs: Additional arguments passed to botocore client
        """
        # Set up temporality preference default to DELTA if customers not set
        if preferred_temporality is None:
            preferred_temporality = {
                Counter: AggregationTemporality.DELTA,
                Histogram: AggregationTemporality.DELTA,
                ObservableCounter: AggregationTemporality.DELTA,
                ObservableGauge: AggregationTemporality.DELTA,
                ObservableUpDownCounter: AggregationTemporality.DELTA,
                UpDownCounter: AggregationTemporality.DELTA,
            }

        super().__init__(preferred_temporality)

        # Work on a copy so the generated log stream name stays with this exporter
        self.config = copy.copy(config or EmfExporterConfig())
        if not self.config.log_stream_name:
            self.config.log_stream_name = self._generate_log_stream_name()

        self.grouper = MetricGrouper(self.config)
        self._client_kwargs = kwargs
        self._log_clients: "OrderedDict[Tuple[str, str], CloudWatchLogClient]" = OrderedDict()

    # Default to unique log stream name matching OTel Collector
    # EMF Exporter behavior with language for source identification
    def _generate_log_stream_name(self) -> str:
        """Generate a unique log stream name."""
        unique_id = str(uuid.uuid4())[:8]
        return f"otel-python-{unique_id}"

    def _get_log_client(self, log_group: str, log_stream: str) -> CloudWatchLogClient:
        """
        Get the log client of a destination, creating it if needed.

        Destinations resolved from labels (e.g. {TaskId}) can keep changing, so at most
        MAX_LOG_CLIENTS clients are cached. The least recently used one is flushed and
        dropped when the limit is exceeded.
        """
        key = (log_group, log_stream)
        if key in self._log_clients:
            self._log_clients.move_to_end(key)
            return self._log_clients[key]

        log_client = CloudWatchLogClient(log_group, log_stream, self.config.aws_region, **self._client_kwargs)
        self._log_clients[key] = log_client
        if len(self._log_clients) > self.MAX_LOG_CLIENTS:
            _, evicted = self._log_clients.popitem(last=False)
            evicted.flush_pending_events()
        return log_client

    def _resolve_destination(self, resource: Optional[Resource]) -> Tuple[str, str, bool]:
        """Resolve the log group and log stream templates from resource attributes."""
        attributes = {key: str(value) for key, value in (resource.attributes if resource else {}).items()}
        log_group, group_succeeded = replace_patterns(self.config.log_group_name, attributes)
        log_stream, stream_succeeded = replace_patterns(self.config.log_stream_name, attributes)
        return log_group, log_stream, group_succeeded and stream_succeeded

    def _group_resource_metrics(self, resource_metrics: Any) -> GroupedMetrics:
        grouped_metrics: GroupedMetrics = {}
        log_group, log_stream, pattern_replace_succeeded = self._resolve_destination(resource_metrics.resource)

        for scope_metrics in resource_metrics.scope_metrics:
            scope_name = scope_metrics.scope.name if scope_metrics.scope else ""
            for metric in scope_metrics.metrics:
                metadata = CWMetricMetadata(
                    group_identity=GroupIdentity(
                        namespace=self.config.namespace,
                        log_group=log_group,
                        log_stream=log_stream,
                        metric_data_type=metric_data_type(metric),
                        dimension_rollup_option=self.config.dimension_rollup_option,
                    ),
                    instrumentation_scope_name=scope_name or "",
                )
                try:
                    self.grouper.add_to_grouped_metric(metric, grouped_metrics, metadata, pattern_replace_succeeded)
                except ExtractionError as error:
                    logger.error("Failed to extract data points of metric %s: %s", metric.name, error)

        return grouped_metrics

    # pylint: disable=unused-argument
    def export(
        self, metrics_data: MetricsData, timeout_millis: Optional[int] = None, **_kwargs: Any
    ) -> MetricExportResult:
        """
        Export metrics as EMF logs to CloudWatch.

        Args:
            metrics_data: MetricsData containing resource metrics and scope metrics
            timeout_millis: Optional timeout in milliseconds
            **kwargs: Additional keyword arguments

        Returns:
            MetricExportResult indicating success or failure
        """
        try:
            for resource_metrics in metrics_data.resource_metrics:
                grouped_metrics = self._group_resource_metrics(resource_metrics)

                for bucket in grouped_metrics.values():
                    emf_log = translate_grouped_metric_to_emf(bucket)
                    identity = bucket.metadata.group_identity
                    self._get_log_client(identity.log_group, identity.log_stream).send_log_event(
                        {"message": json.dumps(emf_log), "timestamp": emf_log["_aws"]["Timestamp"]}
                    )

            self._flush_log_clients()
            return MetricExportResult.SUCCESS
        # pylint: disable=broad-exception-caught
        # capture all types of exceptions to not interrupt the instrumented services
        except Exception as error:
            logger.error("Failed to export metrics: %s", error)
            return MetricExportResult.FAILURE

    def _flush_log_clients(self) -> None:
        for log_client in self._log_clients.values():
            log_client.flush_pending_events()

    def force_flush(self, timeout_millis: int = 10000) -> bool:  # pylint: disable=unused-argument
        """
        Force flush any pending metrics.

        Args:
            timeout_millis: Timeout in milliseconds

        Returns:
            True if successful, False otherwise
        """
        self._flush_log_clients()
        logger.debug("AwsCloudWatchEmfExporter force flushes the buffered metrics")
        return True

    def shutdown(self, timeout_millis: Optional[int] = None, **_kwargs: Any) -> None:
        """
        Shutdown the exporter, flushing any remaining batched events.

        Args:
            timeout_millis: Ignored timeout in milliseconds
            **kwargs: Ignored additional keyword arguments
        """
        self.force_flush(timeout_millis)
        logger.debug("AwsCloudWatchEmfExporter shutdown called with timeout_millis=%s", timeout_millis)
