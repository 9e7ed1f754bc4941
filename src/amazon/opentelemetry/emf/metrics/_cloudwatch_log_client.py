# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import time
from typing import Any, Dict, List, Optional

import botocore.session
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# CloudWatch Logs limits
# http://docs.aws.amazon.com/AmazonCloudWatch/latest/logs/cloudwatch_limits_cwl.html
CW_MAX_EVENT_PAYLOAD_BYTES = 256 * 1024
CW_MAX_REQUEST_EVENT_COUNT = 10000
CW_PER_EVENT_HEADER_BYTES = 26
CW_MAX_REQUEST_PAYLOAD_BYTES = 1 * 1024 * 1024
CW_TRUNCATED_SUFFIX = "[Truncated...]"
CW_EVENT_TIMESTAMP_LIMIT_PAST = 14 * 24 * 60 * 60 * 1000
CW_EVENT_TIMESTAMP_LIMIT_FUTURE = 2 * 60 * 60 * 1000
CW_MAX_BATCH_SPAN_MS = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class _LogEventBatch:
    """Pending log events of one PutLogEvents request."""

    def __init__(self):
        self.log_events: List[Dict[str, Any]] = []
        self.byte_total = 0
        self.min_timestamp_ms = 0
        self.max_timestamp_ms = 0

    def exceeds_limit(self, next_event_size: int) -> bool:
        return (
            len(self.log_events) >= CW_MAX_REQUEST_EVENT_COUNT
            or self.byte_total + next_event_size > CW_MAX_REQUEST_PAYLOAD_BYTES
        )

    def accepts_timestamp(self, timestamp_ms: int) -> bool:
        # A single request cannot span more than 24 hours
        if not self.log_events:
            return True
        return (
            timestamp_ms - self.min_timestamp_ms <= CW_MAX_BATCH_SPAN_MS
            and self.max_timestamp_ms - timestamp_ms <= CW_MAX_BATCH_SPAN_MS
        )

    def append(self, log_event: Dict[str, Any], event_size: int) -> None:
        timestamp_ms = log_event["timestamp"]
        if not self.log_events:
            self.min_timestamp_ms = self.max_timestamp_ms = timestamp_ms
        else:
            self.min_timestamp_ms = min(self.min_timestamp_ms, timestamp_ms)
            self.max_timestamp_ms = max(self.max_timestamp_ms, timestamp_ms)
        self.log_events.append(log_event)
        self.byte_total += event_size


class CloudWatchLogClient:
    """
    Sends EMF log events to one CloudWatch log group and log stream.

    Events are batched within the CloudWatch Logs request limits. The log group
    and log stream are created lazily when PutLogEvents reports them missing.
    """

    def __init__(self, log_group_name: str, log_stream_name: str, aws_region: Optional[str] = None, **kwargs):
        """
        Initialize the CloudWatch Logs client.

        Args:
            log_group_name: CloudWatch log group name
            log_stream_name: CloudWatch log stream name
            aws_region: AWS region (botocore default resolution if None)
            **kwargs: Additional arguments passed to botocore client
        """
        self.log_group_name = log_group_name
        self.log_stream_name = log_stream_name

        session = botocore.session.Session()
        self.logs_client = session.create_client("logs", region_name=aws_region, **kwargs)

        self._event_batch = _LogEventBatch()

    def _create_if_needed(self, operation: str, resource: str, **params) -> None:
        try:
            getattr(self.logs_client, operation)(**params)
            logger.info("Created %s", resource)
        except ClientError as error:
            if error.response.get("Error", {}).get("Code") == "ResourceAlreadyExistsException":
                logger.debug("%s already exists", resource)
            else:
                logger.error("Failed to create %s : %s", resource, error)
                raise

    def _validate_log_event(self, log_event: Dict[str, Any]) -> bool:
        if not log_event.get("message"):
            logger.error("Empty log event message")
            return False

        message = log_event["message"]
        if len(message) + CW_PER_EVENT_HEADER_BYTES > CW_MAX_EVENT_PAYLOAD_BYTES:
            logger.warning("Log event size exceeds maximum allowed size %s. Truncating.", CW_MAX_EVENT_PAYLOAD_BYTES)
            max_message_size = CW_MAX_EVENT_PAYLOAD_BYTES - CW_PER_EVENT_HEADER_BYTES - len(CW_TRUNCATED_SUFFIX)
            log_event["message"] = message[:max_message_size] + CW_TRUNCATED_SUFFIX

        time_diff = _now_ms() - log_event.get("timestamp", 0)
        if time_diff > CW_EVENT_TIMESTAMP_LIMIT_PAST or time_diff < -CW_EVENT_TIMESTAMP_LIMIT_FUTURE:
            logger.error(
                "Log event timestamp %s is either older than 14 days or more than 2 hours in the future",
                log_event.get("timestamp"),
            )
            return False

        return True

    def _send_log_batch(self, batch: _LogEventBatch) -> Optional[Dict[str, Any]]:
        if not batch.log_events:
            return None

        put_log_events_input = {
            "logGroupName": self.log_group_name,
            "logStreamName": self.log_stream_name,
            "logEvents": sorted(batch.log_events, key=lambda event: event["timestamp"]),
        }

        try:
            response = self.logs_client.put_log_events(**put_log_events_input)
        except ClientError as error:
            if error.response.get("Error", {}).get("Code") != "ResourceNotFoundException":
                logger.error("Failed to send log events: %s", error)
                raise

            logger.info("Log group or stream not found, creating resources and retrying")
            self._create_if_needed(
                "create_log_group", f"log group {self.log_group_name}", logGroupName=self.log_group_name
            )
            self._create_if_needed(
                "create_log_stream",
                f"log stream {self.log_stream_name}",
                logGroupName=self.log_group_name,
                logStreamName=self.log_stream_name,
            )
            response = self.logs_client.put_log_events(**put_log_events_input)

        logger.debug("Sent %s log events (%s KB)", len(batch.log_events), batch.byte_total / 1024)
        return response

    def send_log_event(self, log_event: Dict[str, Any]) -> None:
        """
        Queue a log event, sending the pending batch first when the event does not fit in it.

        Args:
            log_event: Dict with "message" and "timestamp" (milliseconds)
        """
        if not self._validate_log_event(log_event):
            return

        event_size = len(log_event["message"]) + CW_PER_EVENT_HEADER_BYTES
        if self._event_batch.exceeds_limit(event_size) or not self._event_batch.accepts_timestamp(
            log_event["timestamp"]
        ):
            self._send_log_batch(self._event_batch)
            self._event_batch = _LogEventBatch()

        self._event_batch.append(log_event, event_size)

    def flush_pending_events(self) -> bool:
        """Send any pending log events."""
        # The batch is kept when sending fails so the next flush retries it
        self._send_log_batch(self._event_batch)
        self._event_batch = _LogEventBatch()
        logger.debug("CloudWatchLogClient flushed the buffered log events")
        return True
