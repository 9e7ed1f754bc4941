# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass
from typing import Mapping, Tuple

from amazon.opentelemetry.emf.metrics._metric_types import GroupIdentity


@dataclass(frozen=True)
class GroupedMetricKey:
    group_identity: GroupIdentity
    labels: Tuple[Tuple[str, str], ...]


def grouped_metric_key(group_identity: GroupIdentity, labels: Mapping[str, str]) -> GroupedMetricKey:
    """
    Create a hashable key identifying the bucket of a data point.

    Labels are sorted by name so that the key does not depend on insertion order.

    Args:
        group_identity: The non-label grouping metadata
        labels: The data point labels

    Returns:
        A key equal to any other key built from an equal identity and label set
    """
    return GroupedMetricKey(group_identity, tuple(sorted(labels.items())))
