# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

KUBERNETES_LABEL_KEY = "kubernetes"


class KubernetesMetadata:
    """
    Nested Kubernetes metadata object built from flat Container Insights labels.

    The optional sub-objects (docker, labels, pod_owners) are decided when the
    object is built: a sub-object whose members are all empty is set to None and
    is left out of the serialized form.
    """

    def __init__(self, labels: Dict[str, str]):
        self.container_name = labels.get("container", "")
        self.host = labels.get("NodeName", "")
        self.namespace_name = labels.get("Namespace", "")
        self.pod_id = labels.get("PodId", "")
        self.pod_name = labels.get("PodName", "")
        self.service_name = labels.get("Service", "")

        container_id = labels.get("container_id", "")
        self.docker: Optional[Dict[str, str]] = {"container_id": container_id} if container_id else None

        app = labels.get("app", "")
        pod_template_hash = labels.get("pod-template-hash", "")
        self.labels: Optional[Dict[str, str]] = None
        if app or pod_template_hash:
            self.labels = _non_empty({"app": app, "pod-template-hash": pod_template_hash})

        owner_kind = labels.get("owner_kind", "")
        owner_name = labels.get("owner_name", "")
        self.pod_owners: Optional[Dict[str, str]] = None
        if owner_kind or owner_name:
            self.pod_owners = _non_empty({"owner_kind": owner_kind, "owner_name": owner_name})

    def to_dict(self) -> Dict[str, Any]:
        obj: Dict[str, Any] = {"container_name": self.container_name}
        if self.docker is not None:
            obj["docker"] = self.docker
        obj["host"] = self.host
        if self.labels is not None:
            obj["labels"] = self.labels
        obj["namespace_name"] = self.namespace_name
        obj["pod_id"] = self.pod_id
        obj["pod_name"] = self.pod_name
        if self.pod_owners is not None:
            obj["pod_owners"] = self.pod_owners
        obj["service_name"] = self.service_name
        return obj


def _non_empty(fields: Dict[str, str]) -> Dict[str, str]:
    return {key: value for key, value in fields.items() if value}


def add_kubernetes_wrapper(labels: Dict[str, str]) -> None:
    """
    Add the serialized Kubernetes metadata object to ``labels`` in place.

    Serialization is best effort: on failure the ``kubernetes`` label is simply
    not added.

    Args:
        labels: The data point labels, mutated in place
    """
    try:
        labels[KUBERNETES_LABEL_KEY] = json.dumps(KubernetesMetadata(labels).to_dict(), separators=(",", ":"))
    except (TypeError, ValueError) as error:
        logger.debug("Failed to serialize kubernetes metadata: %s", error)
