# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

UNDEFINED = "undefined"

# Placeholder name to the resource attribute that can also resolve it
PATTERN_KEY_TO_ATTRIBUTE = {
    "ClusterName": "aws.ecs.cluster.name",
    "TaskId": "aws.ecs.task.id",
    "NodeName": "k8s.node.name",
    "ContainerInstanceId": "aws.ecs.container.instance.id",
    "TaskDefinitionFamily": "aws.ecs.task.family",
    "InstanceId": "service.instance.id",
}


def replace_patterns(
    template: str, attributes: Mapping[str, str], log: Optional[logging.Logger] = None
) -> Tuple[str, bool]:
    """
    Replace ``{Placeholder}`` patterns of a log group or log stream template.

    A placeholder is resolved from the attribute of the same name, then from its
    mapped resource attribute. A missing or empty value turns the placeholder into
    ``undefined``.

    Args:
        template: The configured name template
        attributes: Labels or resource attributes used for resolution
        log: Optional logger, defaults to the module logger

    Returns:
        A tuple of the resolved string and whether every placeholder was resolved
    """
    log = log or logger
    success = True
    for key, attribute_name in PATTERN_KEY_TO_ATTRIBUTE.items():
        pattern = "{" + key + "}"
        if pattern not in template:
            continue

        value = attributes.get(key)
        if value is None:
            value = attributes.get(attribute_name)

        if value is None or str(value) == "":
            log.debug("No attribute value found for pattern %s", pattern)
            template = template.replace(pattern, UNDEFINED)
            success = False
        else:
            template = template.replace(pattern, str(value))
    return template, success
