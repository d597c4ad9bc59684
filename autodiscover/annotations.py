"""
Annotation lookup for discovery-specific metadata.

Annotation values are JSON-encoded lists of strings, e.g.
``test-network-function.com/host_resource_tests: '["generic","diagnostic"]'``.
"""

import json
from typing import Any, Dict, List, Mapping

from .config import settings
from .errors import AnnotationMalformed, AnnotationMissing


def build_annotation_name(name: str) -> str:
    """Namespace an annotation key under the configured vendor prefix."""
    return f"{settings.annotation_prefix}/{name}"


POD_TESTS_ANNOTATION = "host_resource_tests"
OPERATOR_TESTS_ANNOTATION = "operator_tests"
SUBSCRIPTION_NAME_ANNOTATION = "subscription_name"


def get_annotations(resource: Mapping[str, Any]) -> Dict[str, str]:
    metadata = resource.get("metadata") or {}
    return metadata.get("annotations") or {}


def resolve_annotation(resource: Mapping[str, Any], annotation_key: str) -> List[str]:
    """Decode the list of strings stored in ``annotation_key``.

    Raises AnnotationMissing when the annotation is absent and
    AnnotationMalformed when it is not a JSON list of strings.
    """
    annotations = get_annotations(resource)
    if annotation_key not in annotations:
        raise AnnotationMissing(
            f"annotation {annotation_key} not found", annotation=annotation_key
        )

    raw = annotations[annotation_key]
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise AnnotationMalformed(
            f"annotation {annotation_key} is not valid JSON: {e}",
            annotation=annotation_key,
        ) from e

    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise AnnotationMalformed(
            f"annotation {annotation_key} is not a list of strings",
            annotation=annotation_key,
        )
    return value
