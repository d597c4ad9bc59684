"""
Build catalog entities from raw resources.

Builders never raise: annotation problems are logged, recorded when a
Diagnostics sink is given, and replaced by the configured fallback.
"""

import json
from typing import Any, Dict, List, Mapping, Optional

import structlog

from .annotations import (
    OPERATOR_TESTS_ANNOTATION,
    POD_TESTS_ANNOTATION,
    SUBSCRIPTION_NAME_ANNOTATION,
    build_annotation_name,
    get_annotations,
    resolve_annotation,
)
from .catalog import TestCatalogProvider
from .config import settings
from .diagnostics import (
    STEP_OPERATOR_TESTS,
    STEP_POD_TESTS,
    STEP_SUBSCRIPTION,
    Diagnostics,
)
from .errors import AnnotationError, AnnotationMalformed
from .models import Container, ContainerIdentifier, Deployment, Operator, Pod

logger = structlog.get_logger(__name__)

CNI_NETWORKS_STATUS_ANNOTATION = "k8s.v1.cni.cncf.io/networks-status"


def _metadata(resource: Mapping[str, Any]) -> Dict[str, Any]:
    return resource.get("metadata") or {}


def _spec(resource: Mapping[str, Any]) -> Dict[str, Any]:
    return resource.get("spec") or {}


# =============================================================================
# PODS AND CONTAINERS
# =============================================================================


def build_pod(
    resource: Mapping[str, Any],
    catalog: TestCatalogProvider,
    diagnostics: Optional[Diagnostics] = None,
) -> Pod:
    """Build a Pod, taking tests from its annotation or the configured groups."""
    metadata = _metadata(resource)
    spec = _spec(resource)
    pod = Pod(
        namespace=metadata.get("namespace", ""),
        name=metadata.get("name", ""),
        service_account=spec.get("serviceAccountName")
        or spec.get("serviceAccount")
        or "",
        container_count=len(spec.get("containers") or []),
    )

    try:
        pod.tests = resolve_annotation(
            resource, build_annotation_name(POD_TESTS_ANNOTATION)
        )
    except AnnotationError as e:
        logger.warning(
            "Unable to extract tests from annotation, falling back to all tests",
            namespace=pod.namespace,
            name=pod.name,
            error=str(e),
        )
        if diagnostics is not None:
            diagnostics.record(
                STEP_POD_TESTS, e, namespace=pod.namespace, name=pod.name
            )
        pod.tests = catalog.get_configured_pod_tests(diagnostics)
    return pod


def _container_uids(resource: Mapping[str, Any]) -> Dict[str, str]:
    """Map container name to runtime id with its ``<runtime>://`` scheme removed."""
    status = resource.get("status") or {}
    uids = {}
    for cs in status.get("containerStatuses") or []:
        container_id = cs.get("containerID") or ""
        if "://" in container_id:
            container_id = container_id.split("://", 1)[1]
        uids[cs.get("name", "")] = container_id
    return uids


def build_container_identifiers(
    resource: Mapping[str, Any],
) -> List[ContainerIdentifier]:
    metadata = _metadata(resource)
    spec = _spec(resource)
    uids = _container_uids(resource)
    return [
        ContainerIdentifier(
            namespace=metadata.get("namespace", ""),
            pod_name=metadata.get("name", ""),
            container_name=c.get("name", ""),
            node_name=spec.get("nodeName") or "",
            container_uid=uids.get(c.get("name", ""), ""),
        )
        for c in spec.get("containers") or []
    ]


def get_multus_ip_addresses(resource: Mapping[str, Any]) -> List[str]:
    """IPs of the pod's non-default CNI networks.

    Pods without Multus networks, or with an unparseable status annotation,
    have none.
    """
    raw = get_annotations(resource).get(CNI_NETWORKS_STATUS_ANNOTATION)
    if not raw:
        return []
    try:
        networks = json.loads(raw)
    except (TypeError, ValueError) as e:
        metadata = _metadata(resource)
        logger.warning(
            "Unable to parse CNI networks status",
            namespace=metadata.get("namespace"),
            name=metadata.get("name"),
            error=str(e),
        )
        return []
    if not isinstance(networks, list):
        return []

    ips = []
    for network in networks:
        if not isinstance(network, dict) or network.get("default"):
            continue
        ips.extend(str(ip) for ip in network.get("ips") or [])
    return ips


def build_containers(resource: Mapping[str, Any]) -> List[Container]:
    """One Container per container in the pod spec."""
    multus_ips = get_multus_ip_addresses(resource)
    return [
        Container(
            identifier=identifier,
            default_network_device=settings.default_network_device,
            multus_ip_addresses=list(multus_ips),
        )
        for identifier in build_container_identifiers(resource)
    ]


# =============================================================================
# OPERATORS
# =============================================================================


def build_operator(
    resource: Mapping[str, Any],
    catalog: TestCatalogProvider,
    diagnostics: Optional[Diagnostics] = None,
) -> Operator:
    """Build an Operator from a ClusterServiceVersion."""
    metadata = _metadata(resource)
    op = Operator(name=metadata.get("name", ""), namespace=metadata.get("namespace", ""))

    try:
        op.tests = resolve_annotation(
            resource, build_annotation_name(OPERATOR_TESTS_ANNOTATION)
        )
    except AnnotationError as e:
        logger.warning(
            "Unable to extract tests from annotation, falling back to all tests",
            namespace=op.namespace,
            name=op.name,
            error=str(e),
        )
        if diagnostics is not None:
            diagnostics.record(
                STEP_OPERATOR_TESTS, e, namespace=op.namespace, name=op.name
            )
        op.tests = catalog.get_configured_operator_tests(diagnostics)

    # Not every operator is installed through a subscription
    annotation = build_annotation_name(SUBSCRIPTION_NAME_ANNOTATION)
    try:
        subscription = resolve_annotation(resource, annotation)
        if not subscription:
            raise AnnotationMalformed(
                f"annotation {annotation} is empty", annotation=annotation
            )
        op.subscription_name = subscription[0]
    except AnnotationError as e:
        logger.warning(
            "Unable to get subscription name annotation from CSV",
            namespace=op.namespace,
            name=op.name,
            error=str(e),
        )
        if diagnostics is not None:
            diagnostics.record(
                STEP_SUBSCRIPTION, e, namespace=op.namespace, name=op.name
            )
    return op


# =============================================================================
# DEPLOYMENTS
# =============================================================================


def build_deployment(resource: Mapping[str, Any]) -> Deployment:
    metadata = _metadata(resource)
    return Deployment(
        name=metadata.get("name", ""),
        namespace=metadata.get("namespace", ""),
        replicas=_spec(resource).get("replicas") or 0,
    )
