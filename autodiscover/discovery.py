"""
Test target discovery for CNF Autodiscover.

Finds the pods, containers, operators, deployments and nodes under test from
the current state of the cluster, using labels and annotations, and adds them
to a caller-supplied TestTarget.
"""

from typing import List, Optional, Sequence, Tuple

import structlog

from .builders import (
    build_container_identifiers,
    build_containers,
    build_deployment,
    build_operator,
    build_pod,
)
from .catalog import TestCatalogProvider, get_test_catalog
from .config import load_discovery_config, settings
from .crds import find_crd_names
from .diagnostics import (
    STEP_DEPLOYMENTS,
    STEP_EXCLUDED_CONTAINERS,
    STEP_OPERATORS,
    STEP_PODS,
    Diagnostics,
)
from .errors import QueryFailure
from .executor import CommandExecutor, get_executor
from .k8s_client import K8sClient, get_k8s_client
from .models import ANY_LABEL_VALUE, CrdFilter, Deployment, Label, TestTarget
from .nodes import NodeClassifier

logger = structlog.get_logger(__name__)

OPERATOR_LABEL_NAME = "operator"
SKIP_CONNECTIVITY_TESTS_LABEL = "skip_connectivity_tests"


def operator_label() -> Label:
    return Label(
        prefix=settings.label_prefix, name=OPERATOR_LABEL_NAME, value=ANY_LABEL_VALUE
    )


def skip_connectivity_tests_label() -> Label:
    return Label(
        prefix=settings.label_prefix,
        name=SKIP_CONNECTIVITY_TESTS_LABEL,
        value=ANY_LABEL_VALUE,
    )


class TargetDiscovery:
    """Aggregates every discovery step into a TestTarget.

    Each step is independent: a failed query is logged, recorded in the
    returned Diagnostics, and the remaining steps still run.
    """

    def __init__(
        self,
        k8s: K8sClient,
        executor: CommandExecutor,
        catalog: TestCatalogProvider,
    ):
        self._k8s = k8s
        self._executor = executor
        self._catalog = catalog

    async def discover(
        self,
        labels: Sequence[Label],
        target: TestTarget,
        namespace: Optional[str] = None,
    ) -> Diagnostics:
        """Populate ``target`` in place and return the failures encountered.

        CRD names are not part of a TestTarget; they come from the separate
        ``find_test_crd_names`` pass, which ``discover_from_config`` runs
        after this one against the same Diagnostics.
        """
        diagnostics = Diagnostics()
        ns = settings.namespace if namespace is None else namespace

        await self._find_pods(labels, target, ns, diagnostics)
        await self._find_excluded_containers(target, ns, diagnostics)
        await self._find_operators(target, ns, diagnostics)
        target.deployments_under_test.extend(
            await self.find_test_deployments(labels, ns, diagnostics)
        )
        target.nodes = await NodeClassifier(
            self._executor, diagnostics=diagnostics
        ).classify()

        if settings.dedupe_targets:
            dedupe_targets(target)

        logger.info(
            "Test target discovery complete",
            pods=len(target.pods_under_test),
            containers=len(target.container_config_list),
            operators=len(target.operators),
            deployments=len(target.deployments_under_test),
            nodes=len(target.nodes),
            failures=len(diagnostics),
        )
        return diagnostics

    async def _find_pods(self, labels, target, namespace, diagnostics) -> None:
        for label in labels:
            try:
                pods = await self._k8s.get_pods_by_label(label, namespace)
            except QueryFailure as e:
                logger.warning(
                    "Failed to query pods by label",
                    label=label.selector(),
                    namespace=namespace,
                    error=str(e),
                )
                diagnostics.record(STEP_PODS, e, label=label.selector())
                continue

            for pod in pods:
                target.pods_under_test.append(
                    build_pod(pod, self._catalog, diagnostics)
                )
                target.container_config_list.extend(build_containers(pod))

    async def _find_excluded_containers(self, target, namespace, diagnostics) -> None:
        # Containers to exclude from connectivity tests are optional
        label = skip_connectivity_tests_label()
        identifiers = []
        try:
            for pod in await self._k8s.get_pods_by_label(label, namespace):
                identifiers.extend(build_container_identifiers(pod))
        except QueryFailure as e:
            logger.warning(
                "Failed to get containers to exclude from connectivity tests, continuing",
                label=label.selector(),
                error=str(e),
            )
            diagnostics.record(STEP_EXCLUDED_CONTAINERS, e, label=label.selector())
        target.exclude_containers_from_connectivity_tests = identifiers

    async def _find_operators(self, target, namespace, diagnostics) -> None:
        label = operator_label()
        try:
            csvs = await self._k8s.get_csvs_by_label(label, namespace)
        except QueryFailure as e:
            logger.warning(
                "Failed to look up operators by label",
                label=label.selector(),
                error=str(e),
            )
            diagnostics.record(STEP_OPERATORS, e, label=label.selector())
            return

        for csv in csvs:
            target.operators.append(build_operator(csv, self._catalog, diagnostics))

    async def find_test_deployments(
        self,
        labels: Sequence[Label],
        namespace: str,
        diagnostics: Optional[Diagnostics] = None,
    ) -> List[Deployment]:
        """Deployments matching each label, one entry per (label, match)."""
        deployments = []
        for label in labels:
            try:
                resources = await self._k8s.get_deployments_by_label(label, namespace)
            except QueryFailure as e:
                logger.error(
                    "Unable to get deployment list",
                    label=label.selector(),
                    namespace=namespace,
                    error=str(e),
                )
                if diagnostics is not None:
                    diagnostics.record(STEP_DEPLOYMENTS, e, label=label.selector())
                continue
            deployments.extend(build_deployment(r) for r in resources)
        return deployments

    async def find_test_crd_names(
        self,
        crd_filters: Sequence[CrdFilter],
        diagnostics: Optional[Diagnostics] = None,
    ) -> List[str]:
        return await find_crd_names(self._executor, crd_filters, diagnostics)


def dedupe_targets(target: TestTarget) -> None:
    """Collapse entities matched by more than one label, keeping the first."""
    seen_pods = set()
    pods = []
    for pod in target.pods_under_test:
        key = (pod.namespace, pod.name)
        if key not in seen_pods:
            seen_pods.add(key)
            pods.append(pod)

    seen_containers = set()
    containers = []
    for container in target.container_config_list:
        if container.identifier not in seen_containers:
            seen_containers.add(container.identifier)
            containers.append(container)

    seen_deployments = set()
    deployments = []
    for deployment in target.deployments_under_test:
        key = (deployment.namespace, deployment.name)
        if key not in seen_deployments:
            seen_deployments.add(key)
            deployments.append(deployment)

    target.pods_under_test = pods
    target.container_config_list = containers
    target.deployments_under_test = deployments


def _default_discovery() -> TargetDiscovery:
    return TargetDiscovery(
        k8s=get_k8s_client(),
        executor=get_executor(),
        catalog=get_test_catalog(),
    )


async def find_test_target(
    labels: Sequence[Label], target: TestTarget, namespace: Optional[str] = None
) -> Diagnostics:
    """Discover test targets with the default client, executor and catalog."""
    return await _default_discovery().discover(labels, target, namespace)


async def find_test_crd_names(crd_filters: Sequence[CrdFilter]) -> List[str]:
    return await _default_discovery().find_test_crd_names(crd_filters)


async def discover_from_config(
    path: Optional[str] = None,
) -> Tuple[TestTarget, List[str], Diagnostics]:
    """Run a full discovery using the labels and filters from a config file.

    Raises ConfigLoadFailure when the config file itself cannot be loaded.
    """
    discovery_config = load_discovery_config(path)
    discovery = _default_discovery()
    target = TestTarget()
    diagnostics = await discovery.discover(discovery_config.target_pod_labels, target)
    crd_names = await discovery.find_test_crd_names(
        discovery_config.target_crd_filters, diagnostics
    )
    return target, crd_names, diagnostics
