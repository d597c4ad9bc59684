"""
Catalog entities produced by target discovery.
"""

from dataclasses import dataclass, field
from typing import Dict, List

ANY_LABEL_VALUE = ""

MASTER_LABEL = "node-role.kubernetes.io/master"
WORKER_LABEL = "node-role.kubernetes.io/worker"


@dataclass(frozen=True)
class Label:
    """A label selector; an empty value matches any value for the key."""

    prefix: str
    name: str
    value: str = ANY_LABEL_VALUE

    @property
    def key(self) -> str:
        if self.prefix:
            return f"{self.prefix}/{self.name}"
        return self.name

    def selector(self) -> str:
        """Render the Kubernetes label selector for this label."""
        if self.value == ANY_LABEL_VALUE:
            return self.key
        return f"{self.key}={self.value}"


@dataclass(frozen=True)
class CrdFilter:
    name_suffix: str

    def matches(self, crd_name: str) -> bool:
        return crd_name.endswith(self.name_suffix)


@dataclass
class Pod:
    namespace: str
    name: str
    service_account: str = ""
    container_count: int = 0
    tests: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ContainerIdentifier:
    namespace: str
    pod_name: str
    container_name: str
    node_name: str = ""
    container_uid: str = ""


@dataclass
class Container:
    identifier: ContainerIdentifier
    default_network_device: str = "eth0"
    multus_ip_addresses: List[str] = field(default_factory=list)


@dataclass
class Operator:
    name: str
    namespace: str
    subscription_name: str = ""
    tests: List[str] = field(default_factory=list)


@dataclass
class Deployment:
    name: str
    namespace: str
    replicas: int = 0


@dataclass
class Node:
    name: str
    labels: List[str] = field(default_factory=list)

    def is_master(self) -> bool:
        return MASTER_LABEL in self.labels

    def is_worker(self) -> bool:
        return WORKER_LABEL in self.labels


@dataclass
class TestTarget:
    """The catalog handed to the test engine."""

    __test__ = False

    pods_under_test: List[Pod] = field(default_factory=list)
    container_config_list: List[Container] = field(default_factory=list)
    operators: List[Operator] = field(default_factory=list)
    deployments_under_test: List[Deployment] = field(default_factory=list)
    nodes: Dict[str, Node] = field(default_factory=dict)
    exclude_containers_from_connectivity_tests: List[ContainerIdentifier] = field(
        default_factory=list
    )


@dataclass
class DiscoveryConfig:
    target_pod_labels: List[Label] = field(default_factory=list)
    target_crd_filters: List[CrdFilter] = field(default_factory=list)
