"""Raw resource builders and fakes shared by the test modules."""

import json
from typing import Any, Callable, Dict, List, Optional, Union

from autodiscover.errors import CommandFailure

POD_TEST_GROUPS = ["generic", "diagnostic", "lifecycle", "networking"]
OPERATOR_TEST_GROUPS = ["operator"]


def make_pod(
    name: str,
    namespace: str = "tnf",
    containers: Optional[List[str]] = None,
    annotations: Optional[Dict[str, str]] = None,
    service_account: str = "default",
    node_name: str = "worker-0",
) -> Dict[str, Any]:
    """Build a pod dict in the API's camelCase JSON shape."""
    containers = containers if containers is not None else ["app"]
    return {
        "metadata": {
            "name": name,
            "namespace": namespace,
            "annotations": annotations or {},
        },
        "spec": {
            "serviceAccountName": service_account,
            "nodeName": node_name,
            "containers": [{"name": c, "image": f"quay.io/tnf/{c}"} for c in containers],
        },
        "status": {
            "containerStatuses": [
                {"name": c, "containerID": f"cri-o://{name}-{c}-id"} for c in containers
            ]
        },
    }


def make_csv(
    name: str,
    namespace: str = "tnf",
    annotations: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    return {
        "apiVersion": "operators.coreos.com/v1alpha1",
        "kind": "ClusterServiceVersion",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "annotations": annotations or {},
        },
    }


def make_deployment(name: str, namespace: str = "tnf", replicas: int = 2) -> Dict[str, Any]:
    return {
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"replicas": replicas},
    }


def tnf_annotation(key: str, values: List[str]) -> Dict[str, str]:
    return {f"test-network-function.com/{key}": json.dumps(values)}


class FakeExecutor:
    """Dict-backed CommandExecutor stand-in.

    Maps a substring of the command to either its output or an exception.
    """

    def __init__(self, responses: Optional[Dict[str, Union[str, Exception]]] = None):
        self.responses: Dict[str, Union[str, Exception]] = dict(responses or {})
        self.calls: List[str] = []

    async def run(
        self,
        command: str,
        timeout: Optional[float] = None,
        on_failure: Optional[Callable[[], None]] = None,
    ) -> str:
        self.calls.append(command)
        for fragment, response in self.responses.items():
            if fragment in command:
                if isinstance(response, Exception):
                    if on_failure is not None:
                        on_failure()
                    raise response
                return response
        if on_failure is not None:
            on_failure()
        raise CommandFailure("no canned response", command=command)
