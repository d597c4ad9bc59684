"""
Structured failure records collected during a discovery run.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

STEP_PODS = "pods"
STEP_POD_TESTS = "pod_tests"
STEP_EXCLUDED_CONTAINERS = "excluded_containers"
STEP_OPERATORS = "operators"
STEP_OPERATOR_TESTS = "operator_tests"
STEP_SUBSCRIPTION = "subscription_name"
STEP_DEPLOYMENTS = "deployments"
STEP_NODES = "nodes"
STEP_CRDS = "crds"
STEP_TEST_CATALOG = "test_catalog"


@dataclass
class FailureRecord:
    step: str
    kind: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "kind": self.kind,
            "message": self.message,
            "context": self.context,
        }


class Diagnostics:
    """Collects what went wrong in each step without interrupting discovery."""

    def __init__(self):
        self.records: List[FailureRecord] = []

    def record(self, step: str, error: Exception, **context: Any) -> FailureRecord:
        entry = FailureRecord(
            step=step,
            kind=type(error).__name__,
            message=str(error),
            context=context,
        )
        self.records.append(entry)
        return entry

    def by_step(self, step: str) -> List[FailureRecord]:
        return [r for r in self.records if r.step == step]

    def kinds(self) -> List[str]:
        return [r.kind for r in self.records]

    @property
    def ok(self) -> bool:
        return not self.records

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)
