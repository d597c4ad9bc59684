"""
Node role classification.

Master and worker nodes are listed by two independent queries and merged into
one map keyed by node name; a node in both queries carries both role labels.
"""

from typing import Dict, List, Optional

import structlog

from .config import settings
from .diagnostics import STEP_NODES, Diagnostics
from .errors import QueryFailure
from .executor import CommandExecutor
from .models import MASTER_LABEL, WORKER_LABEL, Node

logger = structlog.get_logger(__name__)

NODE_ROLE_LABELS = (MASTER_LABEL, WORKER_LABEL)


def node_names_command(role_label: str) -> str:
    return (
        f"kubectl get nodes -l {role_label} "
        "-o jsonpath='{.items[*].metadata.name}'"
    )


class NodeClassifier:
    """Builds the role-tagged node map."""

    def __init__(
        self,
        executor: CommandExecutor,
        timeout: Optional[float] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self._executor = executor
        self._timeout = timeout if timeout is not None else settings.command_timeout_seconds
        self._diagnostics = diagnostics

    async def get_node_names(self, role_label: str) -> List[str]:
        """Names of the nodes carrying ``role_label``; raises QueryFailure."""
        command = node_names_command(role_label)
        output = await self._executor.run(
            command,
            self._timeout,
            on_failure=lambda: logger.error("Can't run command", command=command),
        )
        return output.split()

    async def classify(self) -> Dict[str, Node]:
        nodes: Dict[str, Node] = {}
        for role_label in NODE_ROLE_LABELS:
            try:
                names = await self.get_node_names(role_label)
            except QueryFailure as e:
                logger.error("Unable to get node list", role=role_label, error=str(e))
                if self._diagnostics is not None:
                    self._diagnostics.record(STEP_NODES, e, role=role_label)
                continue

            for name in names:
                node = nodes.setdefault(name, Node(name=name))
                if role_label not in node.labels:
                    node.labels.append(role_label)

        logger.info(
            "Node classification complete",
            masters=sum(1 for n in nodes.values() if n.is_master()),
            workers=sum(1 for n in nodes.values() if n.is_worker()),
        )
        return nodes
