"""
CRD discovery by name suffix.
"""

import json
from typing import List, Optional, Sequence

import structlog

from .config import settings
from .diagnostics import STEP_CRDS, Diagnostics
from .errors import DecodeFailure, QueryFailure
from .executor import CommandExecutor
from .models import CrdFilter

logger = structlog.get_logger(__name__)

GET_CLUSTER_CRD_NAMES_COMMAND = "kubectl get crd -o json | jq '[.items[].metadata.name]'"


async def get_cluster_crd_names(
    executor: CommandExecutor, timeout: Optional[float] = None
) -> List[str]:
    """All CRD names in the cluster, in the order the API returns them.

    Raises QueryFailure when the command fails and DecodeFailure when its
    output is not a JSON list of strings.
    """
    output = await executor.run(
        GET_CLUSTER_CRD_NAMES_COMMAND,
        timeout if timeout is not None else settings.command_timeout_seconds,
        on_failure=lambda: logger.error(
            "Can't run command", command=GET_CLUSTER_CRD_NAMES_COMMAND
        ),
    )
    try:
        names = json.loads(output)
    except ValueError as e:
        raise DecodeFailure(f"invalid CRD name list: {e}") from e
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise DecodeFailure("CRD name list is not a JSON array of strings")
    return names


def filter_crd_names(
    cluster_crd_names: Sequence[str], crd_filters: Sequence[CrdFilter]
) -> List[str]:
    """Keep the names matching any filter, preserving cluster order."""
    target_crd_names = []
    for crd_name in cluster_crd_names:
        for crd_filter in crd_filters:
            if crd_filter.matches(crd_name):
                target_crd_names.append(crd_name)
                break
    return target_crd_names


async def find_crd_names(
    executor: CommandExecutor,
    crd_filters: Sequence[CrdFilter],
    diagnostics: Optional[Diagnostics] = None,
) -> List[str]:
    """CRD names matching the configured filters; [] if the listing fails."""
    try:
        cluster_crd_names = await get_cluster_crd_names(executor)
    except (QueryFailure, DecodeFailure) as e:
        logger.error("Unable to get cluster CRDs", error=str(e))
        if diagnostics is not None:
            diagnostics.record(STEP_CRDS, e)
        return []

    target_crd_names = filter_crd_names(cluster_crd_names, crd_filters)
    logger.info(
        "CRD discovery complete",
        cluster_crds=len(cluster_crd_names),
        targets=len(target_crd_names),
    )
    return target_crd_names
