"""
Kubernetes client wrapper for label-based resource queries.

Every query is read-only. Results are returned as plain dicts in the API's
camelCase JSON shape so that entity builders read one format regardless of
whether the resource came from a typed API or the CustomObjects API.
"""

import asyncio
from typing import Any, Dict, List, Optional

import structlog
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from .config import settings
from .errors import QueryFailure
from .models import Label

logger = structlog.get_logger(__name__)

CSV_GROUP = "operators.coreos.com"
CSV_VERSION = "v1alpha1"
CSV_PLURAL = "clusterserviceversions"

KIND_POD = "pods"
KIND_DEPLOYMENT = "deployments"
KIND_CSV = "csvs"


class K8sClient:
    """Kubernetes client limited to the list queries discovery needs."""

    def __init__(self):
        # Load kubeconfig
        try:
            if settings.kubeconfig_path:
                config.load_kube_config(settings.kubeconfig_path)
            else:
                config.load_incluster_config()
        except config.ConfigException:
            logger.warning("Failed to load in-cluster config, trying kubeconfig")
            config.load_kube_config()

        self.api_client = client.ApiClient()
        self.core_v1 = client.CoreV1Api(self.api_client)
        self.apps_v1 = client.AppsV1Api(self.api_client)
        self.custom_objects = client.CustomObjectsApi(self.api_client)

    # =========================================================================
    # LABEL QUERIES
    # =========================================================================

    async def query_by_label(
        self, kind: str, label: Label, namespace: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """List resources of ``kind`` matching ``label``.

        A blank namespace queries all namespaces. Raises QueryFailure on any
        API or transport error; no retries are attempted.
        """
        selector = label.selector()
        ns = (namespace or "").strip()
        logger.debug("Querying by label", kind=kind, selector=selector, namespace=ns)
        try:
            if kind == KIND_POD:
                items = await self._list_typed(
                    self.core_v1.list_namespaced_pod,
                    self.core_v1.list_pod_for_all_namespaces,
                    selector,
                    ns,
                )
            elif kind == KIND_DEPLOYMENT:
                items = await self._list_typed(
                    self.apps_v1.list_namespaced_deployment,
                    self.apps_v1.list_deployment_for_all_namespaces,
                    selector,
                    ns,
                )
            elif kind == KIND_CSV:
                items = await self._list_csvs(selector, ns)
            else:
                raise QueryFailure(
                    f"unsupported resource kind: {kind}",
                    kind=kind,
                    selector=selector,
                    namespace=ns,
                )
        except QueryFailure:
            raise
        except ApiException as e:
            raise QueryFailure(
                f"API error listing {kind}: {e.status} {e.reason}",
                kind=kind,
                selector=selector,
                namespace=ns,
            ) from e
        except Exception as e:
            raise QueryFailure(
                f"failed to list {kind}: {e}",
                kind=kind,
                selector=selector,
                namespace=ns,
            ) from e

        logger.debug("Label query complete", kind=kind, selector=selector, count=len(items))
        return items

    async def get_pods_by_label(
        self, label: Label, namespace: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.query_by_label(KIND_POD, label, namespace)

    async def get_deployments_by_label(
        self, label: Label, namespace: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.query_by_label(KIND_DEPLOYMENT, label, namespace)

    async def get_csvs_by_label(
        self, label: Label, namespace: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.query_by_label(KIND_CSV, label, namespace)

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _list_typed(self, namespaced_fn, all_fn, selector: str, namespace: str):
        if namespace:
            resp = await asyncio.to_thread(
                namespaced_fn, namespace, label_selector=selector
            )
        else:
            resp = await asyncio.to_thread(all_fn, label_selector=selector)
        return [
            self.api_client.sanitize_for_serialization(item)
            for item in (resp.items or [])
        ]

    async def _list_csvs(self, selector: str, namespace: str):
        if namespace:
            resp = await asyncio.to_thread(
                self.custom_objects.list_namespaced_custom_object,
                group=CSV_GROUP,
                version=CSV_VERSION,
                namespace=namespace,
                plural=CSV_PLURAL,
                label_selector=selector,
            )
        else:
            resp = await asyncio.to_thread(
                self.custom_objects.list_cluster_custom_object,
                group=CSV_GROUP,
                version=CSV_VERSION,
                plural=CSV_PLURAL,
                label_selector=selector,
            )
        if not isinstance(resp, dict):
            raise QueryFailure(
                "unexpected CSV list payload",
                kind=KIND_CSV,
                selector=selector,
                namespace=namespace,
            )
        return list(resp.get("items") or [])


# Global client instance
_k8s_client: Optional[K8sClient] = None


def get_k8s_client() -> K8sClient:
    """Get or create K8s client singleton."""
    global _k8s_client
    if _k8s_client is None:
        _k8s_client = K8sClient()
    return _k8s_client
