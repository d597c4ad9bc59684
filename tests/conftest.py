"""Shared test fixtures for cnf-autodiscover."""

import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from autodiscover.catalog import StaticTestCatalog
from tests.utils import OPERATOR_TEST_GROUPS, POD_TEST_GROUPS, FakeExecutor

# ---------------------------------------------------------------------------
# Environment fixture (needed by any test that instantiates Settings)
# ---------------------------------------------------------------------------


@pytest.fixture
def settings_env(monkeypatch):
    """Set minimal environment for Settings to load."""
    monkeypatch.setenv("AUTODISCOVER_NAMESPACE", "")
    monkeypatch.setenv("AUTODISCOVER_COMMAND_TIMEOUT_SECONDS", "10")


# ---------------------------------------------------------------------------
# Singleton reset fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Reset all module-level singletons between tests."""
    modules_and_attrs = [
        ("autodiscover.k8s_client", "_k8s_client"),
        ("autodiscover.executor", "_executor"),
        ("autodiscover.catalog", "_test_catalog"),
    ]

    yield

    for mod_path, attr in modules_and_attrs:
        mod = sys.modules.get(mod_path)
        if mod is not None:
            setattr(mod, attr, None)


# ---------------------------------------------------------------------------
# Fake command executor and test catalog
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def static_catalog():
    return StaticTestCatalog(
        pod_tests=POD_TEST_GROUPS, operator_tests=OPERATOR_TEST_GROUPS
    )


# ---------------------------------------------------------------------------
# Mock K8s client
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_k8s_client(settings_env):
    """Return a K8sClient with all K8s API objects mocked.

    Typed list results pass through serialization unchanged, so tests can
    hand in plain dicts as list items.
    """
    with patch("autodiscover.k8s_client.config"):
        with patch("autodiscover.k8s_client.client") as mock_client:
            api_client = MagicMock()
            api_client.sanitize_for_serialization.side_effect = lambda obj: obj
            mock_client.ApiClient.return_value = api_client
            mock_client.CoreV1Api.return_value = MagicMock()
            mock_client.AppsV1Api.return_value = MagicMock()
            mock_client.CustomObjectsApi.return_value = MagicMock()

            from autodiscover.k8s_client import K8sClient

            k = K8sClient()
            yield k


@pytest.fixture
def fake_cluster():
    """A K8sClient stand-in whose label queries read from in-memory dicts.

    Fill ``pods``, ``deployments`` and ``csvs`` keyed by label selector; put
    an exception under a selector to make that query raise it.
    """
    k8s = MagicMock()
    k8s.pods = {}
    k8s.deployments = {}
    k8s.csvs = {}

    def _lookup(store):
        async def _query(label, namespace=None):
            result = store.get(label.selector(), [])
            if isinstance(result, Exception):
                raise result
            return list(result)

        return _query

    k8s.get_pods_by_label = AsyncMock(side_effect=_lookup(k8s.pods))
    k8s.get_deployments_by_label = AsyncMock(side_effect=_lookup(k8s.deployments))
    k8s.get_csvs_by_label = AsyncMock(side_effect=_lookup(k8s.csvs))
    return k8s
