"""Tests for CRD discovery."""

import json

import pytest

from autodiscover.crds import (
    GET_CLUSTER_CRD_NAMES_COMMAND,
    filter_crd_names,
    find_crd_names,
    get_cluster_crd_names,
)
from autodiscover.diagnostics import STEP_CRDS, Diagnostics
from autodiscover.errors import CommandFailure, DecodeFailure
from autodiscover.models import CrdFilter
from tests.utils import FakeExecutor

CLUSTER_CRDS = ["foo.acme.io", "bar.example.com", "baz.acme.io"]


def _executor(output):
    return FakeExecutor({"kubectl get crd": output})


def test_filter_keeps_cluster_order():
    assert filter_crd_names(CLUSTER_CRDS, [CrdFilter("acme.io")]) == ["foo.acme.io", "baz.acme.io"]


def test_filter_no_duplicates_for_overlapping_filters():
    filters = [CrdFilter("acme.io"), CrdFilter(".acme.io"), CrdFilter("example.com")]
    assert filter_crd_names(CLUSTER_CRDS, filters) == CLUSTER_CRDS


def test_filter_without_filters():
    assert filter_crd_names(CLUSTER_CRDS, []) == []


@pytest.mark.asyncio
class TestFindCrdNames:
    async def test_matches_suffix(self):
        executor = _executor(json.dumps(CLUSTER_CRDS))

        names = await find_crd_names(executor, [CrdFilter("acme.io"), CrdFilter("acme.io")])

        assert names == ["foo.acme.io", "baz.acme.io"]
        assert executor.calls == [GET_CLUSTER_CRD_NAMES_COMMAND]

    async def test_invalid_json_gives_empty_result(self):
        diagnostics = Diagnostics()

        names = await find_crd_names(_executor("error: not json"), [CrdFilter("acme.io")], diagnostics)

        assert names == []
        assert diagnostics.by_step(STEP_CRDS)[0].kind == "DecodeFailure"

    async def test_command_failure_gives_empty_result(self):
        diagnostics = Diagnostics()
        executor = _executor(CommandFailure("jq: command not found", command=GET_CLUSTER_CRD_NAMES_COMMAND))

        assert await find_crd_names(executor, [CrdFilter("acme.io")], diagnostics) == []
        assert diagnostics.kinds() == ["CommandFailure"]


@pytest.mark.asyncio
class TestGetClusterCrdNames:
    async def test_decodes_list(self):
        assert await get_cluster_crd_names(_executor('[\n  "a.b.io"\n]\n')) == ["a.b.io"]

    @pytest.mark.parametrize("output", ['{"items": []}', "[1, 2]", ""])
    async def test_rejects_other_shapes(self, output):
        with pytest.raises(DecodeFailure):
            await get_cluster_crd_names(_executor(output))
