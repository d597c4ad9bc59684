"""Tests for annotation resolution."""

import pytest

from autodiscover.annotations import build_annotation_name, resolve_annotation
from autodiscover.errors import AnnotationMalformed, AnnotationMissing
from tests.utils import make_pod

KEY = "test-network-function.com/host_resource_tests"


def test_build_annotation_name_uses_vendor_prefix():
    assert build_annotation_name("operator_tests") == "test-network-function.com/operator_tests"


def test_resolves_list_of_strings():
    pod = make_pod("p", annotations={KEY: '["t1","t2"]'})
    assert resolve_annotation(pod, KEY) == ["t1", "t2"]


def test_empty_list_is_valid():
    pod = make_pod("p", annotations={KEY: "[]"})
    assert resolve_annotation(pod, KEY) == []


def test_missing_annotation():
    with pytest.raises(AnnotationMissing) as exc_info:
        resolve_annotation(make_pod("p"), KEY)
    assert exc_info.value.annotation == KEY


def test_resource_without_annotations_block():
    with pytest.raises(AnnotationMissing):
        resolve_annotation({"metadata": {"name": "p"}}, KEY)


@pytest.mark.parametrize(
    "raw",
    ['["t1",', '"generic"', '{"tests": ["t1"]}', "[1, 2]", '["t1", null]'],
)
def test_malformed_annotation(raw):
    pod = make_pod("p", annotations={KEY: raw})
    with pytest.raises(AnnotationMalformed):
        resolve_annotation(pod, KEY)
