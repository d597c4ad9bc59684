"""
Configured test groups, used when a resource carries no test annotation.

The test-definition file lists the groups a full certification run would
execute::

    cnfTest:
      - name: generic
        tests: [...]
    operatorTest:
      - name: operator
        tests: [...]
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

import structlog
import yaml

from .config import settings
from .diagnostics import STEP_TEST_CATALOG, Diagnostics
from .errors import ConfigLoadFailure

logger = structlog.get_logger(__name__)


@dataclass
class TestGroup:
    __test__ = False

    name: str
    tests: List[str] = field(default_factory=list)


@dataclass
class ConfiguredTests:
    cnf_tests: List[TestGroup] = field(default_factory=list)
    operator_tests: List[TestGroup] = field(default_factory=list)


def _parse_groups(raw: Any, key: str) -> List[TestGroup]:
    entries = raw.get(key) or []
    if not isinstance(entries, list):
        raise ValueError(f"'{key}' must be a list")
    groups = []
    for entry in entries:
        if not isinstance(entry, dict) or "name" not in entry:
            raise ValueError(f"'{key}' entries need a name")
        tests = entry.get("tests") or []
        if not isinstance(tests, list):
            raise ValueError(f"'{key}' group '{entry['name']}' tests must be a list")
        groups.append(TestGroup(name=str(entry["name"]), tests=[str(t) for t in tests]))
    return groups


class TestCatalogProvider:
    """Reads test group names from the configured test-definition file."""

    __test__ = False

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.configured_test_file)

    def load_configured_tests(self) -> ConfiguredTests:
        """Parse the test-definition file; raises ConfigLoadFailure."""
        try:
            with open(self.path, encoding="utf-8") as fhandle:
                raw = yaml.safe_load(fhandle)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise ConfigLoadFailure(str(exc), path=str(self.path)) from exc

        if raw is None:
            return ConfiguredTests()
        if not isinstance(raw, dict):
            raise ConfigLoadFailure(
                "test definition file must be a mapping", path=str(self.path)
            )
        try:
            return ConfiguredTests(
                cnf_tests=_parse_groups(raw, "cnfTest"),
                operator_tests=_parse_groups(raw, "operatorTest"),
            )
        except ValueError as exc:
            raise ConfigLoadFailure(str(exc), path=str(self.path)) from exc

    def _group_names(
        self, section: str, diagnostics: Optional[Diagnostics] = None
    ) -> List[str]:
        try:
            configured = self.load_configured_tests()
        except ConfigLoadFailure as exc:
            logger.error(
                "Failed to load test definitions, continuing with no tests",
                path=str(self.path),
                section=section,
                error=str(exc),
            )
            if diagnostics is not None:
                diagnostics.record(
                    STEP_TEST_CATALOG, exc, path=str(self.path), section=section
                )
            return []
        names = [group.name for group in getattr(configured, section)]
        logger.info("Loaded test groups", path=str(self.path), section=section, groups=names)
        return names

    def get_configured_pod_tests(
        self, diagnostics: Optional[Diagnostics] = None
    ) -> List[str]:
        return self._group_names("cnf_tests", diagnostics)

    def get_configured_operator_tests(
        self, diagnostics: Optional[Diagnostics] = None
    ) -> List[str]:
        return self._group_names("operator_tests", diagnostics)


class StaticTestCatalog(TestCatalogProvider):
    """Fixed test groups, independent of any file."""

    def __init__(
        self,
        pod_tests: Optional[List[str]] = None,
        operator_tests: Optional[List[str]] = None,
    ):
        super().__init__(path="<static>")
        self._configured = ConfiguredTests(
            cnf_tests=[TestGroup(name=n) for n in pod_tests or []],
            operator_tests=[TestGroup(name=n) for n in operator_tests or []],
        )

    def load_configured_tests(self) -> ConfiguredTests:
        return self._configured


# Default provider backed by settings.configured_test_file
_test_catalog: Optional[TestCatalogProvider] = None


def get_test_catalog() -> TestCatalogProvider:
    """Get or create the default TestCatalogProvider."""
    global _test_catalog
    if _test_catalog is None:
        _test_catalog = TestCatalogProvider()
    return _test_catalog

