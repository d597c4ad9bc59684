"""
Configuration for CNF Autodiscover.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic_settings import BaseSettings

from .errors import ConfigLoadFailure
from .models import CrdFilter, DiscoveryConfig, Label


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Kubernetes
    # Uses in-cluster config by default
    kubeconfig_path: Optional[str] = None
    # Empty means cluster-wide
    namespace: str = ""

    # Labels and annotations
    annotation_prefix: str = "test-network-function.com"
    label_prefix: str = "test-network-function.com"

    # Command executor
    command_timeout_seconds: float = 10.0

    # Test definitions (fallback when annotations are absent)
    configured_test_file: str = "testconfigure.yml"

    # Target labels and CRD filters
    discovery_config_file: str = "tnf_config.yml"

    # Containers
    default_network_device: str = "eth0"

    # Collapse pods/deployments matched by more than one label
    dedupe_targets: bool = False

    # Logging
    log_level: str = "info"
    log_json: bool = False

    class Config:
        env_prefix = "AUTODISCOVER_"


settings = Settings()


def load_discovery_config(path: Optional[str] = None) -> DiscoveryConfig:
    """Load target pod labels and CRD filters from a YAML file.

    The file uses the same keys as the certification suite configuration::

        targetPodLabels:
          - prefix: test-network-function.com
            name: generic
            value: target
        targetCrdFilters:
          - nameSuffix: group1.test.com
    """
    config_path = Path(path or settings.discovery_config_file)
    try:
        with open(config_path, encoding="utf-8") as fhandle:
            raw = yaml.safe_load(fhandle)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigLoadFailure(str(exc), path=str(config_path)) from exc

    if raw is None:
        return DiscoveryConfig()
    if not isinstance(raw, dict):
        raise ConfigLoadFailure(
            "discovery config must be a mapping", path=str(config_path)
        )

    try:
        labels = [
            Label(
                prefix=str(item.get("prefix") or ""),
                name=str(item["name"]),
                value=str(item.get("value") or ""),
            )
            for item in raw.get("targetPodLabels") or []
        ]
        crd_filters = [
            CrdFilter(name_suffix=str(item["nameSuffix"]))
            for item in raw.get("targetCrdFilters") or []
        ]
    except (KeyError, TypeError, AttributeError) as exc:
        raise ConfigLoadFailure(
            f"invalid discovery config entry: {exc}", path=str(config_path)
        ) from exc

    return DiscoveryConfig(target_pod_labels=labels, target_crd_filters=crd_filters)
