"""prowmetrics configuration management."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from prowmetrics.engine.urls import HostRewrite
from prowmetrics.models import DEFAULT_FETCH_TIMEOUT, LISTING_BUCKET_PATH

logger = logging.getLogger("prowmetrics.config")

PROJECT_DIR_NAME = ".prowmetrics"

_PREFIX_FIELDS = ("viewer_prefix", "listing_prefix", "storage_prefix")

ENV_OVERRIDES = {
    "viewer_prefix": "PROWMETRICS_VIEWER_PREFIX",
    "listing_prefix": "PROWMETRICS_LISTING_PREFIX",
    "storage_prefix": "PROWMETRICS_STORAGE_PREFIX",
}
ENV_TIMEOUT_KEY = "PROWMETRICS_TIMEOUT"


class ProwMetricsConfigError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


@dataclass
class ProwMetricsConfig:
    """Host prefixes and request settings for archive resolution."""

    # Required, no defaults: these depend on the CI deployment
    viewer_prefix: str = ""  # e.g. https://prow.svc.ci.openshift.org/view
    listing_prefix: str = ""  # e.g. https://gcsweb-ci.svc.ci.openshift.org
    storage_prefix: str = ""  # e.g. https://storage.googleapis.com

    # Behavior
    timeout: float = DEFAULT_FETCH_TIMEOUT

    # Paths
    project_dir: Path = field(default_factory=lambda: Path(PROJECT_DIR_NAME))

    @classmethod
    def from_file(cls, config_path: Path) -> ProwMetricsConfig:
        """Load config from a YAML file."""
        if not config_path.exists():
            raise ProwMetricsConfigError(f"Config file not found: {config_path}\n\nTo fix: prowmetrics init")
        with open(config_path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ProwMetricsConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ProwMetricsConfigError(f"Config file {config_path} must contain a mapping")
        return cls._from_dict(data, config_path.parent)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_dir: Path) -> ProwMetricsConfig:
        """Create config from a dictionary."""
        config = cls()
        config.project_dir = project_dir

        for key in _PREFIX_FIELDS:
            if key in data and data[key] is not None:
                setattr(config, key, str(data[key]).rstrip("/"))
        if "timeout" in data:
            try:
                config.timeout = float(data["timeout"])
            except (TypeError, ValueError) as exc:
                raise ProwMetricsConfigError(f"Invalid timeout: {data['timeout']!r}") from exc

        return config

    def apply_env(self) -> ProwMetricsConfig:
        """Override fields from PROWMETRICS_* environment variables, in place."""
        for key, env_key in ENV_OVERRIDES.items():
            if value := os.environ.get(env_key):
                setattr(self, key, value.rstrip("/"))

        env_timeout = os.environ.get(ENV_TIMEOUT_KEY)
        if env_timeout is not None:
            try:
                val = float(env_timeout)
                if val <= 0:
                    raise ValueError
                self.timeout = val
            except ValueError:
                logger.warning(
                    "Ignoring invalid %s value: %r (expected a positive number)",
                    ENV_TIMEOUT_KEY,
                    env_timeout,
                )
        return self

    def validate(self) -> None:
        """Raise ProwMetricsConfigError if a required field is missing or invalid."""
        missing = [key for key in _PREFIX_FIELDS if not getattr(self, key)]
        if missing:
            env_hint = "\n".join(f"  export {ENV_OVERRIDES[key]}=..." for key in missing)
            raise ProwMetricsConfigError(
                f"Missing required host prefix setting(s): {', '.join(missing)}\n\n"
                "To fix: prowmetrics init\n"
                f"  or:\n{env_hint}"
            )
        if self.timeout <= 0:
            raise ProwMetricsConfigError(f"timeout must be positive, got {self.timeout}")

    # ── Rewrite rules ─────────────────────────────────────────────────────

    @property
    def viewer_rewrite(self) -> HostRewrite:
        """Prow viewer URL -> gcsweb listing URL."""
        return HostRewrite(self.viewer_prefix, self.listing_prefix)

    @property
    def storage_rewrite(self) -> HostRewrite:
        """gcsweb ``/gcs`` listing URL -> public storage URL."""
        return HostRewrite(self.listing_prefix + LISTING_BUCKET_PATH, self.storage_prefix)

    def listing_url(self, href: str) -> str:
        """Turn a host-relative listing href into an absolute listing URL."""
        return self.listing_prefix + href


def find_project_dir() -> Path:
    """Locate the .prowmetrics/ project directory by searching upward from cwd."""
    current = Path.cwd()
    for base in [current, *current.parents]:
        candidate = base / PROJECT_DIR_NAME
        if candidate.is_dir():
            return candidate
    return current / PROJECT_DIR_NAME


def load_config(project_dir: Path | None = None) -> ProwMetricsConfig:
    """Load config.yaml (if present), apply env overrides and validate."""
    project_dir = project_dir or find_project_dir()
    config_path = project_dir / "config.yaml"
    if config_path.is_file():
        config = ProwMetricsConfig.from_file(config_path)
    else:
        config = ProwMetricsConfig(project_dir=project_dir)
    config.apply_env()
    config.validate()
    return config
