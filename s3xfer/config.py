"""Configuration loading with priority: env > config file > preset > defaults.

Credentials are never read from files: they come from the ``S3_KEY_ID`` and
``S3_KEY_SECRET`` environment variables only (see :func:`credentials_from_env`).
"""

from __future__ import annotations

import importlib.resources
import os
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from s3xfer.exceptions import ConfigError, MissingCredentialError

if TYPE_CHECKING:
    from collections.abc import Mapping

CONFIG_DIR = Path.home() / ".config" / "s3xfer"
CONFIG_PATH = CONFIG_DIR / "config.yaml"

ENV_KEY_ID = "S3_KEY_ID"
ENV_KEY_SECRET = "S3_KEY_SECRET"  # noqa: S105
SOURCE_LABEL = "loaded-from-custom-env"
"""Provenance tag attached to environment credentials (diagnostics only)."""


def get_config_path(config_path: Path | None = None) -> Path:
    """Return path to config file.

    Uses *config_path* if provided, otherwise S3XFER_CONFIG env var,
    otherwise default CONFIG_PATH.
    """
    if config_path is not None:
        return config_path
    path = os.environ.get("S3XFER_CONFIG")
    return Path(path) if path else CONFIG_PATH


def _load_preset_data() -> dict[str, object]:
    """Load the bundled preset YAML and return raw dict."""
    ref = importlib.resources.files("s3xfer.presets").joinpath("default.yaml")
    data = yaml.safe_load(ref.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        return data
    return {}


def _load_raw_yaml(path: Path) -> dict[str, object]:
    """Load a YAML file and return its top-level mapping (or empty dict)."""
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Malformed YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        logger.warning(f"Invalid config format in {path}; expected mapping.")
        return {}
    return data


# ---------------------------------------------------------------------------
# Credentials and client config
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Static access key pair, treated as opaque strings."""

    model_config = ConfigDict(frozen=True)

    access_key_id: str
    secret_access_key: str = Field(repr=False)


class ClientConfig(BaseModel):
    """Everything needed to build a storage client.  Immutable."""

    model_config = ConfigDict(frozen=True)

    region: str
    access_key_id: str
    secret_access_key: str = Field(repr=False)
    source_label: str = SOURCE_LABEL
    endpoint_url: str | None = None
    timeout: float | None = None


def credentials_from_env(environ: Mapping[str, str] | None = None) -> Credentials:
    """Read the access key pair from the environment.

    An unset or empty variable raises :class:`MissingCredentialError`
    naming that variable.
    """
    env = os.environ if environ is None else environ
    key_id = env.get(ENV_KEY_ID)
    if not key_id:
        raise MissingCredentialError(ENV_KEY_ID)
    key_secret = env.get(ENV_KEY_SECRET)
    if not key_secret:
        raise MissingCredentialError(ENV_KEY_SECRET)
    return Credentials(access_key_id=key_id, secret_access_key=key_secret)


# ---------------------------------------------------------------------------
# Store settings (bucket / region / endpoint)
# ---------------------------------------------------------------------------


class StoreSettings(BaseModel):
    """Target bucket and connection settings."""

    bucket: str = ""
    region: str = ""
    endpoint_url: str | None = None
    timeout: float | None = None

    @classmethod
    def _from_store_section(cls, data: dict[str, object]) -> StoreSettings:
        """Build from a raw YAML top-level dict (reads the ``store`` key)."""
        section = data.get("store", {})
        if not isinstance(section, dict):
            return cls()
        return cls(**{k: v for k, v in section.items() if k in cls.model_fields})

    @classmethod
    def from_file(cls, path: Path = CONFIG_PATH) -> StoreSettings:
        """Load settings from a YAML file.  Returns empty settings if missing."""
        if not path.is_file():
            return cls()
        logger.trace(f"Loading config from {path}")
        try:
            return cls._from_store_section(_load_raw_yaml(path))
        except ValidationError as e:
            raise ConfigError(f"Invalid store settings in {path}: {e}") from e

    @classmethod
    def from_env(cls) -> StoreSettings:
        """Build settings from environment variables."""
        timeout = os.environ.get("S3XFER_TIMEOUT")
        try:
            parsed_timeout = float(timeout) if timeout else None
        except ValueError as e:
            raise ConfigError(f"S3XFER_TIMEOUT is not a number: {timeout!r}") from e
        return cls(
            bucket=os.environ.get("S3XFER_BUCKET", ""),
            region=os.environ.get("S3XFER_REGION", ""),
            endpoint_url=os.environ.get("S3XFER_ENDPOINT_URL") or None,
            timeout=parsed_timeout,
        )

    def merge(self, override: StoreSettings) -> StoreSettings:
        """Return new settings where *override* values take priority over self.

        Only non-empty / non-None values from *override* win.
        """
        return StoreSettings(
            bucket=override.bucket or self.bucket,
            region=override.region or self.region,
            endpoint_url=override.endpoint_url or self.endpoint_url,
            timeout=override.timeout if override.timeout is not None else self.timeout,
        )

    @classmethod
    def load(cls, config_path: Path | None = None) -> StoreSettings:
        """Merge preset, file, and env: preset < file < env."""
        preset = cls._from_store_section(_load_preset_data())
        file_cfg = cls.from_file(get_config_path(config_path))
        return preset.merge(file_cfg).merge(cls.from_env())

    def save_to_file(self, path: Path = CONFIG_PATH) -> Path:
        """Write the ``store`` section, preserving other top-level sections."""
        path.parent.mkdir(parents=True, exist_ok=True)
        existing = _load_raw_yaml(path)
        existing["store"] = self.model_dump(exclude_none=True)
        content = yaml.safe_dump(existing, default_flow_style=False, sort_keys=False)
        if not content.endswith("\n"):
            content += "\n"
        path.write_text(content, encoding="utf-8")
        logger.info(f"Config saved to {path}")
        return path
