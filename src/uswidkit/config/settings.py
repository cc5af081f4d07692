"""uswidkit config models and loading helpers."""

from __future__ import annotations

import json
import uuid
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

CONFIG_DIR_NAME = ".uswidkit"


class StreamSettings(BaseModel):
    """Record stream decoding policy."""

    model_config = ConfigDict(extra="forbid")

    strict_payload_length: bool = True


class OutputSettings(BaseModel):
    """Defaults applied when writing collections."""

    model_config = ConfigDict(extra="forbid")

    compress: bool = False
    json_indent: int = Field(default=4, ge=0, le=16)


class GeneratorSettings(BaseModel):
    """Values used when synthesizing identities from key-value sources."""

    model_config = ConfigDict(extra="forbid")

    tag_creator_name: str = Field(default="uswidkit (auto-generated)", min_length=1)
    tag_creator_regid: str | None = None
    tag_id_namespace: uuid.UUID = uuid.NAMESPACE_DNS


class UswidConfig(BaseModel):
    """Root uswidkit configuration model."""

    model_config = ConfigDict(extra="forbid")

    stream: StreamSettings = StreamSettings()
    output: OutputSettings = OutputSettings()
    generator: GeneratorSettings = GeneratorSettings()


class ConfigError(RuntimeError):
    """Raised when config cannot be decoded or validated."""


def default_config_file(root: Path | None = None) -> Path:
    """Return the config path for a workspace root, preferring existing YAML.

    Args:
        root: Workspace root; defaults to the current directory.

    Returns:
        Config file path (may not exist).
    """
    config_dir = (root or Path.cwd()) / CONFIG_DIR_NAME
    yaml_path = config_dir / "config.yaml"
    json_path = config_dir / "config.json"
    if yaml_path.exists():
        return yaml_path
    if json_path.exists():
        return json_path
    return yaml_path


def _decode_config_payload(path: Path) -> dict[str, object]:
    """Decode config payload from JSON or YAML.

    Args:
        path: Config file path.

    Returns:
        Parsed mapping payload.

    Raises:
        ConfigError: If decode fails or payload is not an object.
    """
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid config JSON: {exc}") from exc
    else:
        try:
            payload = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid config YAML: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError("Invalid config payload: root must be an object")
    return payload


def load_config(path: Path) -> UswidConfig:
    """Load config from disk, defaulting when missing.

    Args:
        path: Config file path.

    Returns:
        Parsed config, or defaults when the file does not exist.

    Raises:
        ConfigError: If payload decode or validation fails.
    """
    if not path.exists():
        return UswidConfig()
    payload = _decode_config_payload(path)
    try:
        return UswidConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config payload: {exc}") from exc
