"""Manifest loading: the program name and description shown in usage banners."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cmdscribe.constants import MANIFEST_FILE_NAME
from cmdscribe.errors import ConfigError


@dataclass(frozen=True)
class Manifest:
    """Program metadata decoded from a manifest file."""

    name: str
    description: str

    @classmethod
    def from_dict(cls, payload: Any) -> "Manifest":
        """Create a manifest from a decoded JSON payload."""
        if not isinstance(payload, dict):
            raise ConfigError("Manifest must be a JSON object")
        return cls(
            name=_require_string_field(payload, "name", non_empty=True),
            description=_require_string_field(payload, "description"),
        )

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "description": self.description}


def _require_string_field(
    payload: dict[str, Any],
    field_name: str,
    *,
    non_empty: bool = False,
) -> str:
    value = payload.get(field_name)
    if not isinstance(value, str):
        suffix = " non-empty" if non_empty else ""
        raise ConfigError(f"{field_name} must be a{suffix} string")
    if non_empty and not value.strip():
        raise ConfigError(f"{field_name} must be a non-empty string")
    return value


def manifest_path_for(module_file: str | Path) -> Path:
    """Return the manifest path that sits beside a module file."""
    return Path(module_file).resolve().parent / MANIFEST_FILE_NAME


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest file.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed
    """
    manifest_path = Path(path)
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Manifest not found: {manifest_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in manifest {manifest_path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read manifest {manifest_path}: {e}") from e

    return Manifest.from_dict(payload)
