"""StoreConfig: project-local settings for xmlstore files.

Looked up as ``xmlstore.toml`` in the working directory or any parent, or
taken from the path in ``$XMLSTORE_CONFIG``.

xmlstore.toml example:

    [store]
    encoding = "utf-8"
    indent = 2                   # 0 writes the document on one line
    xml_declaration = true
    id_attribute = "ID"
    reject_duplicate_ids = true  # false: insert allows repeats, first one wins on lookup
    on_decode_error = "skip"     # skip | raise (full scans only)
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = "xmlstore.toml"
_ENV_VAR = "XMLSTORE_CONFIG"
_DECODE_POLICIES = ("skip", "raise")


@dataclass
class StoreConfig:
    """Resolved store settings."""

    root: Path = field(default_factory=Path)      # directory holding xmlstore.toml
    encoding: str = "utf-8"
    indent: int = 2
    xml_declaration: bool = True
    id_attribute: str = "ID"
    reject_duplicate_ids: bool = True
    on_decode_error: str = "skip"

    def __post_init__(self) -> None:
        if self.on_decode_error not in _DECODE_POLICIES:
            msg = f"on_decode_error must be one of {_DECODE_POLICIES}, got {self.on_decode_error!r}"
            raise ValueError(msg)
        if self.indent < 0:
            msg = f"indent must be >= 0, got {self.indent}"
            raise ValueError(msg)
        if not self.id_attribute:
            msg = "id_attribute must not be empty"
            raise ValueError(msg)


def load_config(root: Path | str | None = None) -> StoreConfig:
    """Load xmlstore.toml from root (or $XMLSTORE_CONFIG, or search upward from cwd)."""
    env_path = os.environ.get(_ENV_VAR)
    if root is None and env_path:
        config_path = Path(env_path)
        root_path = config_path.parent
        if not config_path.exists():
            msg = f"{_ENV_VAR} points at a missing file: {config_path}"
            raise FileNotFoundError(msg)
    else:
        root_path = _find_root(Path(root) if root else Path.cwd())
        config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)

    section = raw.get("store", {})
    return StoreConfig(
        root=root_path,
        encoding=str(section.get("encoding", "utf-8")),
        indent=_as_int(section, "indent", 2),
        xml_declaration=bool(section.get("xml_declaration", True)),
        id_attribute=str(section.get("id_attribute", "ID")),
        reject_duplicate_ids=bool(section.get("reject_duplicate_ids", True)),
        on_decode_error=str(section.get("on_decode_error", "skip")),
    )


def _as_int(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"[store] {key} must be an integer, got {value!r}"
        raise ValueError(msg)
    return value


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for xmlstore.toml."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path) -> Path:
    """Write a default xmlstore.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"xmlstore.toml already exists at {config_path}"
        raise FileExistsError(msg)

    content = """\
[store]
# encoding = "utf-8"
# indent = 2                   # 0 writes the document on one line
# xml_declaration = true
# id_attribute = "ID"
# reject_duplicate_ids = true  # false: insert allows repeats, first one wins on lookup
# on_decode_error = "skip"     # skip | raise (full scans only)
"""
    root.mkdir(parents=True, exist_ok=True)
    config_path.write_text(content)
    return config_path
