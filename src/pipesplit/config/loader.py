# pipesplit/config/loader.py
"""
Project file loading.

A project file is YAML with these top-level sections:

    include:        optional list of other project files merged underneath
    params:         named values usable as ${name} anywhere below
    metadata:       free-form project information
    settings:       SplitSettings fields
    logging:        display_levels
    document:       levels, conduit_types, system_types, elements, systems,
                    connections, selection
    output_files:   cut_list, document
    workflow:       ordered list of {operation: ..., description: ...}
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Set, Optional

import yaml

from .errors import ConfigError, IncludeCycleError


_VAR_RE = re.compile(r"\$\{([^}]+)\}")  # ${name} or ${ENV:HOME}

KNOWN_OPERATIONS = (
    "select",
    "split_selected",
    "validate_split",
    "write_cut_list",
    "save_document",
)


def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge mapping b over mapping a and return a new mapping.
    Nested mappings merge recursively; lists and scalars from b replace a.
    """
    out = dict(a)
    for k, v in b.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _read_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise ConfigError(f"Project file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML '{path}': {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping/dict: {path}")
    return data


def _lookup(key: str, params: Dict[str, Any], source: str) -> Any:
    key = key.strip()
    if key.startswith("ENV:"):
        return os.environ.get(key.split(":", 1)[1].strip(), "")
    if key not in params:
        raise ConfigError(f"Unknown parameter '{key}' in string: {source}")
    return params[key]


def _resolve_string(s: str, params: Dict[str, Any]) -> Any:
    """
    Resolve ${var} substitutions.
    A string that is exactly one variable keeps the parameter's type, so
    max_segment_length: "${standard_length}" stays a float.
    """
    s = s.strip()
    m = _VAR_RE.fullmatch(s)
    if m:
        return _lookup(m.group(1), params, s)
    return _VAR_RE.sub(lambda match: str(_lookup(match.group(1), params, s)), s)


def _resolve_params(obj: Any, params: Dict[str, Any]) -> Any:
    if isinstance(obj, str):
        return _resolve_string(obj, params) if "${" in obj else obj
    if isinstance(obj, list):
        return [_resolve_params(x, params) for x in obj]
    if isinstance(obj, dict):
        return {k: _resolve_params(v, params) for k, v in obj.items()}
    return obj


@dataclass(frozen=True)
class LoadedConfig:
    path: str
    data: Dict[str, Any]

    def section(self, name: str) -> Dict[str, Any]:
        return self.data.get(name, {}) or {}


def load_config(config_path: str, *, validate: bool = True) -> LoadedConfig:
    """
    Load a project file with include processing, deep merging and
    parameter resolution. Relative include paths resolve against the
    including file's directory.
    """
    config_path = os.path.abspath(config_path)
    # Files on the current include chain; a file may still be shared by siblings
    active: Set[str] = set()

    def load_one(path: str) -> Dict[str, Any]:
        abspath = os.path.abspath(path)
        if abspath in active:
            raise IncludeCycleError(f"Include cycle detected at: {abspath}")
        active.add(abspath)
        try:
            data = _read_yaml(abspath)

            includes = data.pop("include", None) or []
            if not isinstance(includes, list):
                raise ConfigError(f"'include' must be a list in {abspath}")

            acc: Dict[str, Any] = {}
            for inc in includes:
                if not isinstance(inc, str):
                    raise ConfigError(f"include entries must be strings: {abspath}")
                inc_path = inc if os.path.isabs(inc) else os.path.join(os.path.dirname(abspath), inc)
                acc = _deep_merge(acc, load_one(os.path.normpath(inc_path)))

            return _deep_merge(acc, data)
        finally:
            active.discard(abspath)

    merged = load_one(config_path)

    params = merged.get("params", {}) or {}
    if not isinstance(params, dict):
        raise ConfigError("'params' must be a mapping/dict")

    merged = _resolve_params(merged, params)

    if validate:
        validate_config(merged, config_path)

    return LoadedConfig(path=config_path, data=merged)


def validate_config(cfg: Dict[str, Any], path: Optional[str] = None) -> None:
    where = f" in {path}" if path else ""
    for key in ("settings", "document", "workflow"):
        if key not in cfg:
            raise ConfigError(f"Missing required top-level key '{key}'{where}")

    if not isinstance(cfg["settings"], dict):
        raise ConfigError(f"'settings' must be a mapping{where}")
    if not isinstance(cfg["document"], dict):
        raise ConfigError(f"'document' must be a mapping{where}")
    if not isinstance(cfg["workflow"], list):
        raise ConfigError(f"'workflow' must be a list{where}")

    for i, operation in enumerate(cfg["workflow"]):
        if not isinstance(operation, dict) or "operation" not in operation:
            raise ConfigError(f"Workflow entry {i} needs an 'operation' field{where}")
        name = operation["operation"]
        if name not in KNOWN_OPERATIONS:
            raise ConfigError(
                f"Workflow entry {i} ('{name}'): unknown operation. "
                f"Available operations: {list(KNOWN_OPERATIONS)}"
            )
