from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Union

import yaml

from .xmlscan import XmlScanParams


DEFAULTS: Dict[str, Any] = {
    "scanner": {
        "skip_comments": False,
        "skip_processing_instructions": False,
        "skip_whitespace": True,
        "skip_cdata": False,
    },
    "path": {"reinject_moveto_after_close": True},
    "curves": {"length_steps": 50, "max_iterations": 20},
    "dash": {"arc_steps": 100, "offset": 0.0, "visible_only": False},
    "flatten": {"tolerance": 0.25},
}


def load_config(path: Union[str, Path]) -> Any:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    return yaml.safe_load(p.read_text(encoding="utf-8"))


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key in base:
        value = base[key]
        if isinstance(value, Mapping):
            result[key] = copy.deepcopy(dict(value))
        elif isinstance(value, list):
            result[key] = list(value)
        else:
            result[key] = value
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def resolve_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Defaults with the YAML file at ``path`` merged over them.

    An empty file counts as no overrides.  A file whose root is not a
    mapping, or that is not valid YAML, raises ``ValueError``.
    """
    if path is None:
        return _deep_merge(DEFAULTS, {})
    try:
        loaded = load_config(path)
    except yaml.YAMLError as exc:
        raise ValueError(f"Config could not be parsed: {exc}") from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, MutableMapping):
        raise ValueError("Config root must be a mapping")
    return _deep_merge(DEFAULTS, dict(loaded))


def scanner_params(cfg: Mapping[str, Any]) -> XmlScanParams:
    section = cfg.get("scanner", {}) or {}
    return XmlScanParams(
        skip_comments=bool(section.get("skip_comments", False)),
        skip_processing_instructions=bool(section.get("skip_processing_instructions", False)),
        skip_whitespace=bool(section.get("skip_whitespace", True)),
        skip_cdata=bool(section.get("skip_cdata", False)),
    )


__all__ = ["DEFAULTS", "load_config", "resolve_config", "scanner_params"]
