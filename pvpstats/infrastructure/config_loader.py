from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

# (section, key) in the YAML file -> AppConfig field
_SETTINGS: tuple[tuple[str, str, str, type], ...] = (
    ("database", "path", "db_path", str),
    ("database", "max_connections", "db_max_connections", int),
    ("database", "connect_timeout_seconds", "db_connect_timeout", float),
    ("cache", "expire_seconds", "cache_ttl_seconds", float),
    ("sync", "update_stable_id_if_name_matches", "overwrite_id_on_name_collision", bool),
    ("sync", "update_name_if_stable_id_matches", "rename_on_id_match", bool),
    ("workers", "size", "worker_count", int),
    ("leaderboard", "min_fetch", "leaderboard_min_fetch", int),
    ("metrics", "log_path", "metrics_log_path", str),
)


def _convert(value: Any, kind: type, where: str) -> Any:
    if kind is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"1", "true", "yes", "on", "0", "false", "no", "off"}:
            return value.strip().lower() in {"1", "true", "yes", "on"}
        raise RuntimeError(f"{where} must be a boolean, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"{where} must be {kind.__name__}, got {value!r}") from exc


def load_settings_from_yaml(path: str) -> dict[str, Any]:
    """
    Read ``config.yml`` and return the recognised settings keyed by AppConfig field.
    A missing file yields an empty dict; a malformed one raises RuntimeError.
    """
    p = Path(path)
    if not p.exists():
        return {}

    with p.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise RuntimeError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"Invalid config format in {path}: top level must be a mapping")

    settings: dict[str, Any] = {}
    for section, key, field_name, kind in _SETTINGS:
        block = data.get(section)
        if block is None:
            continue
        if not isinstance(block, dict):
            raise RuntimeError(f"Section '{section}' in {path} must be a mapping")
        if key not in block or block[key] is None:
            continue
        settings[field_name] = _convert(block[key], kind, f"{section}.{key}")
    return settings
