from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from isocity.io.asset_loader import SheetSpec


_SUPPORTED_SCHEMA_VERSIONS = {1}
_SHEET_KEYS = {"name", "manifest", "image", "category"}
_SHEET_CATEGORIES = {"ground", "road", "building", "prop", "vehicle", None}
_ALLOWED_KEYS: dict[str, Any] = {
    "schema_version": None,
    "view": {
        "tile_width": None,
        "tile_height": None,
        "zoom_min": None,
        "zoom_max": None,
        "zoom_in_factor": None,
        "zoom_out_factor": None,
        "initial_zoom": None,
    },
    "map": {
        "path": None,
        "default_size": None,
        "default_ground": None,
    },
    "assets": {
        "root": None,
        "max_workers": None,
    },
    "sheets": None,
    "save": {
        "backend": None,
        "path": None,
        "url": None,
        "timeout_sec": None,
        "message_ttl_sec": None,
    },
    "window": {
        "width": None,
        "height": None,
        "sidebar_width": None,
        "edit_mode": None,
    },
}

DEFAULT_CONFIG: dict[str, Any] = {
    "schema_version": 1,
    "view": {
        "tile_width": 132,
        "tile_height": 66,
        "zoom_min": 0.3,
        "zoom_max": 2.0,
        "zoom_in_factor": 1.1,
        "zoom_out_factor": 0.9,
        "initial_zoom": 1.0,
    },
    "map": {
        "path": "data/maps/city.json",
        "default_size": 12,
        "default_ground": "landscapeTiles_067.png",
    },
    "assets": {
        "root": "assets",
        "max_workers": 4,
    },
    "sheets": [],
    "save": {
        "backend": "file",
        "path": None,
        "url": "http://127.0.0.1:8765/save",
        "timeout_sec": 10.0,
        "message_ttl_sec": 3.0,
    },
    "window": {
        "width": 1280,
        "height": 800,
        "sidebar_width": 240,
        "edit_mode": False,
    },
}


def load_json_config(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, dict):
        raise ValueError(f"config root must be a JSON object: {p}")
    cfg = deep_merge(copy.deepcopy(DEFAULT_CONFIG), payload)
    validate_config(cfg)
    return cfg


def default_config() -> dict[str, Any]:
    return copy.deepcopy(DEFAULT_CONFIG)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in out and isinstance(out[key], dict) and isinstance(value, dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def apply_overrides(cfg: dict[str, Any], overrides_list: list[str] | None) -> dict[str, Any]:
    if not overrides_list:
        return cfg

    out = cfg
    for item in overrides_list:
        if "=" not in item:
            raise ValueError(f"override must contain '=': {item}")
        path_str, value_str = item.split("=", 1)
        if not path_str:
            raise ValueError(f"override path empty: {item}")
        keys = path_str.split(".")
        if any(not key for key in keys):
            raise ValueError(f"override path has empty segment: {item}")
        value = _cast_scalar(value_str)

        cursor = out
        for key in keys[:-1]:
            if key not in cursor or not isinstance(cursor[key], dict):
                cursor[key] = {}
            cursor = cursor[key]
        cursor[keys[-1]] = value
    validate_config(out)
    return out


def resolve_path(value: str | Path, base_dir: str | Path) -> Path:
    p = Path(value)
    if p.is_absolute():
        return p
    return Path(base_dir) / p


def sheet_specs(cfg: dict[str, Any], base_dir: str | Path) -> list[SheetSpec]:
    assets_root = resolve_path(cfg["assets"]["root"], base_dir)
    return [
        SheetSpec(
            name=str(sheet["name"]),
            manifest=resolve_path(sheet["manifest"], assets_root),
            image=resolve_path(sheet["image"], assets_root),
            category=sheet.get("category"),
        )
        for sheet in cfg["sheets"]
    ]


def _cast_scalar(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("null", "none"):
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_dict(parent: dict[str, Any], key: str) -> dict[str, Any]:
    if key not in parent:
        raise ValueError(f"missing '{key}' section in config")
    value = parent[key]
    if not isinstance(value, dict):
        raise ValueError(f"config '{key}' must be a JSON object")
    return value


def _require_number(parent: dict[str, Any], key: str, *, section: str) -> float:
    if key not in parent:
        raise ValueError(f"missing '{section}.{key}' in config")
    value = parent[key]
    if not _is_number(value):
        raise ValueError(f"config '{section}.{key}' must be a number")
    return float(value)


def validate_config(cfg: dict[str, Any]) -> None:
    unknown = _find_unknown_keys(cfg, _ALLOWED_KEYS, path="")
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ValueError(f"unknown config keys: {unknown_str}")

    schema_version = cfg.get("schema_version")
    if schema_version not in _SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported schema_version: {schema_version}")

    view_cfg = _require_dict(cfg, "view")
    tile_width = _require_number(view_cfg, "tile_width", section="view")
    tile_height = _require_number(view_cfg, "tile_height", section="view")
    if tile_width <= 0 or tile_height <= 0:
        raise ValueError("view.tile_width and view.tile_height must be > 0")
    zoom_min = _require_number(view_cfg, "zoom_min", section="view")
    zoom_max = _require_number(view_cfg, "zoom_max", section="view")
    if zoom_min <= 0:
        raise ValueError("view.zoom_min must be > 0")
    if zoom_max < zoom_min:
        raise ValueError("view.zoom_max must be >= view.zoom_min")
    if _require_number(view_cfg, "zoom_in_factor", section="view") <= 1.0:
        raise ValueError("view.zoom_in_factor must be > 1")
    zoom_out = _require_number(view_cfg, "zoom_out_factor", section="view")
    if not 0.0 < zoom_out < 1.0:
        raise ValueError("view.zoom_out_factor must be in (0, 1)")
    _require_number(view_cfg, "initial_zoom", section="view")

    map_cfg = _require_dict(cfg, "map")
    if not isinstance(map_cfg.get("path"), str):
        raise ValueError("config 'map.path' must be a string")
    default_size = _require_number(map_cfg, "default_size", section="map")
    if default_size < 1 or int(default_size) != default_size:
        raise ValueError("map.default_size must be a positive integer")

    save_cfg = _require_dict(cfg, "save")
    backend = save_cfg.get("backend")
    if backend not in ("file", "http"):
        raise ValueError("save.backend must be 'file' or 'http'")
    if backend == "http" and not isinstance(save_cfg.get("url"), str):
        raise ValueError("save.url must be a string when save.backend is 'http'")

    sheets = cfg.get("sheets")
    if not isinstance(sheets, list):
        raise ValueError("config 'sheets' must be a list")
    seen: set[str] = set()
    for idx, sheet in enumerate(sheets):
        if not isinstance(sheet, dict):
            raise ValueError(f"sheets[{idx}] must be a JSON object")
        extra = set(sheet) - _SHEET_KEYS
        if extra:
            raise ValueError(f"unknown config keys: {', '.join(f'sheets[{idx}].{k}' for k in sorted(extra))}")
        for key in ("name", "manifest", "image"):
            if not isinstance(sheet.get(key), str) or not sheet[key]:
                raise ValueError(f"sheets[{idx}].{key} must be a non-empty string")
        if sheet.get("category") not in _SHEET_CATEGORIES:
            raise ValueError(f"sheets[{idx}].category is not a known layer category")
        if sheet["name"] in seen:
            raise ValueError(f"duplicate sheet name: {sheet['name']}")
        seen.add(sheet["name"])


def _find_unknown_keys(value: Any, allowed: Any, *, path: str) -> list[str]:
    if not isinstance(value, dict) or not isinstance(allowed, dict):
        return []
    unknown: list[str] = []
    for key, sub_value in value.items():
        if key not in allowed:
            unknown.append(f"{path}{key}" if path else key)
            continue
        sub_allowed = allowed[key]
        if isinstance(sub_value, dict) and isinstance(sub_allowed, dict):
            child_path = f"{path}{key}."
            unknown.extend(_find_unknown_keys(sub_value, sub_allowed, path=child_path))
    return unknown
