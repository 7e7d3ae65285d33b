"""Cell preset catalog with bundled data and external override support.

Presets map a battery form factor name (``AA``, ``18650``, ...) to the
cell dimensions and the grip table used by the compartment builder.

Search order for ``presets.yaml``:
    1. An explicit ``catalog_path`` passed to the API
    2. Directories listed in ``$FLEXBATT_PRESET_DATA`` (``os.pathsep`` separated)
    3. User config directory (``~/.config/flexbatt/``)
    4. Bundled data

Example:
    export FLEXBATT_PRESET_DATA="/path/to/my/presets"
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import CatalogError

__all__ = [
    "FLEXBATT_PRESET_DATA",
    "CATALOG_FILENAME",
    "GripTier",
    "CellPreset",
    "load_catalog",
    "list_presets",
    "get_preset",
    "clear_cache",
]

# Environment variable name for custom data paths
FLEXBATT_PRESET_DATA = "FLEXBATT_PRESET_DATA"
CATALOG_FILENAME = "presets.yaml"

_BUNDLED_DATA_DIR = Path(__file__).parent / "data"

_REQUIRED_FIELDS = (
    "length",
    "length_correction",
    "diameter",
    "height_fraction",
    "screw_hole_diameter",
    "clearance",
)


@dataclass(frozen=True)
class GripTier:
    min_cells: int
    deepen: float
    relief_fraction: float
    overhang: float  # extrusion widths


@dataclass(frozen=True)
class CellPreset:
    """Dimensions (millimeters) of one cell form factor."""

    name: str
    length: float
    length_correction: float
    diameter: float
    height_fraction: float
    screw_hole_diameter: float
    clearance: float
    extra_spring_length: float = 0.0
    channels: Tuple[float, ...] = (0.25, 0.75)
    grip: Tuple[GripTier, ...] = field(default_factory=tuple)
    description: str = ""

    def grip_tier(self, cells: int) -> Optional[GripTier]:
        """Last tier whose ``min_cells`` is reached, or ``None``."""
        chosen = None
        for tier in self.grip:
            if cells >= tier.min_cells:
                chosen = tier
        return chosen


def clear_cache() -> None:
    """Clear cached catalog data (call after editing external catalogs)."""
    _get_data_dirs.cache_clear()
    _load_catalog_cached.cache_clear()


@lru_cache(maxsize=None)
def _get_data_dirs() -> Tuple[Path, ...]:
    dirs: List[Path] = []

    env_path = os.environ.get(FLEXBATT_PRESET_DATA)
    if env_path:
        for p in env_path.split(os.pathsep):
            p = p.strip()
            if p:
                path = Path(p).expanduser().resolve()
                if path.is_dir():
                    dirs.append(path)

    if sys.platform == "win32":
        config_base = Path(os.environ.get("APPDATA", "~")).expanduser()
    else:
        config_base = Path.home() / ".config"
    user_config = config_base / "flexbatt"
    if user_config.is_dir():
        dirs.append(user_config)

    if _BUNDLED_DATA_DIR.is_dir():
        dirs.append(_BUNDLED_DATA_DIR)

    return tuple(dirs)


def _find_catalog() -> Path:
    for data_dir in _get_data_dirs():
        path = data_dir / CATALOG_FILENAME
        if path.exists():
            return path
    searched = [str(d) for d in _get_data_dirs()]
    raise CatalogError(f"no {CATALOG_FILENAME} found; searched {searched}",
                       parameter="catalog_path", value=None)


@lru_cache(maxsize=8)
def _load_catalog_cached(custom_path_str: Optional[str]) -> Dict[str, CellPreset]:
    if custom_path_str:
        path = Path(custom_path_str)
        if not path.exists():
            raise CatalogError(f"custom catalog not found: {path}",
                               parameter="catalog_path", value=str(path))
    else:
        path = _find_catalog()
    return _parse_catalog(_load_yaml(path), path)


def _load_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise CatalogError(f"cannot parse {path}: {exc}",
                               parameter="catalog_path", value=str(path)) from exc

    if not isinstance(data, dict):
        raise CatalogError(f"invalid catalog format in {path}: expected a mapping at root",
                           parameter="catalog_path", value=str(path))
    schema_version = str(data.get("schema_version", "1.0"))
    if not schema_version.startswith("1."):
        raise CatalogError(f"unsupported schema version '{schema_version}' in {path}; expected 1.x",
                           parameter="schema_version", value=schema_version)
    if not isinstance(data.get("presets"), dict) or not data["presets"]:
        raise CatalogError(f"catalog {path} has no 'presets' section",
                           parameter="presets", value=None)
    return data


def _parse_grip(entries, where: str) -> Tuple[GripTier, ...]:
    tiers = []
    for entry in entries or ():
        try:
            tiers.append(GripTier(
                min_cells=int(entry["min_cells"]),
                deepen=float(entry["deepen"]),
                relief_fraction=float(entry["relief_fraction"]),
                overhang=float(entry.get("overhang", 0.0)),
            ))
        except (KeyError, TypeError, ValueError) as exc:
            raise CatalogError(f"bad grip entry {entry!r} in {where}",
                               parameter="grip", value=entry) from exc
    return tuple(sorted(tiers, key=lambda t: t.min_cells))


def _parse_catalog(data: Dict[str, Any], path: Path) -> Dict[str, CellPreset]:
    defaults = data.get("defaults") or {}
    presets: Dict[str, CellPreset] = {}
    for raw_name, entry in data["presets"].items():
        name = str(raw_name)
        if not isinstance(entry, dict):
            raise CatalogError(f"preset '{name}' in {path} is not a mapping",
                               parameter=name, value=entry)
        merged = dict(defaults)
        merged.update(entry)
        missing = [k for k in _REQUIRED_FIELDS if k not in merged]
        if missing:
            raise CatalogError(f"preset '{name}' in {path} is missing {missing}",
                               parameter=missing[0], value=None)
        try:
            preset = CellPreset(
                name=name,
                length=float(merged["length"]),
                length_correction=float(merged["length_correction"]),
                diameter=float(merged["diameter"]),
                height_fraction=float(merged["height_fraction"]),
                screw_hole_diameter=float(merged["screw_hole_diameter"]),
                clearance=float(merged["clearance"]),
                extra_spring_length=float(merged.get("extra_spring_length", 0.0)),
                channels=tuple(float(x) for x in merged.get("channels", ())),
                grip=_parse_grip(merged.get("grip"), f"{path}:{name}"),
                description=str(merged.get("description", "")),
            )
        except (TypeError, ValueError) as exc:
            raise CatalogError(f"preset '{name}' in {path} has a non-numeric field: {exc}",
                               parameter=name, value=entry) from exc
        if preset.length <= 0 or preset.diameter <= 0:
            raise CatalogError(f"preset '{name}' needs positive length and diameter",
                               parameter=name, value=(preset.length, preset.diameter))
        presets[name] = preset
    return presets


def load_catalog(catalog_path: Optional[Path] = None) -> Dict[str, CellPreset]:
    """Load the preset table, keyed by preset name.

    Raises:
        CatalogError: if no catalog is found or it is malformed
    """
    custom_str = str(catalog_path) if catalog_path else None
    return _load_catalog_cached(custom_str)


def list_presets(catalog_path: Optional[Path] = None) -> List[str]:
    return list(load_catalog(catalog_path).keys())


def get_preset(name: str, catalog_path: Optional[Path] = None) -> CellPreset:
    """Look up a preset by name, ignoring case.

    Raises:
        KeyError: if the preset does not exist
    """
    presets = load_catalog(catalog_path)
    if name in presets:
        return presets[name]
    folded = {k.upper(): v for k, v in presets.items()}
    key = str(name).upper()
    if key not in folded:
        raise KeyError(f"unknown battery type '{name}'; available: {list(presets.keys())}")
    return folded[key]
