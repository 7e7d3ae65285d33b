"""Metadata helpers for flexbatt solids.

Metadata lives in ``mesh.metadata["flexbatt"]`` so it travels with the
:class:`trimesh.Trimesh` through copies and exports that keep metadata.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable

import trimesh

__all__ = ["META_KEY", "get_solid_metadata", "add_tags", "set_layer", "has_tag"]

META_KEY = "flexbatt"
_DEFAULT_SCHEMA = "flexbatt-metadata-v1"


def _ensure_root(meta: Dict[str, Any]) -> Dict[str, Any]:
    meta.setdefault("schema", _DEFAULT_SCHEMA)
    if not isinstance(meta.get("tags"), list):
        meta["tags"] = []
    if not meta.get("layer"):
        meta["layer"] = "default"
    return meta


def get_solid_metadata(mesh: trimesh.Trimesh, create: bool = False) -> Dict[str, Any]:
    """Return the metadata dict of ``mesh``; an empty dict if there is none
    and ``create`` is false."""
    meta = mesh.metadata.get(META_KEY)
    if not isinstance(meta, dict):
        if not create:
            return {}
        meta = {}
        mesh.metadata[META_KEY] = meta
    return _ensure_root(meta)


def add_tags(meta: Dict[str, Any], tags: Iterable[str]) -> Dict[str, Any]:
    existing = meta.setdefault("tags", [])
    for tag in tags:
        if tag and tag not in existing:
            existing.append(tag)
    return meta


def set_layer(meta: Dict[str, Any], layer: str) -> Dict[str, Any]:
    meta["layer"] = layer or "default"
    return meta


def has_tag(mesh: trimesh.Trimesh, tag: str) -> bool:
    return tag in get_solid_metadata(mesh).get("tags", [])
