"""Validation helpers for flexbatt solids."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

import trimesh


def check_solid(mesh: trimesh.Trimesh) -> "CheckResult":
    """Printable closed solid: faces present, watertight, consistent
    winding and positive volume."""

    if mesh is None or len(mesh.faces) == 0:
        return CheckResult(False, ['mesh has no faces'])

    messages: List[str] = []
    ok = True
    if not mesh.is_watertight:
        ok = False
        messages.append('mesh is not watertight')
    if not mesh.is_winding_consistent:
        ok = False
        messages.append('inconsistent face winding')
    elif mesh.volume <= 0:
        ok = False
        messages.append(f'non-positive volume {mesh.volume:.6g}')
    return CheckResult(ok, messages)


def check_connected(mesh: trimesh.Trimesh) -> "CheckResult":
    count = mesh.body_count
    if count != 1:
        return CheckResult(False, [f'{count} disconnected bodies'])
    return CheckResult(True, [])


def check_holder(holder) -> "CheckResult":
    """Run :func:`check_solid` and :func:`check_connected` on every
    compartment of a :class:`~flexbatt.holder.Holder`."""

    messages: List[str] = []
    ok = True
    for part in holder.compartments:
        for result in (check_solid(part.solid), check_connected(part.solid)):
            if not result:
                ok = False
                messages.extend(f'compartment {part.index}: {m}' for m in result.messages)
    return CheckResult(ok, messages)


def annular_sector_volume(r1: float, r2: float, h: float, a1: float, a2: float) -> float:
    """Exact volume of the annular wedge between ``a1`` and ``a2`` degrees."""
    return h * (a2 - a1) * math.pi / 360.0 * (r2 ** 2 - r1 ** 2)


@dataclass
class CheckResult:
    ok: bool
    messages: List[str]

    def __bool__(self) -> bool:
        return self.ok


__all__ = [
    'CheckResult',
    'check_solid',
    'check_connected',
    'check_holder',
    'annular_sector_volume',
]
