"""Primitive solids and boolean operations for flexbatt.

All solids are watertight :class:`trimesh.Trimesh` instances.  Cylinders,
cones and the wedge are built along +z from ``z = 0`` (the base), boxes
are placed by their minimum corner.  Round solids are polygonal prisms
with ``sections`` sides; vertex ``k`` sits at angle ``k*360/sections``
measured from +x, so angles that are multiples of the step are exact.

Booleans go through :mod:`trimesh.boolean`.  The backend is picked by the
``engine`` argument, else the ``FLEXBATT_BOOLEAN_ENGINE`` environment
variable, else ``manifold``.
"""

from __future__ import annotations

import math
import os
from typing import Iterable, Optional, Sequence

import numpy as np
import trimesh

from .errors import BooleanError, DegenerateGeometryError
from .xform import Rotation, Translation, compose

__all__ = [
    "DEFAULT_SECTIONS",
    "BOOLEAN_ENGINE_ENV",
    "transformed",
    "cuboid",
    "frustum",
    "cylinder",
    "sphere",
    "hull",
    "union",
    "difference",
    "intersection",
    "chamfered_box",
    "annular_wedge",
]

DEFAULT_SECTIONS = 48
BOOLEAN_ENGINE_ENV = "FLEXBATT_BOOLEAN_ENGINE"


def transformed(mesh: trimesh.Trimesh, *mats) -> trimesh.Trimesh:
    """Return a copy of ``mesh`` moved by ``compose(*mats)``."""
    result = mesh.copy()
    result.apply_transform(compose(*mats))
    return result


def cuboid(size: Sequence[float], origin: Sequence[float] = (0.0, 0.0, 0.0)) -> trimesh.Trimesh:
    size = np.asarray(size, dtype=float)
    if np.any(size <= 0.0):
        raise DegenerateGeometryError(f"box size must be positive, got {size.tolist()}",
                                      parameter="size", value=size.tolist())
    center = np.asarray(origin, dtype=float) + size / 2.0
    return trimesh.creation.box(extents=size, transform=Translation(center))


def _ring(radius: float, z: float, sections: int) -> np.ndarray:
    theta = np.arange(sections) * (2.0 * math.pi / sections)
    return np.column_stack((radius * np.cos(theta),
                            radius * np.sin(theta),
                            np.full(sections, z)))


def frustum(r1: float, r2: float, height: float, sections: int = DEFAULT_SECTIONS) -> trimesh.Trimesh:
    """Conic frustum from radius ``r1`` at z=0 to ``r2`` at ``z=height``.

    ``r2 == 0`` gives a cone, ``r1 == r2`` a cylinder.
    """
    if height <= 0.0:
        raise DegenerateGeometryError(f"frustum height must be positive, got {height}",
                                      parameter="height", value=height)
    if r1 <= 0.0 or r2 < 0.0:
        raise DegenerateGeometryError(f"bad frustum radii ({r1}, {r2})",
                                      parameter="radius", value=(r1, r2))
    if sections < 3:
        raise DegenerateGeometryError(f"need at least 3 sections, got {sections}",
                                      parameter="sections", value=sections)
    base = _ring(r1, 0.0, sections)
    if r2 > 0.0:
        top = _ring(r2, height, sections)
    else:
        top = np.array([[0.0, 0.0, height]])
    return trimesh.convex.convex_hull(np.vstack((base, top)))


def cylinder(radius: float, height: float, sections: int = DEFAULT_SECTIONS) -> trimesh.Trimesh:
    return frustum(radius, radius, height, sections)


def sphere(radius: float, center: Sequence[float] = (0.0, 0.0, 0.0), subdivisions: int = 2) -> trimesh.Trimesh:
    if radius <= 0.0:
        raise DegenerateGeometryError(f"sphere radius must be positive, got {radius}",
                                      parameter="radius", value=radius)
    return trimesh.creation.icosphere(subdivisions=subdivisions, radius=radius).apply_translation(center)


def hull(*solids: trimesh.Trimesh) -> trimesh.Trimesh:
    """Convex hull of every vertex of ``solids``."""
    points = np.vstack([s.vertices for s in solids])
    return trimesh.convex.convex_hull(points)


def _engine(engine: Optional[str]) -> str:
    return engine or os.environ.get(BOOLEAN_ENGINE_ENV) or "manifold"


def _boolean(operation: str, meshes: list, engine: Optional[str]) -> trimesh.Trimesh:
    selected = _engine(engine)
    func = getattr(trimesh.boolean, operation)
    try:
        result = func(meshes, engine=selected, check_volume=False)
    except Exception as exc:
        raise BooleanError(f"{operation} of {len(meshes)} solids failed on engine "
                           f"'{selected}': {exc}", parameter="engine", value=selected) from exc
    if result is None:
        raise BooleanError(f"{operation} returned no result on engine '{selected}'",
                           parameter="engine", value=selected)
    return result


def union(solids: Iterable[trimesh.Trimesh], engine: Optional[str] = None) -> trimesh.Trimesh:
    solids = list(solids)
    if not solids:
        raise DegenerateGeometryError("union of nothing", parameter="solids", value=0)
    if len(solids) == 1:
        return solids[0].copy()
    return _boolean("union", solids, engine)


def difference(base: trimesh.Trimesh, cuts: Iterable[trimesh.Trimesh],
               engine: Optional[str] = None) -> trimesh.Trimesh:
    """Subtract every solid in ``cuts`` from ``base``."""
    cuts = list(cuts)
    if not cuts:
        return base.copy()
    return _boolean("difference", [base] + cuts, engine)


def intersection(solids: Iterable[trimesh.Trimesh], engine: Optional[str] = None) -> trimesh.Trimesh:
    solids = list(solids)
    if len(solids) < 2:
        raise DegenerateGeometryError("intersection needs at least two solids",
                                      parameter="solids", value=len(solids))
    return _boolean("intersection", solids, engine)


def chamfered_box(size: Sequence[float], d: float) -> trimesh.Trimesh:
    """Box of ``size`` (minimum corner at the origin) with all 12 edges
    chamfered by ``d``.

    Built as the hull of three boxes, each shrunk by ``2*d`` along two
    axes and offset by ``d`` along the same two.
    """
    size = np.asarray(size, dtype=float)
    if np.any(size <= 0.0):
        raise DegenerateGeometryError(f"box size must be positive, got {size.tolist()}",
                                      parameter="size", value=size.tolist())
    if d < 0.0 or d >= size.min() / 2.0:
        raise DegenerateGeometryError(
            f"chamfer {d} must be non-negative and below half the smallest box "
            f"dimension ({size.min() / 2.0})", parameter="chamfer", value=d)
    if d == 0.0:
        return cuboid(size)
    boxes = []
    for keep in range(3):
        shrink = np.full(3, d)
        shrink[keep] = 0.0
        boxes.append(cuboid(size - 2.0 * shrink, origin=shrink))
    return hull(*boxes)


def annular_wedge(r1: float, r2: float, h: float, a1: float, a2: float,
                  sections: int = DEFAULT_SECTIONS) -> trimesh.Trimesh:
    """Annulus ``r1 <= r <= r2``, ``0 <= z <= h``, limited to angles ``a1..a2``.

    The ring is cut by two half-space slabs: one rotated to ``a2`` (removes
    angles ``a2..a2+180``) and one rotated to ``a1+180`` (removes
    ``a1+180..a1+360``).  Up to 180 degrees both slabs are subtracted;
    past 180 they overlap the kept sector, so only their intersection is
    subtracted.
    """
    if r1 < 0.0 or r2 <= r1:
        raise DegenerateGeometryError(f"wedge radii must satisfy 0 <= r1 < r2, got ({r1}, {r2})",
                                      parameter="radius", value=(r1, r2))
    if h <= 0.0:
        raise DegenerateGeometryError(f"wedge height must be positive, got {h}",
                                      parameter="height", value=h)
    if a2 <= a1:
        raise DegenerateGeometryError(f"wedge angles must satisfy a1 < a2, got ({a1}, {a2})",
                                      parameter="angle", value=(a1, a2))

    ring = cylinder(r2, h, sections)
    cuts = []
    if r1 > 0.0:
        cuts.append(transformed(cylinder(r1, h + 2.0, sections), Translation([0, 0, -1.0])))

    span = a2 - a1
    if span < 360.0:
        R = r2 + 1.0
        slab = cuboid([2.0 * R, R, h + 2.0], origin=[-R, 0.0, -1.0])
        lead = transformed(slab, Rotation('z', a2))
        trail = transformed(slab, Rotation('z', a1 + 180.0))
        if span <= 180.0:
            cuts += [lead, trail]
        else:
            cuts.append(intersection([lead, trail]))
    return difference(ring, cuts)
