"""One battery compartment: shell, cavity, printed spring and wiring cuts.

Local frame: cells lie along +x with the minus pole (spring) at ``x = 0``
and the plus pole end wall at ``x = L``; the cavity is centred on
``y = 0``; the floor sits on ``z = 0``.  The spring hangs out past the
``x = 0`` end of the shell, which has no end wall of its own.

Short variable names follow the parameter glossary:

    d   cell diameter           l   cell length
    L   total cavity length     lc  cell pitch (L / m)
    w   side wall               ws  spring wall (ribbon width)
    wz  floor                   ch  edge chamfer
    H   shell height            eh  extrusion height
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import trimesh

from .errors import InvalidRequestError
from .metadata import add_tags, get_solid_metadata, set_layer
from .params import (
    CompartmentParams,
    floor_channel_positions,
    grip_relief_positions,
    polarity_marks,
)
from .primitives import (
    chamfered_box,
    cuboid,
    cylinder,
    difference,
    frustum,
    hull,
    sphere,
    transformed,
    union,
)
from .sweep import Frame, spring_path, sweep
from .xform import Identity, Mirror, Rotation, Translation

__all__ = [
    "CompartmentSolid",
    "build_spring",
    "build_compartment",
]

logger = logging.getLogger(__name__)

# rotations taking a +z solid onto the named axis
_AXIS_TURN = {
    'x': Rotation('y', 90),
    '-x': Rotation('y', -90),
    'y': Rotation('x', -90),
    '-y': Rotation('x', 90),
    'z': Identity(),
}


@dataclass(frozen=True)
class CompartmentSolid:
    """Result of :func:`build_compartment`.

    ``body`` is the shell with spring and every cut applied, ``bulges``
    the two wire-anchoring bosses (spring tip, plus pole) and ``solid``
    their union.
    """

    index: int
    body: trimesh.Trimesh
    bulges: Tuple[trimesh.Trimesh, trimesh.Trimesh]
    solid: trimesh.Trimesh


def _rod(radius: float, length: float, origin: Sequence[float], axis: str, sections: int):
    return transformed(cylinder(radius, length, sections), Translation(origin), _AXIS_TURN[axis])


def _cone(r1: float, r2: float, length: float, origin: Sequence[float], axis: str, sections: int):
    return transformed(frustum(r1, r2, length, sections), Translation(origin), _AXIS_TURN[axis])


def _centered_box(size: Sequence[float], center: Sequence[float]):
    return cuboid(size, origin=[c - s / 2.0 for c, s in zip(center, size)])


def _shell(p: CompartmentParams, last: bool):
    d, w, ws = p.diameter, p.wall, p.spring_wall
    size = [p.total_length + w, d + 2 * w + (0.0 if last else ws), p.body_height]
    return transformed(chamfered_box(size, p.chamfer), Translation([0.0, -w - d / 2, 0.0]))


def _cell_cavities(p: CompartmentParams) -> List[trimesh.Trimesh]:
    """Stepped cavity per cell.  The quarter of a cell next to another
    cell is narrowed by the overhang, except on the open end picked by
    the sign of ``deepen``."""
    d, lc, m, oh, wz = p.diameter, p.cell_pitch, p.cells, p.overhang, p.floor
    top = p.body_height + 1.0 - wz
    cavities = []
    for j in range(m):
        near = oh if (j > 0 and p.deepen >= 0) else 0.0
        far = oh if (j < m - 1 and p.deepen <= 0) else 0.0
        x0 = j * lc
        cavities.append(hull(
            cuboid([lc / 4 + 0.01, d - 2 * near, top], origin=[x0 - 0.01, -d / 2 + near, wz]),
            cuboid([lc / 4 + 0.01, d - 2 * far, top], origin=[x0 + 0.75 * lc, -d / 2 + far, wz]),
        ))
    return cavities


def _spring_seat(p: CompartmentParams):
    d = p.diameter
    return cuboid([2.0, d, p.body_height + 2.0], origin=[-1.0, -d / 2, -1.0])


def _side_relief(p: CompartmentParams) -> List[trimesh.Trimesh]:
    if p.clearance <= 0:
        return []
    d = p.diameter
    return [_rod(d / 2 + p.clearance, p.total_length + 1.0, [-1.0, 0.0, p.floor + d / 2], 'x',
                 p.settings.sections)]


def build_spring(p: CompartmentParams) -> trimesh.Trimesh:
    """Both halves of the minus pole spring, joined at the contact bar."""
    d, w, ws = p.diameter, p.wall, p.spring_wall
    start = Frame(x=p.chamfer, y=d / 2 + w - ws / 2, heading=180.0)
    half = sweep(spring_path(p), ws, p.spring_height, start, p.settings.sections)
    return union([half, transformed(half, Mirror('y'))])


def _contact_windows(p: CompartmentParams) -> List[trimesh.Trimesh]:
    d, w, ws, wz = p.diameter, p.wall, p.spring_wall, p.floor
    return [cuboid([p.total_length + 2 * w + 2.0, 2 * w, ws],
                   origin=[-2 * ws, -w, wz - ws / 2 + d / 2 + dz])
            for dz in (-2 * ws, 2 * ws)]


def _floor_channels(p: CompartmentParams) -> List[trimesh.Trimesh]:
    d, w, ws, wz = p.diameter, p.wall, p.spring_wall, p.floor
    L = p.total_length
    cuts = [_rod(wz / 2, L + w + 2.0 + 2 * ws, [-2 * ws, 0.0, 0.0], 'x', 5)]
    for x in floor_channel_positions(p):
        cuts.append(_rod(wz / 2, d + 2 * w + ws + 2.0, [x, -(d / 2 + w + 1.0), 0.0], 'y', 6))
    return cuts


def _grip_reliefs(p: CompartmentParams, first: bool, last: bool) -> List[trimesh.Trimesh]:
    """Cylindrical dips in the side walls over each open cell end,
    chamfered on the holder's outer faces only."""
    positions = grip_relief_positions(p)
    if not positions:
        return []
    d, w, ws, lc, ch = p.diameter, p.wall, p.spring_wall, p.cell_pitch, p.chamfer
    sections = p.settings.sections
    depth = abs(p.deepen) * p.height_fraction * d
    half_chord = p.relief_fraction * lc / 2
    radius = (half_chord ** 2 + depth ** 2) / (2 * depth)
    zc = p.body_height - depth + radius
    outer = d / 2 + w

    cuts = []
    for xc in positions:
        cuts.append(_rod(radius, d + 2 * w + ws + 2.0, [xc, -(outer + 1.0), zc], 'y', sections))
        if first:
            cuts.append(_cone(radius + ch + 1.0, radius, ch + 1.0, [xc, -(outer + 1.0), zc], 'y', sections))
        if last:
            cuts.append(_cone(radius + ch + 1.0, radius, ch + 1.0, [xc, outer + 1.0, zc], '-y', sections))
    return cuts


def _screw_holes(p: CompartmentParams) -> List[trimesh.Trimesh]:
    d, wz, shd = p.diameter, p.floor, p.screw_hole_diameter
    L = p.total_length
    sections = max(16, p.settings.sections // 2)
    cuts = []
    for x in (7 + shd, L - 2 * shd):
        for y in (-d / 2 + shd, d / 2 - shd):
            cuts.append(transformed(cylinder(shd / 2, wz + 2.0, sections), Translation([x, y, -1.0])))
            cuts.append(transformed(frustum(shd / 2, shd, shd / 2 + 0.01, sections),
                                    Translation([x, y, wz - shd / 2])))
    return cuts


def _wire_passages(p: CompartmentParams) -> List[trimesh.Trimesh]:
    """Side wall notches near both poles and end wall holes for jumpers."""
    d, w, ws, wz = p.diameter, p.wall, p.spring_wall, p.floor
    L = p.total_length
    one_side = []
    for x in (3.0, L - 7.0):
        one_side.append(cuboid([3.0, w + ws + 3.0, 2.0], origin=[x, d / 2 - 1.0, wz]))
    one_side.append(_rod(w / 2, w + 2.0, [L - 1.0, d / 2 - 1.5, wz + w / 2], 'x', 5))
    return one_side + [transformed(cut, Mirror('y')) for cut in one_side]


def _polarity_engraving(p: CompartmentParams, index: int, alternate_labels: bool) -> List[trimesh.Trimesh]:
    d, wz = p.diameter, p.floor
    depth = 4 * p.settings.extrusion_height
    bar = d / 4
    cuts = []
    for mark in polarity_marks(p, index, alternate_labels):
        cuts.append(_centered_box([bar, 1.0, depth], [mark.x, mark.y, wz]))
        if mark.kind == "plus":
            cuts.append(_centered_box([1.0, bar, depth], [mark.x, mark.y, wz]))
    return cuts


def _contact_bulges(p: CompartmentParams) -> Tuple[trimesh.Trimesh, trimesh.Trimesh]:
    d, ws, wz, el = p.diameter, p.spring_wall, p.floor, p.extra_spring_length
    zc = wz + d / 2
    span = 3.0 - el
    bulges = []
    for x in (-0.3, p.total_length):
        bulges.append(hull(sphere(ws, (x, -span, zc)), sphere(ws, (x, span, zc))))
    return bulges[0], bulges[1]


def build_compartment(params: CompartmentParams, index: int = 0, count: int = 1,
                      alternate_labels: bool = False) -> CompartmentSolid:
    """Build compartment ``index`` of a holder with ``count`` compartments.

    The index only affects the array edge rules (outer face chamfers,
    shared wall overlap) and the label mirroring; the solid is returned
    in its local frame.
    """
    if not 0 <= index < count:
        raise InvalidRequestError(f"compartment index {index} outside 0..{count - 1}",
                                  parameter="index", value=index)
    p = params
    first = index == 0
    last = index == count - 1

    shell = difference(_shell(p, last),
                       _cell_cavities(p) + [_spring_seat(p)] + _side_relief(p))
    body = union([shell, build_spring(p)])

    cuts = (_contact_windows(p)
            + _floor_channels(p)
            + _grip_reliefs(p, first, last)
            + _screw_holes(p)
            + _wire_passages(p)
            + _polarity_engraving(p, index, alternate_labels))
    body = difference(body, cuts)

    bulges = _contact_bulges(p)
    solid = union([body, *bulges])

    meta = get_solid_metadata(solid, create=True)
    add_tags(meta, ["battery_holder", "compartment"])
    set_layer(meta, "body")
    meta["compartment"] = dict(p.describe(), index=index, count=count,
                               alternate_labels=alternate_labels)
    logger.debug("compartment %d/%d (%s, %d cells): %d faces, volume %.1f",
                 index + 1, count, p.name or "custom", p.cells, len(solid.faces), solid.volume)
    return CompartmentSolid(index=index, body=body, bulges=bulges, solid=solid)
