"""Constant cross-section ribbon swept along a chain of straights and arcs.

A path is a sequence of :class:`PathSegment` ``(angle, value)`` pairs.
``angle == 0`` is a straight run of length ``value``; any other angle is
a circular arc of radius ``abs(value)`` turning through ``angle``
degrees.

Segments are laid out in a running :class:`Frame` (position, heading and
handedness).  Each segment is built in canonical orientation (start at
the origin, travelling along +x, turning toward +y) and then placed with
the frame.  A negative angle mirrors the frame about the travel axis,
and that mirror carries over to every following segment, so e.g.
``[(-180, r), (90, r)]`` makes two right turns.

Every segment gets a ``width x 0.02 x height`` connector patch at its
origin so neighbouring pieces overlap and the union stays manifold.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, List, Sequence

import trimesh

from .errors import DegenerateGeometryError, InvalidPathError
from .primitives import DEFAULT_SECTIONS, annular_wedge, cuboid, transformed, union
from .xform import Rotation, Scale, Translation, compose

__all__ = [
    "CONNECTOR_LENGTH",
    "PathSegment",
    "Frame",
    "path_from_lists",
    "path_frames",
    "segment_solid",
    "sweep",
    "spring_path",
]

logger = logging.getLogger(__name__)

CONNECTOR_LENGTH = 0.02


@dataclass(frozen=True)
class PathSegment:
    angle: float
    value: float

    @property
    def is_arc(self) -> bool:
        return self.angle != 0

    def local_end(self) -> tuple[float, float, float]:
        """End point and heading change in the canonical (left turning) frame."""
        if not self.is_arc:
            return (self.value, 0.0, 0.0)
        a = abs(self.angle)
        r = abs(self.value)
        rad = math.radians(a)
        return (r * math.sin(rad), r * (1.0 - math.cos(rad)), a)


@dataclass(frozen=True)
class Frame:
    """Accumulated placement of a path: position, heading (degrees) and hand.

    ``hand`` is +1 for the unmirrored frame and -1 once an odd number of
    negative turns have been taken.
    """

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0
    hand: int = 1

    def matrix(self):
        return compose(Translation([self.x, self.y, 0.0]),
                       Rotation('z', self.heading),
                       Scale(1.0, float(self.hand), 1.0))

    def segment_hand(self, segment: PathSegment) -> int:
        return -self.hand if segment.angle < 0 else self.hand

    def advance(self, segment: PathSegment) -> "Frame":
        hand = self.segment_hand(segment)
        lx, ly, turn = segment.local_end()
        ly *= hand
        h = math.radians(self.heading)
        ch, sh = math.cos(h), math.sin(h)
        return Frame(x=self.x + ch * lx - sh * ly,
                     y=self.y + sh * lx + ch * ly,
                     heading=(self.heading + hand * turn) % 360.0,
                     hand=hand)


def path_from_lists(angles: Sequence[float], values: Sequence[float]) -> List[PathSegment]:
    if len(angles) != len(values):
        raise InvalidPathError(f"path has {len(angles)} angles but {len(values)} values",
                               parameter="values", value=len(values))
    return [PathSegment(float(a), float(v)) for a, v in zip(angles, values)]


def _as_path(path: Iterable) -> List[PathSegment]:
    segments = []
    for item in path:
        if isinstance(item, PathSegment):
            segments.append(item)
        else:
            try:
                angle, value = item
            except (TypeError, ValueError) as exc:
                raise InvalidPathError(f"bad path segment {item!r}: expected (angle, value)",
                                       parameter="path", value=item) from exc
            segments.append(PathSegment(float(angle), float(value)))
    return segments


def path_frames(path: Iterable, start: Frame = Frame()) -> List[Frame]:
    """Frames before the first segment and after each segment."""
    frames = [start]
    for segment in _as_path(path):
        frames.append(frames[-1].advance(segment))
    return frames


def segment_solid(segment: PathSegment, width: float, height: float,
                  sections: int = DEFAULT_SECTIONS):
    """Canonical solid for ``segment``: connector patch plus body.

    Returns a list of solids (the connector alone for a zero length
    straight).
    """
    half = width / 2.0
    pieces = [cuboid([CONNECTOR_LENGTH, width, height],
                     origin=[-CONNECTOR_LENGTH / 2.0, -half, 0.0])]
    if segment.is_arc:
        r = abs(segment.value)
        if r < half:
            raise DegenerateGeometryError(
                f"arc radius {r} is smaller than half the ribbon width ({half})",
                parameter="radius", value=r)
        a = abs(segment.angle)
        inner = r - half
        # the turn centre sits at (0, r); the arc starts straight below it
        wedge = annular_wedge(inner, r + half, height, -90.0, -90.0 + a, sections)
        pieces.append(transformed(wedge, Translation([0.0, r, 0.0])))
    elif segment.value < 0.0:
        raise DegenerateGeometryError(f"straight run length must not be negative, got {segment.value}",
                                      parameter="length", value=segment.value)
    elif segment.value > 0.0:
        pieces.append(cuboid([segment.value, width, height], origin=[0.0, -half, 0.0]))
    return pieces


def sweep(path: Iterable, width: float, height: float, start: Frame = Frame(),
          sections: int = DEFAULT_SECTIONS) -> trimesh.Trimesh:
    """Sweep a ``width`` x ``height`` ribbon along ``path`` from ``start``."""
    if width <= 0.0 or height <= 0.0:
        raise DegenerateGeometryError(f"ribbon cross-section must be positive, got {width} x {height}",
                                      parameter="width", value=(width, height))
    segments = _as_path(path)
    if not segments:
        raise InvalidPathError("cannot sweep an empty path", parameter="path", value=0)

    frame = start
    pieces = []
    for segment in segments:
        hand = frame.segment_hand(segment)
        place = replace(frame, hand=hand).matrix()
        for piece in segment_solid(segment, width, height, sections):
            pieces.append(transformed(piece, place))
        frame = frame.advance(segment)

    logger.debug("swept %d segments into %d pieces, end frame %s", len(segments), len(pieces), frame)
    return union(pieces)


def spring_path(params) -> List[PathSegment]:
    """Nine segment spring: a run along the wall, two opposed coils, a
    small return loop and a quarter turn into the contact bar."""
    r = params.spring_base
    ch = params.chamfer
    el = params.extra_spring_length
    D = params.spring_span
    return path_from_lists(
        [0, 180, 0, 180, 0, -180, 0, 90, 0],
        [r + ch + el, D / 4, el, D / 12, el / 2, D / 12, 1 + el / 2, D / 5, D / 3],
    )
