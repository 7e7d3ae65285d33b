"""Parameter records and derivation rules for battery holders.

Policy lives here (which numbers to use); the geometry modules only turn
numbers into solids.  Everything is a frozen dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .catalog import CellPreset, get_preset, list_presets
from .errors import DegenerateGeometryError, InvalidRequestError

__all__ = [
    "MAX_COMPARTMENTS",
    "MAX_CELLS",
    "PrintSettings",
    "Grip",
    "grip_policy",
    "CompartmentParams",
    "HolderRequest",
    "PolarityMark",
    "polarity_marks",
    "floor_channel_positions",
    "grip_relief_positions",
]

MAX_COMPARTMENTS = 20
MAX_CELLS = 10


@dataclass(frozen=True)
class PrintSettings:
    """Printer dependent constants every builder receives explicitly."""

    extrusion_width: float = 0.56
    extrusion_height: float = 0.25
    floor_thickness: float = 2.0
    sections: int = 48

    def __post_init__(self):
        for name in ("extrusion_width", "extrusion_height", "floor_thickness"):
            value = getattr(self, name)
            if value <= 0:
                raise DegenerateGeometryError(f"{name} must be positive, got {value}",
                                              parameter=name, value=value)
        if self.sections < 8:
            raise DegenerateGeometryError(f"sections must be at least 8, got {self.sections}",
                                          parameter="sections", value=self.sections)


@dataclass(frozen=True)
class Grip:
    deepen: float
    relief_fraction: float
    overhang: float  # millimeters


def grip_policy(preset: CellPreset, cells: int, settings: PrintSettings = PrintSettings()) -> Grip:
    """Grip relief and retention overhang for ``cells`` cells of ``preset``.

    A single cell never gets a relief: ``deepen=0, df=1, oh=0``.
    """
    if cells <= 1:
        return Grip(deepen=0.0, relief_fraction=1.0, overhang=0.0)
    tier = preset.grip_tier(cells)
    if tier is None:
        return Grip(deepen=0.0, relief_fraction=1.0, overhang=0.0)
    return Grip(deepen=tier.deepen,
                relief_fraction=tier.relief_fraction,
                overhang=tier.overhang * settings.extrusion_width)


@dataclass(frozen=True)
class CompartmentParams:
    """Dimensions (millimeters) of one compartment holding ``cells`` cells."""

    cells: int
    length: float
    diameter: float
    height_fraction: float
    screw_hole_diameter: float
    clearance: float = 0.28
    overhang: float = 0.0
    extra_spring_length: float = 0.0
    channels: Tuple[float, ...] = (0.25, 0.75)
    deepen: float = 0.0
    relief_fraction: float = 1.0
    length_correction: float = 0.0
    settings: PrintSettings = PrintSettings()
    name: str = ""

    def __post_init__(self):
        if self.cells < 1:
            raise DegenerateGeometryError(f"need at least one cell, got {self.cells}",
                                          parameter="cells", value=self.cells)
        for attr in ("length", "diameter", "height_fraction", "screw_hole_diameter"):
            value = getattr(self, attr)
            if value <= 0:
                raise DegenerateGeometryError(f"{attr} must be positive, got {value}",
                                              parameter=attr, value=value)
        if self.cell_pitch <= 0:
            raise DegenerateGeometryError(
                f"corrected cell length {self.cell_pitch} is not positive "
                f"(length={self.length}, length_correction={self.length_correction})",
                parameter="length_correction", value=self.length_correction)
        if self.clearance < 0:
            raise DegenerateGeometryError(f"clearance must not be negative, got {self.clearance}",
                                          parameter="clearance", value=self.clearance)
        if self.overhang < 0 or 2 * self.overhang >= self.diameter:
            raise DegenerateGeometryError(f"overhang {self.overhang} out of range for diameter {self.diameter}",
                                          parameter="overhang", value=self.overhang)
        if self.deepen != 0 and not 0 < self.relief_fraction <= 1:
            raise DegenerateGeometryError(f"relief_fraction must be in (0, 1], got {self.relief_fraction}",
                                          parameter="relief_fraction", value=self.relief_fraction)
        if abs(self.deepen) >= 1:
            raise DegenerateGeometryError(f"deepen must be within (-1, 1), got {self.deepen}",
                                          parameter="deepen", value=self.deepen)
        for f in self.channels:
            if not 0 <= f <= 1:
                raise DegenerateGeometryError(f"channel position {f} is not a fraction",
                                              parameter="channels", value=f)
        if self.spring_span / 12 < self.spring_wall / 2:
            raise DegenerateGeometryError(
                f"diameter {self.diameter} too small for the spring coils",
                parameter="diameter", value=self.diameter)
        smallest = min(self.body_size)
        if self.chamfer >= smallest / 2:
            raise DegenerateGeometryError(
                f"chamfer {self.chamfer} is not below half the smallest body dimension {smallest}",
                parameter="chamfer", value=self.chamfer)

    @classmethod
    def from_preset(cls, preset: CellPreset, cells: int = 1,
                    settings: PrintSettings = PrintSettings()) -> "CompartmentParams":
        grip = grip_policy(preset, cells, settings)
        return cls(
            cells=cells,
            length=preset.length,
            diameter=preset.diameter,
            height_fraction=preset.height_fraction,
            screw_hole_diameter=preset.screw_hole_diameter,
            clearance=preset.clearance,
            overhang=grip.overhang,
            extra_spring_length=preset.extra_spring_length,
            channels=tuple(preset.channels),
            deepen=grip.deepen,
            relief_fraction=grip.relief_fraction,
            length_correction=preset.length_correction,
            settings=settings,
            name=preset.name,
        )

    # derived dimensions

    @property
    def wall(self) -> float:
        return (6 if self.cells > 1 else 4) * self.settings.extrusion_width

    @property
    def spring_wall(self) -> float:
        return 2 * self.settings.extrusion_width

    @property
    def floor(self) -> float:
        return self.settings.floor_thickness

    @property
    def chamfer(self) -> float:
        return self.spring_wall - self.settings.extrusion_width

    @property
    def spring_base(self) -> float:
        return self.diameter / 5 + 2 * self.spring_wall

    @property
    def total_length(self) -> float:
        return self.cells * self.length + self.length_correction

    @property
    def cell_pitch(self) -> float:
        return self.total_length / self.cells

    @property
    def spring_span(self) -> float:
        return self.diameter + 2 * self.wall - 2 * self.spring_wall - 0.7

    @property
    def body_height(self) -> float:
        return self.height_fraction * self.diameter + self.floor + self.chamfer

    @property
    def spring_height(self) -> float:
        return self.height_fraction * self.diameter + self.floor

    @property
    def body_size(self) -> Tuple[float, float, float]:
        return (self.total_length + self.wall,
                self.diameter + 2 * self.wall,
                self.body_height)

    @property
    def compartment_pitch(self) -> float:
        return self.diameter + 2 * self.wall - self.spring_wall

    def describe(self) -> dict:
        return {
            "name": self.name,
            "cells": self.cells,
            "length": self.length,
            "diameter": self.diameter,
            "total_length": self.total_length,
            "cell_pitch": self.cell_pitch,
            "wall": self.wall,
            "spring_wall": self.spring_wall,
            "deepen": self.deepen,
            "relief_fraction": self.relief_fraction,
            "overhang": self.overhang,
        }


@dataclass(frozen=True)
class HolderRequest:
    battery_type: str
    compartments: int = 1
    cells: int = 1
    alternate_labels: bool = False

    def __post_init__(self):
        for attr, limit in (("compartments", MAX_COMPARTMENTS), ("cells", MAX_CELLS)):
            value = getattr(self, attr)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidRequestError(f"{attr} must be an integer, got {value!r}",
                                          parameter=attr, value=value)
            if not 1 <= value <= limit:
                raise InvalidRequestError(f"{attr} must be between 1 and {limit}, got {value}",
                                          parameter=attr, value=value)

    def preset(self, catalog_path: Optional[Path] = None) -> CellPreset:
        try:
            return get_preset(self.battery_type, catalog_path)
        except KeyError:
            raise InvalidRequestError(
                f"unknown battery type '{self.battery_type}'; "
                f"available: {', '.join(list_presets(catalog_path))}",
                parameter="battery_type", value=self.battery_type) from None

    def resolve(self, settings: PrintSettings = PrintSettings(),
                catalog_path: Optional[Path] = None) -> CompartmentParams:
        return CompartmentParams.from_preset(self.preset(catalog_path), self.cells, settings)


@dataclass(frozen=True)
class PolarityMark:
    kind: str  # "minus" or "plus"
    x: float
    y: float


def polarity_marks(params: CompartmentParams, index: int = 0,
                   alternate_labels: bool = False) -> Tuple[PolarityMark, ...]:
    """Where the minus bar and plus cross of every cell are engraved.

    Long cells carry the two marks at opposite ends and opposite sides of
    the cell; short cells (no longer than twelve screw hole diameters)
    keep both on the +y side, closer together.  Odd compartments are
    mirrored across the cell axis when ``alternate_labels`` is set.
    """
    l = params.length
    d = params.diameter
    lc = params.cell_pitch
    long_cell = l > 12 * params.screw_hole_diameter
    offset = l / 5 if long_cell else l / 10
    side = d / 4 + 1
    flip = -1.0 if (alternate_labels and index % 2 == 1) else 1.0

    marks = []
    for j in range(params.cells):
        mid = j * lc + lc / 2
        if long_cell:
            marks.append(PolarityMark("minus", mid - offset, -side * flip))
            marks.append(PolarityMark("plus", mid + offset, side * flip))
        else:
            marks.append(PolarityMark("minus", mid - offset, side * flip))
            marks.append(PolarityMark("plus", mid + offset, side * flip))
    return tuple(marks)


def floor_channel_positions(params: CompartmentParams) -> Tuple[float, ...]:
    """x of each transverse floor channel; ``channels`` are fractions of
    the total length."""
    return tuple(f * params.total_length for f in params.channels)


def grip_relief_positions(params: CompartmentParams) -> Tuple[float, ...]:
    """x centre of each grip relief, in the order they are applied.

    A relief sits on the open end quarter of every cell that opens onto
    the retention rib of its neighbour.  ``deepen > 0`` opens the far end
    and walks from cell 0 up; ``deepen < 0`` opens the near end and walks
    back from the last cell.  The outer ends of the compartment carry the
    contact bulges and never get one.
    """
    lc = params.cell_pitch
    m = params.cells
    if params.deepen > 0:
        return tuple((j + 1) * lc - lc / 8 for j in range(m - 1))
    if params.deepen < 0:
        return tuple(j * lc + lc / 8 for j in range(m - 1, 0, -1))
    return ()
