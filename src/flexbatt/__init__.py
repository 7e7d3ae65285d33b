# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("flexbatt")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from .errors import (
    BooleanError,
    CatalogError,
    DegenerateGeometryError,
    FlexbattError,
    InvalidPathError,
    InvalidRequestError,
)
from .primitives import annular_wedge, chamfered_box
from .sweep import Frame, PathSegment, spring_path, sweep
from .catalog import CellPreset, get_preset, list_presets, load_catalog
from .params import CompartmentParams, HolderRequest, PrintSettings
from .compartment import CompartmentSolid, build_compartment
from .holder import Holder, build_holder, generate
