"""Assemble compartments side by side into a battery holder."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple, Union

import trimesh

from .compartment import CompartmentSolid, build_compartment
from .errors import InvalidRequestError
from .metadata import META_KEY, add_tags, get_solid_metadata, set_layer
from .params import MAX_COMPARTMENTS, CompartmentParams, HolderRequest, PrintSettings
from .primitives import transformed, union
from .xform import Translation

__all__ = ["Holder", "build_holder", "generate"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Holder:
    """Compartments of a holder, each already moved to its array slot."""

    params: CompartmentParams
    compartments: Tuple[CompartmentSolid, ...]
    alternate_labels: bool = False
    request: Optional[HolderRequest] = None

    @property
    def count(self) -> int:
        return len(self.compartments)

    @property
    def width(self) -> float:
        """Overall size across the compartments (y)."""
        p = self.params
        n = self.count
        return n * (p.diameter + 2 * p.wall) - (n - 1) * p.spring_wall

    def mesh(self, merge: bool = False) -> trimesh.Trimesh:
        """Single mesh of the holder.

        Neighbouring compartments overlap by two spring walls; by default
        they are simply concatenated (slicers fuse them).  ``merge=True``
        unions them into one closed shell instead.
        """
        solids = [c.solid for c in self.compartments]
        if merge:
            result = union(solids)
        else:
            result = trimesh.util.concatenate(solids)
        result.metadata.pop(META_KEY, None)
        meta = get_solid_metadata(result, create=True)
        add_tags(meta, ["battery_holder"])
        set_layer(meta, "body")
        meta["holder"] = dict(self.params.describe(), compartments=self.count,
                              alternate_labels=self.alternate_labels, merged=merge)
        return result

    def export(self, path: Union[str, Path], merge: bool = False) -> Path:
        """Write the holder mesh; the file type follows the suffix."""
        path = Path(path)
        file_type = path.suffix.lstrip(".").lower() or "stl"
        self.mesh(merge=merge).export(str(path), file_type=file_type)
        logger.info("wrote %s (%d compartments)", path, self.count)
        return path


def build_holder(params: Union[CompartmentParams, HolderRequest], count: int = 1,
                 alternate_labels: bool = False, settings: PrintSettings = PrintSettings(),
                 workers: int = 1) -> Holder:
    """Build ``count`` compartments and lay them out along +y.

    ``params`` is either resolved :class:`CompartmentParams` or a
    :class:`HolderRequest`, in which case ``count`` and
    ``alternate_labels`` come from the request.  With ``workers > 1``
    compartments are built on a thread pool; results keep index order.
    """
    request = None
    if isinstance(params, HolderRequest):
        request = params
        count = request.compartments
        alternate_labels = request.alternate_labels
        params = request.resolve(settings)
    if not 1 <= count <= MAX_COMPARTMENTS:
        raise InvalidRequestError(f"compartments must be between 1 and {MAX_COMPARTMENTS}, got {count}",
                                  parameter="compartments", value=count)
    if workers < 1:
        raise InvalidRequestError(f"workers must be at least 1, got {workers}",
                                  parameter="workers", value=workers)

    pitch = params.compartment_pitch

    def build(index: int) -> CompartmentSolid:
        part = build_compartment(params, index, count, alternate_labels)
        if index == 0:
            return part
        shift = Translation([0.0, index * pitch, 0.0])
        return CompartmentSolid(index=index,
                                body=transformed(part.body, shift),
                                bulges=tuple(transformed(b, shift) for b in part.bulges),
                                solid=transformed(part.solid, shift))

    if workers > 1 and count > 1:
        with ThreadPoolExecutor(max_workers=min(workers, count)) as executor:
            parts = tuple(executor.map(build, range(count)))
    else:
        parts = tuple(build(i) for i in range(count))

    holder = Holder(params=params, compartments=parts,
                    alternate_labels=alternate_labels, request=request)
    logger.info("built %s holder: %d x %d cells, %.1f x %.1f x %.1f mm",
                params.name or "custom", count, params.cells,
                params.body_size[0], holder.width, params.body_height)
    return holder


def generate(battery_type: str, compartments: int = 1, cells: int = 1,
             alternate_labels: bool = False, settings: PrintSettings = PrintSettings(),
             workers: int = 1, catalog_path: Optional[Path] = None) -> Holder:
    """Validate a request for a catalogued cell type and build the holder.

    Raises:
        InvalidRequestError: unknown type or counts out of range
    """
    request = HolderRequest(battery_type, compartments, cells, alternate_labels)
    params = request.resolve(settings, catalog_path)
    holder = build_holder(params, request.compartments, request.alternate_labels,
                          settings, workers)
    return replace(holder, request=request)
