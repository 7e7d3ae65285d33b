import math
import os

os.environ.setdefault("FLEXBATT_BOOLEAN_ENGINE", "manifold")

import numpy as np
import pytest
import trimesh

from flexbatt import generate
from flexbatt.checks import check_holder
from flexbatt.errors import InvalidRequestError
from flexbatt.holder import build_holder
from flexbatt.metadata import get_solid_metadata, has_tag
from flexbatt.params import HolderRequest, PrintSettings

SETTINGS = PrintSettings(sections=16)


@pytest.fixture(scope="module")
def aaa_three():
    return generate("AAA", compartments=3, cells=1, settings=SETTINGS)


def test_array_width(aaa_three):
    p = aaa_three.params
    expected = 3 * (p.diameter + 2 * p.wall) - 2 * p.spring_wall
    assert math.isclose(aaa_three.width, expected)
    lo, hi = aaa_three.mesh().bounds
    assert math.isclose(hi[1] - lo[1], expected, abs_tol=1e-6)


def test_compartment_offsets(aaa_three):
    p = aaa_three.params
    for part in aaa_three.compartments:
        lo = part.solid.bounds[0]
        assert math.isclose(lo[1], part.index * p.compartment_pitch - p.diameter / 2 - p.wall, abs_tol=1e-6)
    assert [part.index for part in aaa_three.compartments] == [0, 1, 2]


def test_every_compartment_checks_out(aaa_three):
    result = check_holder(aaa_three)
    assert result, result.messages


def test_request_is_recorded(aaa_three):
    assert aaa_three.request == HolderRequest("AAA", 3, 1)
    assert aaa_three.count == 3


def test_merged_mesh_is_one_body(aaa_three):
    merged = aaa_three.mesh(merge=True)
    assert merged.is_watertight
    assert merged.body_count == 1
    meta = get_solid_metadata(merged)
    assert meta["holder"]["merged"] is True
    assert has_tag(merged, "battery_holder")


def test_concurrent_build_matches_serial():
    request = HolderRequest("AAA", compartments=2, cells=2, alternate_labels=True)
    serial = build_holder(request, settings=SETTINGS, workers=1)
    threaded = build_holder(request, settings=SETTINGS, workers=2)
    assert [c.index for c in threaded.compartments] == [0, 1]
    for a, b in zip(serial.compartments, threaded.compartments):
        assert math.isclose(a.solid.volume, b.solid.volume, rel_tol=1e-9)
        assert np.allclose(a.solid.bounds, b.solid.bounds)


def test_alternate_labels_change_odd_compartment_only():
    plain = build_holder(HolderRequest("AAA", 2), settings=SETTINGS)
    mirrored = build_holder(HolderRequest("AAA", 2, alternate_labels=True), settings=SETTINGS)
    first = mirrored.compartments[0].solid
    assert math.isclose(plain.compartments[0].solid.volume, first.volume, rel_tol=1e-9)
    assert np.allclose(plain.compartments[0].solid.bounds, first.bounds)
    flipped = mirrored.compartments[1].solid
    # the engraving moved to the other side; volume is unchanged
    assert not np.array_equal(plain.compartments[1].solid.vertices, flipped.vertices)
    assert math.isclose(plain.compartments[1].solid.volume, flipped.volume, rel_tol=1e-6)


def test_export_stl(aaa_three, tmp_path):
    path = aaa_three.export(tmp_path / "holder.stl")
    assert path.exists()
    loaded = trimesh.load(str(path))
    assert len(loaded.faces) > 0
    assert np.allclose(loaded.bounds, aaa_three.mesh().bounds, atol=1e-4)


def test_invalid_request_builds_nothing():
    with pytest.raises(InvalidRequestError):
        generate("AA", compartments=0)
    with pytest.raises(InvalidRequestError):
        generate("NOPE")
    with pytest.raises(InvalidRequestError):
        build_holder(HolderRequest("AA"), workers=0)


def test_two_cell_18650_row_with_alternate_labels():
    holder = generate("18650", compartments=3, cells=2, alternate_labels=True, settings=SETTINGS)
    p = holder.params
    assert holder.count == 3
    assert math.isclose(p.deepen, 0.70)
    assert math.isclose(p.relief_fraction, 0.30)
    assert math.isclose(p.overhang, 0.56)
    result = check_holder(holder)
    assert result, result.messages
    lo, hi = holder.mesh().bounds
    assert math.isclose(hi[1] - lo[1], holder.width, abs_tol=1e-6)
    flags = [get_solid_metadata(c.solid)["compartment"]["alternate_labels"] for c in holder.compartments]
    assert flags == [True, True, True]


def test_neighbours_overlap_by_two_spring_walls(aaa_three):
    p = aaa_three.params
    first, second = aaa_three.compartments[:2]
    overlap = first.solid.bounds[1][1] - second.solid.bounds[0][1]
    assert math.isclose(overlap, 2 * p.spring_wall, abs_tol=1e-6)
