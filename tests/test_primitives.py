import math
import os

os.environ.setdefault("FLEXBATT_BOOLEAN_ENGINE", "manifold")

import numpy as np
import pytest

from flexbatt.checks import annular_sector_volume, check_connected, check_solid
from flexbatt.errors import BooleanError, DegenerateGeometryError
from flexbatt.primitives import (
    annular_wedge,
    chamfered_box,
    cuboid,
    cylinder,
    difference,
    frustum,
    hull,
    intersection,
    sphere,
    union,
)

# polygon area / circle area for 48 sections
_POLY48 = 48 * math.sin(2 * math.pi / 48) / (2 * math.pi)


def _chamfered_box_volume(a, b, c, d):
    return a * b * c - 2 * d * d * (a + b + c) + 16.0 / 3.0 * d ** 3


def test_cuboid_placed_by_min_corner():
    box = cuboid([2, 3, 4], origin=[1, -1, 0])
    assert np.allclose(box.bounds, [[1, -1, 0], [3, 2, 4]])
    assert math.isclose(box.volume, 24.0)


def test_cuboid_rejects_empty_size():
    with pytest.raises(DegenerateGeometryError):
        cuboid([1, 0, 1])


def test_frustum_and_cone():
    cyl = cylinder(2.0, 5.0)
    assert check_solid(cyl)
    assert math.isclose(cyl.volume, math.pi * 4 * 5 * _POLY48, rel_tol=1e-9)
    assert math.isclose(cyl.bounds[1][0], 2.0)
    cone = frustum(3.0, 0.0, 6.0, sections=32)
    assert check_solid(cone)
    assert math.isclose(cone.bounds[1][2], 6.0)
    with pytest.raises(DegenerateGeometryError):
        frustum(1.0, 1.0, 0.0)
    with pytest.raises(DegenerateGeometryError):
        frustum(1.0, 1.0, 1.0, sections=2)


def test_sphere_and_hull():
    a = sphere(1.0, (0, 0, 0))
    b = sphere(1.0, (4, 0, 0))
    capsule = hull(a, b)
    assert check_solid(capsule)
    assert math.isclose(capsule.bounds[0][0], -1.0, abs_tol=1e-6)
    assert math.isclose(capsule.bounds[1][0], 5.0, abs_tol=1e-6)


class TestChamferedBox:

    @pytest.mark.parametrize("size,d", [
        ([10.0, 20.0, 30.0], 1.0),
        ([51.6, 18.88, 14.08], 0.56),
        ([5.0, 5.0, 5.0], 2.0),
    ])
    def test_volume(self, size, d):
        box = chamfered_box(size, d)
        assert check_solid(box)
        assert math.isclose(box.volume, _chamfered_box_volume(*size, d), rel_tol=1e-9)
        assert np.allclose(box.bounds, [[0, 0, 0], size])

    def test_zero_chamfer_is_plain_box(self):
        box = chamfered_box([2, 3, 4], 0.0)
        assert math.isclose(box.volume, 24.0)

    @pytest.mark.parametrize("d", [-0.1, 1.0, 1.5])
    def test_rejects_bad_chamfer(self, d):
        with pytest.raises(DegenerateGeometryError) as info:
            chamfered_box([2, 3, 4], d)
        assert info.value.parameter == "chamfer"


class TestAnnularWedge:

    def test_quarter(self):
        wedge = annular_wedge(2.0, 5.0, 3.0, 0.0, 90.0)
        assert check_solid(wedge)
        expected = annular_sector_volume(2.0, 5.0, 3.0, 0.0, 90.0) * _POLY48
        assert math.isclose(wedge.volume, expected, rel_tol=1e-3)
        lo, hi = wedge.bounds
        assert math.isclose(lo[0], 0.0, abs_tol=1e-6)
        assert math.isclose(lo[1], 0.0, abs_tol=1e-6)
        assert math.isclose(hi[0], 5.0, abs_tol=1e-6)
        assert math.isclose(hi[1], 5.0, abs_tol=1e-6)

    def test_half_at_boundary(self):
        wedge = annular_wedge(1.0, 4.0, 1.0, -90.0, 90.0)
        expected = annular_sector_volume(1.0, 4.0, 1.0, -90.0, 90.0) * _POLY48
        assert math.isclose(wedge.volume, expected, rel_tol=1e-3)
        assert math.isclose(wedge.bounds[0][0], 0.0, abs_tol=1e-6)

    def test_reflex_span(self):
        wedge = annular_wedge(2.0, 5.0, 3.0, 0.0, 270.0)
        assert check_solid(wedge)
        assert check_connected(wedge)
        expected = annular_sector_volume(2.0, 5.0, 3.0, 0.0, 270.0) * _POLY48
        assert math.isclose(wedge.volume, expected, rel_tol=1e-3)
        # the missing quadrant is x > 0, y < 0
        lo, hi = wedge.bounds
        assert math.isclose(lo[1], -5.0, abs_tol=1e-6)
        assert math.isclose(hi[0], 5.0, abs_tol=1e-6)

    def test_full_turn(self):
        ring = annular_wedge(2.0, 5.0, 1.0, 0.0, 360.0)
        expected = annular_sector_volume(2.0, 5.0, 1.0, 0.0, 360.0) * _POLY48
        assert math.isclose(ring.volume, expected, rel_tol=1e-6)

    def test_solid_sector(self):
        wedge = annular_wedge(0.0, 3.0, 2.0, 0.0, 90.0)
        expected = annular_sector_volume(0.0, 3.0, 2.0, 0.0, 90.0) * _POLY48
        assert math.isclose(wedge.volume, expected, rel_tol=1e-3)

    @pytest.mark.parametrize("args", [
        (3.0, 2.0, 1.0, 0.0, 90.0),
        (1.0, 2.0, 0.0, 0.0, 90.0),
        (1.0, 2.0, 1.0, 90.0, 90.0),
    ])
    def test_rejects_degenerate(self, args):
        with pytest.raises(DegenerateGeometryError):
            annular_wedge(*args)


def test_booleans():
    a = cuboid([2, 2, 2])
    b = cuboid([2, 2, 2], origin=[1, 0, 0])
    assert math.isclose(union([a, b]).volume, 12.0, rel_tol=1e-9)
    assert math.isclose(difference(a, [b]).volume, 4.0, rel_tol=1e-9)
    assert math.isclose(intersection([a, b]).volume, 4.0, rel_tol=1e-9)
    assert difference(a, []).volume == a.volume
    with pytest.raises(DegenerateGeometryError):
        union([])


def test_unknown_engine_reports_boolean_error():
    a = cuboid([1, 1, 1])
    with pytest.raises(BooleanError) as info:
        union([a, a.copy()], engine="no-such-engine")
    assert info.value.parameter == "engine"
