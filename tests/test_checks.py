import math

import trimesh

from flexbatt.checks import (
    CheckResult,
    annular_sector_volume,
    check_connected,
    check_solid,
)
from flexbatt.metadata import add_tags, get_solid_metadata, has_tag, set_layer
from flexbatt.primitives import cuboid


def test_annular_sector_volume():
    assert math.isclose(annular_sector_volume(0.0, 1.0, 1.0, 0.0, 360.0), math.pi)
    assert math.isclose(annular_sector_volume(1.0, 2.0, 2.0, -90.0, 0.0), 2 * math.pi / 4 * 3)


def test_check_result_truthiness():
    assert CheckResult(True, [])
    assert not CheckResult(False, ['bad'])


def test_check_solid_box():
    assert check_solid(cuboid([1, 2, 3]))


def test_check_solid_open_mesh():
    box = cuboid([1, 1, 1])
    open_box = trimesh.Trimesh(vertices=box.vertices, faces=box.faces[:-1], process=False)
    result = check_solid(open_box)
    assert not result
    assert any('watertight' in m for m in result.messages)


def test_check_solid_empty():
    result = check_solid(trimesh.Trimesh())
    assert not result


def test_check_connected():
    a = cuboid([1, 1, 1])
    b = cuboid([1, 1, 1], origin=[5, 0, 0])
    assert check_connected(a)
    result = check_connected(trimesh.util.concatenate([a, b]))
    assert not result
    assert result.messages == ['2 disconnected bodies']


def test_solid_metadata_roundtrip():
    box = cuboid([1, 1, 1])
    assert get_solid_metadata(box) == {}
    meta = get_solid_metadata(box, create=True)
    assert meta['schema'] == 'flexbatt-metadata-v1'
    assert meta['tags'] == []
    assert meta['layer'] == 'default'

    add_tags(meta, ['compartment', 'compartment', ''])
    set_layer(meta, 'body')
    assert has_tag(box, 'compartment')
    assert get_solid_metadata(box)['tags'] == ['compartment']
    assert get_solid_metadata(box)['layer'] == 'body'

    copy = box.copy()
    assert has_tag(copy, 'compartment')
