import pytest

from mandelview.geometry import Region, Vec2, aspect_ratio, map_to_pixel, map_to_plane


REGION = Region(Vec2(-2.0, -1.5), Vec2(1.0, 1.5))
SIZE = (300, 200)


def test_corners_map_to_region_corners():
    assert map_to_plane(Vec2(0, 0), SIZE, REGION) == REGION.top_left
    assert map_to_plane(Vec2(300, 200), SIZE, REGION) == REGION.bottom_right


def test_mapping_is_affine_per_axis():
    point = map_to_plane(Vec2(150, 50), SIZE, REGION)
    assert point.x == pytest.approx(-0.5)
    assert point.y == pytest.approx(-0.75)


def test_map_to_pixel_inverts_map_to_plane():
    pixel = Vec2(37.0, 123.0)
    back = map_to_pixel(map_to_plane(pixel, SIZE, REGION), SIZE, REGION)
    assert back.x == pytest.approx(pixel.x)
    assert back.y == pytest.approx(pixel.y)


def test_normalized_orders_corners():
    region = Region(Vec2(1.0, -1.0), Vec2(-2.0, 3.0)).normalized()
    assert region.top_left == Vec2(-2.0, -1.0)
    assert region.bottom_right == Vec2(1.0, 3.0)


def test_with_aspect_keeps_height_and_top_left():
    region = REGION.with_aspect(2.0)
    assert region.top_left == REGION.top_left
    assert region.height == REGION.height
    assert region.width == pytest.approx(2.0 * REGION.height)


def test_default_region_shows_whole_set():
    region = Region.default()
    assert region.top_left == Vec2(-2.2, -1.4)
    assert region.bottom_right.x == pytest.approx(0.6)
    assert region.bottom_right.y == 1.4


def test_signum_treats_zero_as_positive():
    assert Vec2(0.0, -3.0).signum() == Vec2(1.0, -1.0)
    assert Vec2(-0.0, 2.0).signum() == Vec2(-1.0, 1.0)


def test_vec2_arithmetic():
    assert Vec2(1, 2) + Vec2(3, 4) == Vec2(4, 6)
    assert Vec2(1, 2) - Vec2(3, 4) == Vec2(-2, -2)
    assert 2 * Vec2(1, 2) == Vec2(2, 4)
    assert Vec2(1, 2) * Vec2(3, 4) == Vec2(3, 8)
    assert Vec2(3, 4).length() == 5


def test_aspect_ratio():
    assert aspect_ratio((800, 400)) == 2.0
