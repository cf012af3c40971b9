import pytest

from isocity.core.rules.projection import IsoProjection, Rect, ViewTransform, reset_view


@pytest.mark.parametrize("zoom", [0.3, 0.4, 0.8, 1.0, 1.37, 2.0])
@pytest.mark.parametrize(("pan_x", "pan_y"), [(0.0, 0.0), (640.0, 266.7), (-1234.5, 98.25)])
def test_inverse_of_forward_is_identity_at_grid_points(zoom: float, pan_x: float, pan_y: float) -> None:
    proj = IsoProjection()
    view = ViewTransform(pan_x=pan_x, pan_y=pan_y, zoom=zoom)
    for x in range(0, 20, 3):
        for y in range(0, 20, 4):
            sx, sy = proj.grid_to_screen(x, y, view)
            assert proj.screen_to_grid(sx, sy, view) == (x, y)


def test_click_on_forward_point_picks_that_cell() -> None:
    proj = IsoProjection(tile_width=132, tile_height=66)
    view = ViewTransform(pan_x=400.0, pan_y=120.0, zoom=0.8)
    sx, sy = proj.grid_to_screen(3, 4, view)
    assert proj.screen_to_grid(sx, sy, view) == (3, 4)


def test_forward_mapping_matches_diamond_formula() -> None:
    proj = IsoProjection(tile_width=132, tile_height=66)
    view = ViewTransform(pan_x=10.0, pan_y=20.0, zoom=0.5)
    sx, sy = proj.grid_to_screen(3, 1, view)
    assert sx == pytest.approx((3 - 1) * 66 * 0.5 + 10.0)
    assert sy == pytest.approx((3 + 1) * 33 * 0.5 + 20.0)


def test_points_near_a_cell_centre_round_to_it() -> None:
    proj = IsoProjection()
    view = ViewTransform(pan_x=0.0, pan_y=0.0, zoom=1.0)
    sx, sy = proj.grid_to_screen(5, 2, view)
    assert proj.screen_to_grid(sx + 10, sy + 4, view) == (5, 2)
    assert proj.screen_to_grid(sx - 10, sy - 4, view) == (5, 2)


def test_sprite_rect_puts_bottom_centre_on_tile_centre() -> None:
    proj = IsoProjection(tile_width=132, tile_height=66)
    view = ViewTransform(pan_x=100.0, pan_y=50.0, zoom=2.0)
    rect = proj.sprite_rect(132, 99, 0, 0, view)
    assert rect.width == pytest.approx(264)
    assert rect.height == pytest.approx(198)
    assert rect.x + rect.width / 2 == pytest.approx(100.0)
    assert rect.y + rect.height == pytest.approx(50.0 + 66.0)


def test_sprite_rect_z_offset_lifts_sprite() -> None:
    proj = IsoProjection()
    view = ViewTransform(zoom=0.5)
    flat = proj.sprite_rect(100, 80, 2, 2, view)
    lifted = proj.sprite_rect(100, 80, 2, 2, view, z_offset=20)
    assert lifted.y == pytest.approx(flat.y - 10)
    assert lifted.x == flat.x


def test_rect_intersection() -> None:
    viewport = Rect(0, 0, 800, 600)
    assert Rect(10, 10, 50, 50).intersects(viewport)
    assert Rect(-40, -40, 50, 50).intersects(viewport)
    assert not Rect(-100, 10, 50, 50).intersects(viewport)
    assert not Rect(10, 700, 50, 50).intersects(viewport)


def test_reset_view_centres_origin_horizontally() -> None:
    view = ViewTransform(pan_x=-5.0, pan_y=-5.0, zoom=0.4)
    reset_view(view, 1200, 900)
    assert (view.pan_x, view.pan_y, view.zoom) == (600, 300, 1.0)
