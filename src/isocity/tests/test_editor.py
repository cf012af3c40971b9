import pytest

from isocity.core.model.grid import CityGrid
from isocity.core.model.tile import Tile
from isocity.core.rules.editor import EditorSession
from isocity.core.rules.projection import IsoProjection, ViewTransform


def _session(size: int = 8) -> EditorSession:
    return EditorSession(CityGrid(size), IsoProjection(), ViewTransform(pan_x=500.0, pan_y=80.0, zoom=0.8))


def _screen(session: EditorSession, x: int, y: int) -> tuple[float, float]:
    return session.projection.grid_to_screen(x, y, session.view)


def test_erase_removes_tile_then_no_brush_is_noop() -> None:
    session = _session()
    session.grid.set_layer(3, 4, "ground", "grass")

    session.select_brush("erase")
    assert session.paint(*_screen(session, 3, 4)) == (3, 4)
    assert session.grid.get(3, 4) is None

    session.clear_brush()
    assert session.paint(*_screen(session, 3, 4)) is None
    assert session.grid.get(3, 4) is None
    assert len(session.grid) == 0


@pytest.mark.parametrize(
    ("category", "layer"),
    [
        ("ground", "ground"),
        ("road", "ground"),
        ("building", "building"),
        ("prop", "prop"),
        ("vehicle", "vehicle"),
    ],
)
def test_brush_category_selects_layer(category: str, layer: str) -> None:
    session = _session()
    session.select_brush(category, "sprite.png")
    session.paint(*_screen(session, 2, 5))
    tile = session.grid.get(2, 5)
    assert tile is not None
    assert tile.layer(layer) == "sprite.png"
    assert tile.road is None


def test_paint_keeps_other_layers() -> None:
    session = _session()
    session.grid.set_layer(1, 1, "ground", "grass")
    session.select_brush("vehicle", "car")
    session.paint(*_screen(session, 1, 1))
    session.select_brush("road", "road_x")
    session.paint(*_screen(session, 1, 1))
    assert session.grid.get(1, 1) == Tile(ground="road_x", vehicle="car")


def test_paint_outside_grid_is_noop() -> None:
    session = _session(size=4)
    session.select_brush("building", "house")
    assert session.paint(*_screen(session, 6, 1)) is None
    assert session.paint(*_screen(session, -1, 0)) is None
    assert len(session.grid) == 0
    assert session.edit_count == 0


def test_new_brush_replaces_previous_one() -> None:
    session = _session()
    session.select_brush("building", "house")
    brush = session.select_brush("prop", "tree")
    assert session.brush is brush
    assert (brush.category, brush.sprite) == ("prop", "tree")


def test_brush_validation() -> None:
    session = _session()
    with pytest.raises(ValueError):
        session.select_brush("lava", "x")
    with pytest.raises(ValueError):
        session.select_brush("building")
