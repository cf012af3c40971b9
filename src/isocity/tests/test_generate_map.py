import pytest

from isocity.app.run_generate_map import CROSSROAD, ROAD_X, ROAD_Y, generate_city, island_mask
from isocity.core.model.grid import grid_from_document
from isocity.core.model.tile import DEFAULT_GROUND


def test_default_map_matches_simple_crossroad() -> None:
    doc = generate_city(12)
    grid = grid_from_document(doc)

    assert doc["size"] == 12
    assert len(doc["tiles"]) == 144
    assert grid.get(5, 5).ground == CROSSROAD
    assert [grid.get(x, 5).ground for x in range(2, 9) if x != 5] == [ROAD_X] * 6
    assert [grid.get(5, y).ground for y in range(2, 9) if y != 5] == [ROAD_Y] * 6
    assert grid.get(1, 5).ground == DEFAULT_GROUND
    assert grid.get(5, 9).ground == DEFAULT_GROUND


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_island_stays_in_bounds_and_keeps_roads(seed: int) -> None:
    doc = generate_city(16, seed=seed, island=True)
    coords = {(t["x"], t["y"]) for t in doc["tiles"]}

    assert all(0 <= x < 16 and 0 <= y < 16 for x, y in coords)
    assert len(coords) < 16 * 16
    assert (0, 0) not in coords
    assert (7, 7) in coords
    assert all((7, y) in coords for y in range(4, 11))


def test_island_mask_is_seeded() -> None:
    assert (island_mask(20, seed=9) == island_mask(20, seed=9)).all()
    assert island_mask(5, enabled=False).all()


def test_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        generate_city(0)
