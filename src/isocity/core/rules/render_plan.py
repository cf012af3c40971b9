from __future__ import annotations

from dataclasses import dataclass

from ..model.atlas import AtlasIndex, SpriteFrame
from ..model.grid import CityGrid
from ..model.tile import LayerKind, Tile
from .projection import IsoProjection, Rect, ViewTransform


@dataclass(frozen=True, slots=True)
class DrawCommand:
    grid_x: int
    grid_y: int
    layer: LayerKind
    sprite: str
    frame: SpriteFrame
    dest: Rect


def depth_sorted_cells(grid: CityGrid) -> list[tuple[int, int, Tile]]:
    """Populated cells ordered far-to-near by ``x + y``.

    ``sorted`` is stable, so cells on the same diagonal keep scan order.
    """
    return sorted(grid.populated(), key=lambda cell: cell[0] + cell[1])


def build_draw_list(
    grid: CityGrid,
    atlas: AtlasIndex,
    projection: IsoProjection,
    view: ViewTransform,
    viewport: Rect | None = None,
    *,
    z_offset: float = 0.0,
) -> list[DrawCommand]:
    commands: list[DrawCommand] = []
    for x, y, tile in depth_sorted_cells(grid):
        for layer, sprite in tile.layers_in_draw_order():
            frame = atlas.resolve(sprite)
            if frame is None:
                continue
            dest = projection.sprite_rect(frame.width, frame.height, x, y, view, z_offset=z_offset)
            if viewport is not None and not dest.intersects(viewport):
                continue
            commands.append(
                DrawCommand(grid_x=x, grid_y=y, layer=layer, sprite=sprite, frame=frame, dest=dest)
            )
    return commands
