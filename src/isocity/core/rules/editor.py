from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Literal

from ..model.grid import CityGrid
from ..model.tile import LayerKind
from .projection import IsoProjection, ViewTransform


logger = logging.getLogger(__name__)

BrushCategory = Literal["ground", "road", "building", "prop", "vehicle", "erase"]

BRUSH_CATEGORIES: tuple[BrushCategory, ...] = ("ground", "road", "building", "prop", "vehicle", "erase")

# Roads are painted as ground tiles; the road layer is only ever filled from documents.
CATEGORY_LAYER: dict[str, LayerKind] = {
    "ground": "ground",
    "road": "ground",
    "building": "building",
    "prop": "prop",
    "vehicle": "vehicle",
}


@dataclass(frozen=True, slots=True)
class Brush:
    category: BrushCategory
    sprite: str | None = None

    @property
    def erases(self) -> bool:
        return self.category == "erase"


ERASE_BRUSH = Brush(category="erase")


class EditorSession:
    """Applies paint gestures to the grid through the inverse projection."""

    def __init__(self, grid: CityGrid, projection: IsoProjection, view: ViewTransform) -> None:
        self.grid = grid
        self.projection = projection
        self.view = view
        self.brush: Brush | None = None
        self.edit_count = 0

    def select_brush(self, category: BrushCategory, sprite: str | None = None) -> Brush:
        if category not in BRUSH_CATEGORIES:
            raise ValueError(f"Unknown brush category: {category!r}")
        if category == "erase":
            brush = ERASE_BRUSH
        else:
            if not sprite:
                raise ValueError(f"brush category {category!r} needs a sprite name")
            brush = Brush(category=category, sprite=sprite)
        self.brush = brush
        logger.info("brush %s %s", brush.category, brush.sprite or "")
        return brush

    def clear_brush(self) -> None:
        self.brush = None

    def paint(self, screen_x: float, screen_y: float) -> tuple[int, int] | None:
        """Apply the active brush at a screen point; returns the edited cell."""
        if self.brush is None:
            return None
        x, y = self.projection.screen_to_grid(screen_x, screen_y, self.view)
        if not self.paint_cell(x, y):
            return None
        return x, y

    def paint_cell(self, x: int, y: int) -> bool:
        brush = self.brush
        if brush is None or not self.grid.in_bounds(x, y):
            return False
        if brush.erases:
            self.grid.clear_cell(x, y)
        else:
            self.grid.set_layer(x, y, CATEGORY_LAYER[brush.category], brush.sprite)
        self.edit_count += 1
        return True

    def document(self) -> dict[str, Any]:
        return self.grid.to_document()
