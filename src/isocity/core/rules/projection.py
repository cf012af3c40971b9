from __future__ import annotations

from dataclasses import dataclass
import math


DEFAULT_TILE_WIDTH = 132
DEFAULT_TILE_HEIGHT = 66


@dataclass(slots=True)
class ViewTransform:
    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = 1.0


@dataclass(frozen=True, slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def intersects(self, other: "Rect") -> bool:
        return not (
            self.x + self.width < other.x
            or self.x > other.x + other.width
            or self.y + self.height < other.y
            or self.y > other.y + other.height
        )


@dataclass(frozen=True, slots=True)
class IsoProjection:
    """Diamond-tile projection between grid cells and top-left-origin screen pixels."""

    tile_width: float = DEFAULT_TILE_WIDTH
    tile_height: float = DEFAULT_TILE_HEIGHT

    def half_extents(self, zoom: float) -> tuple[float, float]:
        return (self.tile_width / 2) * zoom, (self.tile_height / 2) * zoom

    def grid_to_screen(self, grid_x: float, grid_y: float, view: ViewTransform) -> tuple[float, float]:
        half_w, half_h = self.half_extents(view.zoom)
        return (
            (grid_x - grid_y) * half_w + view.pan_x,
            (grid_x + grid_y) * half_h + view.pan_y,
        )

    def screen_to_grid_float(self, screen_x: float, screen_y: float, view: ViewTransform) -> tuple[float, float]:
        half_w, half_h = self.half_extents(view.zoom)
        if half_w == 0 or half_h == 0:
            raise ValueError("projection is degenerate (zero tile size or zoom)")
        sx = (screen_x - view.pan_x) / half_w
        sy = (screen_y - view.pan_y) / half_h
        return (sx + sy) / 2, (sy - sx) / 2

    def screen_to_grid(self, screen_x: float, screen_y: float, view: ViewTransform) -> tuple[int, int]:
        gx, gy = self.screen_to_grid_float(screen_x, screen_y, view)
        return _round_half_up(gx), _round_half_up(gy)

    def sprite_rect(
        self,
        frame_width: float,
        frame_height: float,
        grid_x: float,
        grid_y: float,
        view: ViewTransform,
        *,
        z_offset: float = 0.0,
    ) -> Rect:
        """Destination rectangle putting the sprite's bottom centre on the tile centre."""
        sx, sy = self.grid_to_screen(grid_x, grid_y, view)
        w = frame_width * view.zoom
        h = frame_height * view.zoom
        return Rect(
            x=sx - w / 2,
            y=sy - h + (self.tile_height * view.zoom / 2) - (z_offset * view.zoom),
            width=w,
            height=h,
        )


def reset_view(view: ViewTransform, viewport_width: float, viewport_height: float, *, zoom: float = 1.0) -> None:
    view.zoom = zoom
    view.pan_x = viewport_width / 2
    view.pan_y = viewport_height / 3


def clamp_zoom(zoom: float, zoom_min: float, zoom_max: float) -> float:
    return max(zoom_min, min(zoom_max, zoom))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
