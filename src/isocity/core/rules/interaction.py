from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable

from .projection import ViewTransform, clamp_zoom


logger = logging.getLogger(__name__)

ZOOM_MIN = 0.3
ZOOM_MAX = 2.0
ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9


class PointerButton(Enum):
    PRIMARY = "PRIMARY"
    MIDDLE = "MIDDLE"
    SECONDARY = "SECONDARY"


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Panning:
    last_x: float
    last_y: float


@dataclass(frozen=True, slots=True)
class Painting:
    last_x: float
    last_y: float


InteractionState = Idle | Panning | Painting

PaintCallback = Callable[[float, float], None]


class InteractionController:
    """Turns pointer, touch and wheel input into pan, zoom and paint commands.

    Coordinates are screen pixels with a top-left origin. Zoom is applied around
    the pan origin, not the pointer.
    """

    def __init__(
        self,
        view: ViewTransform,
        *,
        zoom_min: float = ZOOM_MIN,
        zoom_max: float = ZOOM_MAX,
        zoom_in_factor: float = ZOOM_IN_FACTOR,
        zoom_out_factor: float = ZOOM_OUT_FACTOR,
        edit_mode: bool = False,
        on_paint: PaintCallback | None = None,
    ) -> None:
        if zoom_min <= 0 or zoom_max < zoom_min:
            raise ValueError(f"invalid zoom range [{zoom_min}, {zoom_max}]")
        if zoom_in_factor <= 1.0 or not 0.0 < zoom_out_factor < 1.0:
            raise ValueError("zoom_in_factor must be > 1 and zoom_out_factor in (0, 1)")
        self.view = view
        self.zoom_min = zoom_min
        self.zoom_max = zoom_max
        self.zoom_in_factor = zoom_in_factor
        self.zoom_out_factor = zoom_out_factor
        self.edit_mode = edit_mode
        self.on_paint = on_paint
        self.state: InteractionState = Idle()
        self.view.zoom = clamp_zoom(self.view.zoom, zoom_min, zoom_max)

    def set_edit_mode(self, enabled: bool) -> None:
        if enabled == self.edit_mode:
            return
        self.edit_mode = enabled
        self.state = Idle()
        logger.info("edit mode %s", "on" if enabled else "off")

    def press(self, x: float, y: float, button: PointerButton) -> None:
        if button is PointerButton.PRIMARY and self.edit_mode:
            self._begin_painting(x, y)
        else:
            self.state = Panning(x, y)

    def touch_start(self, x: float, y: float, touch_count: int = 1) -> None:
        if touch_count <= 1 and self.edit_mode:
            self._begin_painting(x, y)
        else:
            self.state = Panning(x, y)

    def move(self, x: float, y: float) -> None:
        state = self.state
        if isinstance(state, Panning):
            self.view.pan_x += x - state.last_x
            self.view.pan_y += y - state.last_y
            self.state = Panning(x, y)
        elif isinstance(state, Painting):
            self.state = Painting(x, y)
            self._paint(x, y)

    def release(self) -> None:
        self.state = Idle()

    def wheel(self, direction: float) -> float:
        """Zoom one tick in (``direction > 0``) or out (``direction < 0``)."""
        if direction > 0:
            factor = self.zoom_in_factor
        elif direction < 0:
            factor = self.zoom_out_factor
        else:
            return self.view.zoom
        self.view.zoom = clamp_zoom(self.view.zoom * factor, self.zoom_min, self.zoom_max)
        return self.view.zoom

    def _begin_painting(self, x: float, y: float) -> None:
        self.state = Painting(x, y)
        self._paint(x, y)

    def _paint(self, x: float, y: float) -> None:
        if self.on_paint is not None:
            self.on_paint(x, y)
