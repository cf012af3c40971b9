from __future__ import annotations

from dataclasses import dataclass, field

import pyglet


Bounds = tuple[float, float, float, float]

BUTTON_COLOR = (60, 60, 64)
BUTTON_BORDER = (110, 110, 115)
ACTIVE_COLOR = (70, 90, 70)
ACTIVE_BORDER = (120, 180, 120)
DISABLED_COLOR = (40, 40, 44)
DISABLED_BORDER = (80, 80, 85)


def point_in_rect(x: float, y: float, rect: Bounds) -> bool:
    rx, ry, rw, rh = rect
    return rx <= x <= (rx + rw) and ry <= y <= (ry + rh)


@dataclass
class Button:
    key: str
    bounds: Bounds
    box: pyglet.shapes.BorderedRectangle
    label: pyglet.text.Label | None = None
    enabled: bool = True
    active: bool = False

    def contains(self, x: float, y: float) -> bool:
        return self.enabled and point_in_rect(x, y, self.bounds)

    def refresh(self, *, active: bool | None = None, enabled: bool | None = None) -> None:
        if active is not None:
            self.active = active
        if enabled is not None:
            self.enabled = enabled
        if not self.enabled:
            self.box.color = DISABLED_COLOR
            self.box.border_color = DISABLED_BORDER
        elif self.active:
            self.box.color = ACTIVE_COLOR
            self.box.border_color = ACTIVE_BORDER
        else:
            self.box.color = BUTTON_COLOR
            self.box.border_color = BUTTON_BORDER
        if self.label is not None:
            r, g, b, _ = self.label.color
            self.label.color = (r, g, b, 255 if self.enabled else 140)

    def set_text(self, text: str) -> None:
        if self.label is not None:
            self.label.text = text


@dataclass
class GridLayout:
    origin_x: float
    origin_y_top: float
    columns: int
    cell_size: float
    spacing: float
    _index: int = 0

    def add_cell(self) -> tuple[float, float, float, float]:
        row = self._index // self.columns
        col = self._index % self.columns
        x = self.origin_x + col * (self.cell_size + self.spacing)
        y = self.origin_y_top - self.cell_size - row * (self.cell_size + self.spacing)
        self._index += 1
        return x, y, self.cell_size, self.cell_size


@dataclass
class RowLayout:
    origin_x: float
    y: float
    width: float
    height: float
    columns: int
    spacing: float
    _index: int = field(default=0)

    def add_cell(self) -> Bounds:
        cell_w = (self.width - self.spacing * (self.columns - 1)) / self.columns
        x = self.origin_x + self._index * (cell_w + self.spacing)
        self._index += 1
        return x, self.y, cell_w, self.height


class SidebarLayout:
    """Top-down cursor layout for a fixed-width panel (pyglet's origin is bottom-left)."""

    def __init__(
        self,
        *,
        x: float,
        y_top: float,
        width: float,
        padding: float = 12,
        spacing: float = 10,
    ) -> None:
        self.x = x + padding
        self.y_top = y_top - padding
        self.width = max(0.0, width - 2 * padding)
        self.spacing = spacing
        self._cursor = self.y_top

    @property
    def cursor(self) -> float:
        return self._cursor

    def add_label(
        self,
        text: str,
        *,
        font_size: int,
        color: tuple[int, int, int, int],
        batch: pyglet.graphics.Batch,
        anchor_x: str = "left",
        multiline: bool = False,
    ) -> pyglet.text.Label:
        label = pyglet.text.Label(
            text,
            x=self.x,
            y=self._cursor,
            width=int(self.width) if multiline else None,
            multiline=multiline,
            anchor_x=anchor_x,
            anchor_y="top",
            font_size=font_size,
            color=color,
            batch=batch,
        )
        height = max(label.content_height, float(font_size))
        self._cursor -= height + self.spacing
        return label

    def add_spacer(self, height: float) -> None:
        self._cursor -= max(0.0, height)

    def add_grid(
        self,
        *,
        rows: int,
        columns: int,
        cell_size: float,
        spacing: float = 8,
    ) -> GridLayout:
        grid_height = rows * cell_size + max(0, rows - 1) * spacing
        grid = GridLayout(
            origin_x=self.x,
            origin_y_top=self._cursor,
            columns=max(1, columns),
            cell_size=cell_size,
            spacing=spacing,
        )
        self._cursor -= grid_height + self.spacing
        return grid

    def add_row(self, *, columns: int, height: float, spacing: float = 6) -> RowLayout:
        row = RowLayout(
            origin_x=self.x,
            y=self._cursor - height,
            width=self.width,
            height=height,
            columns=max(1, columns),
            spacing=spacing,
        )
        self._cursor -= height + self.spacing
        return row

    def add_box(self, height: float) -> tuple[float, float, float, float]:
        box_height = max(0.0, height)
        y = self._cursor - box_height
        bounds = (self.x, y, self.width, box_height)
        self._cursor -= box_height + self.spacing
        return bounds


def make_button(
    key: str,
    text: str,
    bounds: Bounds,
    *,
    batch: pyglet.graphics.Batch,
    font_size: int = 11,
) -> Button:
    x, y, w, h = bounds
    box = pyglet.shapes.BorderedRectangle(
        x,
        y,
        w,
        h,
        color=BUTTON_COLOR,
        border=2,
        border_color=BUTTON_BORDER,
        batch=batch,
    )
    label = None
    if text:
        label = pyglet.text.Label(
            text,
            x=x + w / 2,
            y=y + h / 2,
            anchor_x="center",
            anchor_y="center",
            font_size=font_size,
            color=(230, 230, 230, 255),
            batch=batch,
        )
    return Button(key=key, bounds=bounds, box=box, label=label)
