from __future__ import annotations

from pathlib import Path
import logging
from typing import List

import pyglet
from pyglet.window import key, mouse

from .assets import FrameTextures, _project_root, load_sheet_image
from .ui_layout import Button, SidebarLayout, make_button, point_in_rect
from ..config_loader import apply_overrides, default_config, load_json_config
from ..core.engine import Diorama
from ..core.rules.editor import BRUSH_CATEGORIES
from ..core.rules.interaction import PointerButton
from ..core.rules.render_plan import DrawCommand


logger = logging.getLogger(__name__)

PALETTE_COLUMNS = 3
PALETTE_ROWS = 4
CATEGORY_TITLES = {
    "ground": "Ground",
    "road": "Road",
    "building": "Build",
    "prop": "Prop",
    "vehicle": "Car",
    "erase": "Erase",
}
STATUS_COLORS = {
    "idle": (200, 200, 200, 255),
    "saving": (230, 200, 90, 255),
    "success": (40, 200, 80, 255),
    "error": (220, 60, 60, 255),
}


def _pointer_button(button: int) -> PointerButton:
    if button == mouse.LEFT:
        return PointerButton.PRIMARY
    if button == mouse.MIDDLE:
        return PointerButton.MIDDLE
    return PointerButton.SECONDARY


class DioramaGui:
    def __init__(self, engine: Diorama, *, width: int, height: int, sidebar_width: int) -> None:
        self.engine = engine
        self._sidebar_width = sidebar_width
        self._sidebar_padding = 12

        self.window = pyglet.window.Window(
            width=width,
            height=height,
            caption="isocity",
            resizable=True,
        )
        self.map_batch = pyglet.graphics.Batch()
        self.ui_batch = pyglet.graphics.Batch()
        self.overlay_batch = pyglet.graphics.Batch()
        self._ui_front = pyglet.graphics.Group(order=1)
        self._textures = FrameTextures()
        self._map_sprites: List[pyglet.sprite.Sprite] = []
        self._used_sprites = 0

        self._category = "ground"
        self._palette_page = 0
        self._buttons: dict[str, Button] = {}
        self._palette_cells: list[tuple[tuple[float, float, float, float], str]] = []
        self._palette_sprites: list[pyglet.sprite.Sprite] = []
        self._ui_press = False
        self._palette_version = -1

        self.engine.reset_view(self.map_width, self.window.height)
        self._build_sidebar_ui()
        self._build_loading_overlay()

        self.window.push_handlers(
            on_draw=self.on_draw,
            on_resize=self.on_resize,
            on_mouse_press=self.on_mouse_press,
            on_mouse_drag=self.on_mouse_drag,
            on_mouse_release=self.on_mouse_release,
            on_mouse_scroll=self.on_mouse_scroll,
            on_key_press=self.on_key_press,
            on_close=self.on_close,
        )
        pyglet.clock.schedule_interval(self.update, 1 / 60.0)

    @property
    def map_width(self) -> int:
        return max(0, self.window.width - self._sidebar_width)

    def _to_screen(self, x: float, y: float) -> tuple[float, float]:
        return float(x), float(self.window.height - y)

    def update(self, dt: float) -> None:
        status = self.engine.update()
        self._refresh_status(status)
        self._loading_label.text = f"Loading assets... {int(self.engine.atlas.progress * 100)}%"
        if not self.engine.atlas.loading and self._loading_bg.opacity > 0:
            self._loading_bg.opacity = max(0, self._loading_bg.opacity - int(dt * 320) - 1)
            r, g, b, _ = self._loading_label.color
            self._loading_label.color = (r, g, b, self._loading_bg.opacity)
        if self._palette_version != len(self.engine.atlas):
            self._palette_version = len(self.engine.atlas)
            self._rebuild_palette()

    def on_draw(self) -> None:
        self.window.clear()
        self._sync_map_sprites(self.engine.draw_list(self.map_width, self.window.height))
        self.map_batch.draw()
        self.ui_batch.draw()
        if self._loading_bg.opacity > 0:
            self.overlay_batch.draw()

    def _sync_map_sprites(self, commands: list[DrawCommand]) -> None:
        window_h = self.window.height
        for idx, cmd in enumerate(commands):
            region = self._textures.region(cmd.sprite, cmd.frame)
            if idx < len(self._map_sprites):
                sprite = self._map_sprites[idx]
                if sprite.image is not region:
                    sprite.image = region
            else:
                # One ordered group per slot keeps painter's order across sheets.
                sprite = pyglet.sprite.Sprite(
                    region,
                    batch=self.map_batch,
                    group=pyglet.graphics.Group(order=idx),
                )
                self._map_sprites.append(sprite)
            sprite.scale = self.engine.view.zoom
            sprite.x = cmd.dest.x
            sprite.y = window_h - cmd.dest.y - cmd.dest.height
            sprite.visible = True
        for sprite in self._map_sprites[len(commands):self._used_sprites]:
            sprite.visible = False
        self._used_sprites = len(commands)

    def on_resize(self, width: int, height: int) -> None:
        self._build_sidebar_ui()
        self._build_loading_overlay()

    def on_close(self) -> None:
        pyglet.clock.unschedule(self.update)
        self.engine.shutdown()

    def on_mouse_press(self, x: int, y: int, button: int, modifiers: int) -> None:
        if x >= self.map_width:
            self._ui_press = True
            self._handle_sidebar_click(x, y)
            return
        self._ui_press = False
        sx, sy = self._to_screen(x, y)
        self.engine.controller.press(sx, sy, _pointer_button(button))

    def on_mouse_drag(self, x: int, y: int, dx: int, dy: int, buttons: int, modifiers: int) -> None:
        if self._ui_press:
            return
        sx, sy = self._to_screen(x, y)
        self.engine.controller.move(sx, sy)

    def on_mouse_release(self, x: int, y: int, button: int, modifiers: int) -> None:
        self._ui_press = False
        self.engine.controller.release()

    def on_mouse_scroll(self, x: int, y: int, scroll_x: float, scroll_y: float) -> None:
        if x >= self.map_width:
            self._set_palette_page(self._palette_page + (-1 if scroll_y > 0 else 1))
            return
        self.engine.controller.wheel(scroll_y)

    def on_key_press(self, symbol: int, modifiers: int):
        if symbol == key.ESCAPE:
            self.engine.editor.clear_brush()
            self._refresh_brush_ui()
            return pyglet.event.EVENT_HANDLED
        if symbol == key.S and modifiers & (key.MOD_CTRL | key.MOD_COMMAND):
            self._handle_save()
            return pyglet.event.EVENT_HANDLED
        if symbol == key.E:
            self._toggle_edit_mode()
        elif symbol == key.R:
            self.engine.reset_view(self.map_width, self.window.height)
        return None

    def _build_sidebar_ui(self) -> None:
        for sprite in self._palette_sprites:
            sprite.delete()
        self._palette_sprites.clear()
        self.ui_batch = pyglet.graphics.Batch()
        self._buttons = {}

        sidebar_x = self.map_width
        sidebar_height = self.window.height
        self._sidebar_bg = pyglet.shapes.Rectangle(
            sidebar_x,
            0,
            self._sidebar_width,
            sidebar_height,
            color=(34, 36, 40),
            batch=self.ui_batch,
        )
        layout = SidebarLayout(
            x=sidebar_x,
            y_top=sidebar_height,
            width=self._sidebar_width,
            padding=self._sidebar_padding,
            spacing=10,
        )
        layout.add_label("City editor", font_size=14, color=(240, 240, 240, 255), batch=self.ui_batch)

        row = layout.add_row(columns=2, height=28)
        self._add_button("mode", "", row.add_cell())
        self._add_button("reset", "Reset view", row.add_cell())

        layout.add_label("Brush", font_size=12, color=(200, 200, 200, 255), batch=self.ui_batch)
        for start in range(0, len(BRUSH_CATEGORIES), 3):
            row = layout.add_row(columns=3, height=26)
            for category in BRUSH_CATEGORIES[start:start + 3]:
                self._add_button(f"cat:{category}", CATEGORY_TITLES[category], row.add_cell(), font_size=10)

        cell_size = (layout.width - (PALETTE_COLUMNS - 1) * 8) / PALETTE_COLUMNS
        palette_grid = layout.add_grid(rows=PALETTE_ROWS, columns=PALETTE_COLUMNS, cell_size=cell_size, spacing=8)
        self._palette_slots = [palette_grid.add_cell() for _ in range(PALETTE_ROWS * PALETTE_COLUMNS)]
        self._palette_boxes = [
            pyglet.shapes.BorderedRectangle(
                *slot,
                color=(26, 28, 32),
                border=2,
                border_color=(70, 72, 76),
                batch=self.ui_batch,
            )
            for slot in self._palette_slots
        ]

        row = layout.add_row(columns=3, height=24)
        self._add_button("page_prev", "<<", row.add_cell())
        page_bounds = row.add_cell()
        self._page_label = pyglet.text.Label(
            "",
            x=page_bounds[0] + page_bounds[2] / 2,
            y=page_bounds[1] + page_bounds[3] / 2,
            anchor_x="center",
            anchor_y="center",
            font_size=10,
            color=(200, 200, 200, 255),
            batch=self.ui_batch,
        )
        self._add_button("page_next", ">>", row.add_cell())

        self._brush_label = layout.add_label(
            "",
            font_size=10,
            color=(220, 220, 220, 255),
            batch=self.ui_batch,
            multiline=True,
        )
        layout.add_spacer(12)

        row = layout.add_row(columns=1, height=30)
        self._add_button("save", "Save map", row.add_cell(), font_size=12)
        self._status_label = layout.add_label(
            "",
            font_size=10,
            color=STATUS_COLORS["idle"],
            batch=self.ui_batch,
            multiline=True,
        )

        self._refresh_mode_button()
        self._refresh_brush_ui()

    def _add_button(self, key_name: str, text: str, bounds, *, font_size: int = 11) -> Button:
        button = make_button(key_name, text, bounds, batch=self.ui_batch, font_size=font_size)
        self._buttons[key_name] = button
        return button

    def _build_loading_overlay(self) -> None:
        opacity = 200 if self.engine.atlas.loading else 0
        self.overlay_batch = pyglet.graphics.Batch()
        self._loading_bg = pyglet.shapes.Rectangle(
            0,
            0,
            self.window.width,
            self.window.height,
            color=(12, 14, 18),
            batch=self.overlay_batch,
        )
        self._loading_bg.opacity = opacity
        self._loading_label = pyglet.text.Label(
            "Loading assets...",
            x=self.window.width / 2,
            y=self.window.height / 2,
            anchor_x="center",
            anchor_y="center",
            font_size=20,
            color=(240, 240, 240, opacity),
            batch=self.overlay_batch,
        )

    def _handle_sidebar_click(self, x: float, y: float) -> None:
        for key_name, button in self._buttons.items():
            if not button.contains(x, y):
                continue
            if key_name == "mode":
                self._toggle_edit_mode()
            elif key_name == "reset":
                self.engine.reset_view(self.map_width, self.window.height)
            elif key_name == "save":
                self._handle_save()
            elif key_name == "page_prev":
                self._set_palette_page(self._palette_page - 1)
            elif key_name == "page_next":
                self._set_palette_page(self._palette_page + 1)
            elif key_name.startswith("cat:"):
                self._select_category(key_name[4:])
            return
        for bounds, sprite_name in self._palette_cells:
            if point_in_rect(x, y, bounds):
                self.engine.editor.select_brush(self._category, sprite_name)
                self._refresh_brush_ui()
                return

    def _toggle_edit_mode(self) -> None:
        self.engine.set_edit_mode(not self.engine.edit_mode)
        self._refresh_mode_button()

    def _handle_save(self) -> None:
        if not self.engine.save():
            return
        self._refresh_status(self.engine.saver.status)

    def _select_category(self, category: str) -> None:
        if category == "erase":
            self.engine.editor.select_brush("erase")
        elif category != self._category:
            self.engine.editor.clear_brush()
        self._category = category
        self._palette_page = 0
        self._rebuild_palette()
        self._refresh_brush_ui()

    def _set_palette_page(self, page: int) -> None:
        names = self._palette_names()
        per_page = PALETTE_COLUMNS * PALETTE_ROWS
        last_page = max(0, (len(names) - 1) // per_page)
        clamped = max(0, min(page, last_page))
        if clamped == self._palette_page:
            return
        self._palette_page = clamped
        self._rebuild_palette()

    def _palette_names(self) -> list[str]:
        if self._category == "erase":
            return []
        return self.engine.palette(self._category)

    def _rebuild_palette(self) -> None:
        for sprite in self._palette_sprites:
            sprite.delete()
        self._palette_sprites.clear()
        self._palette_cells = []

        names = self._palette_names()
        per_page = PALETTE_COLUMNS * PALETTE_ROWS
        page_count = max(1, (len(names) + per_page - 1) // per_page)
        self._palette_page = min(self._palette_page, page_count - 1)
        page_names = names[self._palette_page * per_page:(self._palette_page + 1) * per_page]
        brush = self.engine.editor.brush

        for box in self._palette_boxes:
            box.border_color = (70, 72, 76)
        for slot, box, sprite_name in zip(self._palette_slots, self._palette_boxes, page_names):
            frame = self.engine.atlas.resolve(sprite_name)
            if frame is None:
                continue
            sx, sy, sw, sh = slot
            region = self._textures.region(sprite_name, frame)
            thumb = pyglet.sprite.Sprite(region, batch=self.ui_batch, group=self._ui_front)
            thumb.scale = min((sw - 8) / frame.width, (sh - 8) / frame.height)
            thumb.x = sx + (sw - frame.width * thumb.scale) / 2
            thumb.y = sy + (sh - frame.height * thumb.scale) / 2
            self._palette_sprites.append(thumb)
            self._palette_cells.append((slot, sprite_name))
            if brush is not None and brush.sprite == sprite_name:
                box.border_color = (120, 180, 120)

        self._page_label.text = f"{self._palette_page + 1}/{page_count}"
        self._buttons["page_prev"].refresh(enabled=self._palette_page > 0)
        self._buttons["page_next"].refresh(enabled=self._palette_page < page_count - 1)

    def _refresh_mode_button(self) -> None:
        button = self._buttons["mode"]
        button.set_text("Edit mode" if self.engine.edit_mode else "View mode")
        button.refresh(active=self.engine.edit_mode)

    def _refresh_brush_ui(self) -> None:
        brush = self.engine.editor.brush
        for category in BRUSH_CATEGORIES:
            self._buttons[f"cat:{category}"].refresh(active=category == self._category)
        if brush is None:
            self._brush_label.text = "No brush selected"
        elif brush.erases:
            self._brush_label.text = "Brush: erase"
        else:
            self._brush_label.text = f"Brush: {brush.category}\n{brush.sprite}"
        if self._palette_slots:
            self._rebuild_palette()

    def _refresh_status(self, status) -> None:
        self._buttons["save"].refresh(enabled=not self.engine.saver.in_flight)
        self._status_label.text = status.message
        self._status_label.color = STATUS_COLORS.get(status.state, STATUS_COLORS["idle"])


def build_engine(config_path: str | Path | None, overrides: list[str] | None, *, base_dir: Path) -> Diorama:
    cfg = load_json_config(config_path) if config_path else default_config()
    cfg = apply_overrides(cfg, overrides)
    return Diorama(cfg, base_dir=base_dir, image_loader=load_sheet_image)


def run(
    config_path: str | Path | None = None,
    *,
    overrides: list[str] | None = None,
    base_dir: str | Path | None = None,
) -> None:
    root = Path(base_dir) if base_dir is not None else _project_root()
    engine = build_engine(config_path, overrides, base_dir=root)
    engine.start_loading()
    window_cfg = engine.cfg["window"]
    _app = DioramaGui(
        engine,
        width=int(window_cfg["width"]),
        height=int(window_cfg["height"]),
        sidebar_width=int(window_cfg["sidebar_width"]),
    )
    pyglet.app.run()
