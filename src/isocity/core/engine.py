# src/isocity/core/engine.py
from __future__ import annotations

from pathlib import Path
import logging
from typing import Any

from isocity.config_loader import resolve_path, sheet_specs
from isocity.io.asset_loader import ImageLoader, SheetLoader
from isocity.io.persistence import FileStore, HttpStore, MapStore, SaveStatus, SaveTracker

from .model.atlas import AtlasIndex
from .model.grid import CityGrid, load_city_json
from .rules.editor import EditorSession
from .rules.interaction import InteractionController
from .rules.projection import IsoProjection, Rect, ViewTransform, reset_view
from .rules.render_plan import DrawCommand, build_draw_list


logger = logging.getLogger(__name__)


def make_store(cfg: dict[str, Any], base_dir: Path, map_path: Path) -> MapStore:
    save_cfg = cfg["save"]
    if save_cfg["backend"] == "http":
        return HttpStore(str(save_cfg["url"]), timeout_sec=float(save_cfg.get("timeout_sec") or 10.0))
    target = save_cfg.get("path")
    return FileStore(resolve_path(target, base_dir) if target else map_path)


class Diorama:
    """Owns and wires every piece of state: grid, atlas, view, input and editing.

    All mutation happens on the thread that calls into this object. Background
    asset and save jobs only hand results back through ``update``.
    """

    def __init__(
        self,
        cfg: dict[str, Any],
        *,
        base_dir: str | Path,
        image_loader: ImageLoader | None = None,
        store: MapStore | None = None,
        grid: CityGrid | None = None,
    ) -> None:
        self.cfg = cfg
        self.base_dir = Path(base_dir)
        view_cfg = cfg["view"]
        map_cfg = cfg["map"]

        self.map_path = resolve_path(map_cfg["path"], self.base_dir)
        if grid is None:
            grid = load_city_json(
                self.map_path,
                default_size=int(map_cfg["default_size"]),
                default_ground=str(map_cfg["default_ground"]),
            )
        self.grid = grid
        self.atlas = AtlasIndex()
        self.projection = IsoProjection(
            tile_width=float(view_cfg["tile_width"]),
            tile_height=float(view_cfg["tile_height"]),
        )
        self.view = ViewTransform(zoom=float(view_cfg["initial_zoom"]))
        self.editor = EditorSession(self.grid, self.projection, self.view)
        self.controller = InteractionController(
            self.view,
            zoom_min=float(view_cfg["zoom_min"]),
            zoom_max=float(view_cfg["zoom_max"]),
            zoom_in_factor=float(view_cfg["zoom_in_factor"]),
            zoom_out_factor=float(view_cfg["zoom_out_factor"]),
            edit_mode=bool(cfg["window"].get("edit_mode", False)),
            on_paint=self.paint,
        )
        self.loader: SheetLoader | None = None
        if image_loader is not None:
            self.loader = SheetLoader(
                self.atlas,
                image_loader,
                max_workers=int(cfg["assets"].get("max_workers") or 4),
            )
        self.saver = SaveTracker(
            store or make_store(cfg, self.base_dir, self.map_path),
            message_ttl_sec=float(cfg["save"].get("message_ttl_sec") or 3.0),
        )

    @property
    def edit_mode(self) -> bool:
        return self.controller.edit_mode

    def start_loading(self) -> int:
        if self.loader is None:
            return 0
        return self.loader.start(sheet_specs(self.cfg, self.base_dir))

    def update(self) -> SaveStatus:
        if self.loader is not None and self.loader.pending:
            self.loader.poll()
        return self.saver.poll()

    def reset_view(self, viewport_width: float, viewport_height: float) -> None:
        reset_view(self.view, viewport_width, viewport_height, zoom=float(self.cfg["view"]["initial_zoom"]))
        self.view.zoom = min(self.controller.zoom_max, max(self.controller.zoom_min, self.view.zoom))

    def set_edit_mode(self, enabled: bool) -> None:
        self.controller.set_edit_mode(enabled)

    def paint(self, screen_x: float, screen_y: float) -> None:
        self.editor.paint(screen_x, screen_y)

    def palette(self, category: str) -> list[str]:
        """Sprite names offered for a brush category, from sheets tagged with it."""
        if self.loader is None:
            return []
        names: list[str] = []
        for sheet_id, sheet_category in self.loader.categories.items():
            if sheet_category == category:
                names.extend(self.atlas.names_for_sheet(sheet_id))
        return names

    def save(self) -> bool:
        return self.saver.submit(self.editor.document())

    def draw_list(self, viewport_width: float, viewport_height: float) -> list[DrawCommand]:
        viewport = Rect(0.0, 0.0, float(viewport_width), float(viewport_height))
        return build_draw_list(self.grid, self.atlas, self.projection, self.view, viewport)

    def shutdown(self) -> None:
        if self.loader is not None:
            self.loader.shutdown()
        self.saver.shutdown()
