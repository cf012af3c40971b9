from __future__ import annotations

from pathlib import Path
import json
import logging
import os
import stat
import tempfile
from typing import Any, Iterator

from .tile import DEFAULT_GROUND, LayerKind, Tile, tile_from_dict


logger = logging.getLogger(__name__)

DEFAULT_MAP_SIZE = 12


class CityGrid:
    """Sparse square grid of tiles.

    A cell is either absent (nothing drawn there) or holds a ``Tile``. Edits and
    reads outside ``0 <= x, y < size`` are silent no-ops.
    """

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError(f"grid size must be >= 0, got {size}")
        self.size = int(size)
        self._cells: dict[tuple[int, int], Tile] = {}

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def get(self, x: int, y: int) -> Tile | None:
        if not self.in_bounds(x, y):
            return None
        return self._cells.get((x, y))

    def set_layer(self, x: int, y: int, kind: LayerKind, sprite: str | None) -> None:
        if not self.in_bounds(x, y):
            return
        tile = self._cells.get((x, y))
        if tile is None:
            if not sprite:
                return
            tile = Tile()
            self._cells[(x, y)] = tile
        tile.set_layer(kind, sprite)

    def clear_cell(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            return
        self._cells.pop((x, y), None)

    def put(self, x: int, y: int, tile: Tile) -> None:
        if not self.in_bounds(x, y):
            return
        self._cells[(x, y)] = tile

    def populated(self) -> Iterator[tuple[int, int, Tile]]:
        """Yield populated cells in scan order (x outer, y inner)."""
        for x, y in sorted(self._cells):
            yield x, y, self._cells[(x, y)]

    def __len__(self) -> int:
        return len(self._cells)

    def to_document(self) -> dict[str, Any]:
        tiles = []
        for x, y, tile in self.populated():
            entry: dict[str, Any] = {"x": x, "y": y}
            entry.update(tile.to_dict())
            tiles.append(entry)
        return {"size": self.size, "tiles": tiles}


def grid_from_document(data: Any, *, default_ground: str = DEFAULT_GROUND) -> CityGrid:
    if not isinstance(data, dict):
        raise ValueError("map document root must be a JSON object")
    if "size" not in data:
        raise ValueError("map document is missing 'size'")
    try:
        size = int(data["size"])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"map document 'size' must be an integer: {data['size']!r}") from exc
    if size < 0:
        raise ValueError(f"map document 'size' must be >= 0: {size}")

    grid = CityGrid(size)
    tiles = data.get("tiles") or []
    if not isinstance(tiles, list):
        raise ValueError("map document 'tiles' must be a list")
    for idx, entry in enumerate(tiles):
        if not isinstance(entry, dict):
            logger.warning("tile entry %s skipped (not an object)", idx)
            continue
        x = _as_coord(entry.get("x"))
        y = _as_coord(entry.get("y"))
        if x is None or y is None:
            logger.warning("tile entry %s skipped (missing or invalid x/y)", idx)
            continue
        if not grid.in_bounds(x, y):
            logger.warning("tile entry %s skipped (out of bounds: %s,%s size=%s)", idx, x, y, size)
            continue
        grid.put(x, y, tile_from_dict(entry, default_ground=default_ground))
    return grid


def _as_coord(value: Any) -> int | None:
    # Integral floats (2.0) are accepted; 1.7, "3" and booleans are not.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def load_city_json(
    path: str | Path,
    *,
    default_size: int = DEFAULT_MAP_SIZE,
    default_ground: str = DEFAULT_GROUND,
) -> CityGrid:
    """Load a map document, falling back to an empty grid when it is missing or malformed."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
        grid = grid_from_document(data, default_ground=default_ground)
    except (OSError, ValueError) as exc:
        logger.error("Failed to load %s: %s; using empty %sx%s map", p, exc, default_size, default_size)
        return CityGrid(default_size)
    logger.info("loaded map %s size=%s tiles=%s", p, grid.size, len(grid))
    return grid


def write_document_atomic(path: str | Path, document: dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(document, ensure_ascii=False, indent=2)
    try:
        mode = stat.S_IMODE(p.stat().st_mode)
    except FileNotFoundError:
        mode = 0o644
    fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.write("\n")
        # mkstemp creates 0600; keep the map's existing permissions.
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, p)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def save_city_json(path: str | Path, grid: CityGrid) -> None:
    write_document_atomic(path, grid.to_document())
