from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Literal


LayerKind = Literal["ground", "road", "building", "prop", "vehicle"]

# Painter's order inside one cell. Buildings go last so they cover vehicles and props.
LAYER_ORDER: tuple[LayerKind, ...] = ("ground", "road", "prop", "vehicle", "building")

DEFAULT_GROUND = "landscapeTiles_067.png"


@dataclass(slots=True)
class Tile:
    ground: str | None = None
    road: str | None = None
    building: str | None = None
    prop: str | None = None
    vehicle: str | None = None

    def layer(self, kind: LayerKind) -> str | None:
        return getattr(self, _checked_kind(kind))

    def set_layer(self, kind: LayerKind, sprite: str | None) -> None:
        setattr(self, _checked_kind(kind), sprite or None)

    def layers_in_draw_order(self) -> list[tuple[LayerKind, str]]:
        out: list[tuple[LayerKind, str]] = []
        for kind in LAYER_ORDER:
            sprite = getattr(self, kind)
            if sprite:
                out.append((kind, sprite))
        return out

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


def tile_from_dict(data: dict, *, default_ground: str = DEFAULT_GROUND) -> Tile:
    """Build a tile from a document entry.

    Missing ground falls back to ``default_ground`` so documents written before
    per-tile ground existed keep loading the same way. Every other layer stays
    absent unless named.
    """
    return Tile(
        ground=_as_sprite(data.get("ground")) or default_ground,
        road=_as_sprite(data.get("road")),
        building=_as_sprite(data.get("building")),
        prop=_as_sprite(data.get("prop")),
        vehicle=_as_sprite(data.get("vehicle")),
    )


def is_layer_kind(value: object) -> bool:
    return isinstance(value, str) and value in LAYER_ORDER


def _checked_kind(kind: str) -> str:
    if kind not in LAYER_ORDER:
        raise KeyError(f"Unknown layer kind: {kind!r}")
    return kind


def _as_sprite(value) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None
