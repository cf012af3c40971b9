from __future__ import annotations

from pathlib import Path
import json
import xml.etree.ElementTree as ET

from isocity.core.model.atlas import SpriteRect


_RECT_FIELDS = ("x", "y", "width", "height")


def parse_texture_atlas_xml(text: str) -> list[SpriteRect]:
    """Parse a ``<TextureAtlas>`` document of ``<SubTexture name x y width height/>`` entries."""
    root = ET.fromstring(text)
    rects: list[SpriteRect] = []
    for node in root.iter("SubTexture"):
        name = node.get("name")
        if not name:
            raise ValueError("SubTexture without a name")
        values = []
        for field in _RECT_FIELDS:
            raw = node.get(field)
            if raw is None:
                raise ValueError(f"SubTexture {name!r} is missing {field!r}")
            values.append(int(float(raw)))
        rects.append(SpriteRect(name, *values))
    return rects


def parse_rect_list_json(text: str) -> list[SpriteRect]:
    """Parse a JSON list of ``{name, x, y, width, height}`` objects.

    A ``{"sprites": [...]}`` wrapper is accepted too.
    """
    payload = json.loads(text)
    if isinstance(payload, dict):
        payload = payload.get("sprites")
    if not isinstance(payload, list):
        raise ValueError("sprite manifest must be a list of rectangles")
    rects: list[SpriteRect] = []
    for idx, item in enumerate(payload):
        if not isinstance(item, dict) or not item.get("name"):
            raise ValueError(f"sprite manifest entry {idx} has no name")
        try:
            values = [int(item[field]) for field in _RECT_FIELDS]
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"sprite manifest entry {item['name']!r} has an invalid rectangle") from exc
        rects.append(SpriteRect(str(item["name"]), *values))
    return rects


def load_manifest(path: str | Path) -> list[SpriteRect]:
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".json":
        return parse_rect_list_json(text)
    return parse_texture_atlas_xml(text)
