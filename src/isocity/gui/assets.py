from __future__ import annotations

from pathlib import Path
from typing import Dict

from isocity.core.model.atlas import SpriteFrame


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def load_sheet_image(path: Path):
    """Decode a sheet image; safe off the GL thread since no texture is created yet."""
    import pyglet

    if not Path(path).exists():
        raise FileNotFoundError(f"Missing sheet image: {path}")
    return pyglet.image.load(str(path))


class FrameTextures:
    """Texture regions for atlas frames, created lazily on the GL thread."""

    def __init__(self) -> None:
        self._textures: Dict[str, "pyglet.image.Texture"] = {}
        self._regions: Dict[str, "pyglet.image.TextureRegion"] = {}

    def region(self, sprite: str, frame: SpriteFrame):
        region = self._regions.get(sprite)
        if region is not None:
            return region
        texture = self._textures.get(frame.sheet_id)
        if texture is None:
            texture = frame.image.get_texture()
            self._textures[frame.sheet_id] = texture
        # Manifest rectangles are top-left based, pyglet textures bottom-left.
        region = texture.get_region(
            frame.x,
            texture.height - frame.y - frame.height,
            frame.width,
            frame.height,
        )
        self._regions[sprite] = region
        return region
