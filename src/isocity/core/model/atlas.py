from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Iterable


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SpriteRect:
    name: str
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class SpriteFrame:
    sheet_id: str
    image: Any
    x: int
    y: int
    width: int
    height: int


class AtlasIndex:
    """Global sprite name -> frame mapping across every loaded sheet.

    Sprite names are assumed unique across sheets; a later sheet wins on collision.
    """

    def __init__(self) -> None:
        self._frames: dict[str, SpriteFrame] = {}
        self._sheet_names: dict[str, list[str]] = {}
        self._sheet_images: dict[str, Any] = {}
        self.total_sheets = 0
        self.finished_sheets = 0
        self.failed_sheets: list[str] = []

    def register_sheet(self, sheet_id: str, image: Any, rects: Iterable[SpriteRect]) -> int:
        frames = {
            rect.name: SpriteFrame(
                sheet_id=sheet_id,
                image=image,
                x=int(rect.x),
                y=int(rect.y),
                width=int(rect.width),
                height=int(rect.height),
            )
            for rect in rects
        }
        for name in frames:
            previous = self._frames.get(name)
            if previous is not None and previous.sheet_id != sheet_id:
                logger.warning("sprite %s from sheet %s shadows sheet %s", name, sheet_id, previous.sheet_id)
        # One update so a sheet never shows up half registered.
        self._frames.update(frames)
        self._sheet_names[sheet_id] = sorted(frames)
        self._sheet_images[sheet_id] = image
        logger.info("sheet %s registered sprites=%s", sheet_id, len(frames))
        return len(frames)

    def resolve(self, name: str | None) -> SpriteFrame | None:
        if not name:
            return None
        return self._frames.get(name)

    def names_for_sheet(self, sheet_id: str) -> list[str]:
        return list(self._sheet_names.get(sheet_id, ()))

    def sheet_image(self, sheet_id: str) -> Any:
        return self._sheet_images.get(sheet_id)

    @property
    def sheet_ids(self) -> list[str]:
        return list(self._sheet_names)

    def __contains__(self, name: object) -> bool:
        return name in self._frames

    def __len__(self) -> int:
        return len(self._frames)

    def expect_sheets(self, count: int) -> None:
        self.total_sheets += max(0, int(count))

    def mark_finished(self, sheet_id: str, *, ok: bool) -> None:
        self.finished_sheets += 1
        if not ok:
            self.failed_sheets.append(sheet_id)

    @property
    def progress(self) -> float:
        if self.total_sheets == 0:
            return 1.0
        return min(1.0, self.finished_sheets / self.total_sheets)

    @property
    def loading(self) -> bool:
        return self.finished_sheets < self.total_sheets
