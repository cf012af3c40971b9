from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
import logging
from typing import Any, Callable, Iterable

from isocity.core.model.atlas import AtlasIndex, SpriteRect
from .manifest import load_manifest


logger = logging.getLogger(__name__)

ImageLoader = Callable[[Path], Any]
ManifestLoader = Callable[[Path], list[SpriteRect]]


@dataclass(frozen=True, slots=True)
class SheetSpec:
    name: str
    manifest: Path
    image: Path
    category: str | None = None


@dataclass(slots=True)
class _PendingSheet:
    spec: SheetSpec
    image: Future
    rects: Future


class SheetLoader:
    """Loads sprite sheets in the background and registers them from the caller's thread.

    Each sheet decodes its image and reads its manifest as two independent jobs.
    ``poll`` registers a sheet only once both jobs succeeded, so its sprites
    never show up partially; a failed sheet is logged and skipped.
    """

    def __init__(
        self,
        atlas: AtlasIndex,
        image_loader: ImageLoader,
        *,
        manifest_loader: ManifestLoader = load_manifest,
        executor: ThreadPoolExecutor | None = None,
        max_workers: int = 4,
    ) -> None:
        self.atlas = atlas
        self.image_loader = image_loader
        self.manifest_loader = manifest_loader
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="isocity-assets")
        self._pending: list[_PendingSheet] = []
        self.categories: dict[str, str | None] = {}

    def start(self, specs: Iterable[SheetSpec]) -> int:
        count = 0
        for spec in specs:
            self.categories[spec.name] = spec.category
            self._pending.append(
                _PendingSheet(
                    spec=spec,
                    image=self._executor.submit(self.image_loader, spec.image),
                    rects=self._executor.submit(self.manifest_loader, spec.manifest),
                )
            )
            count += 1
        self.atlas.expect_sheets(count)
        logger.info("loading %s sprite sheets", count)
        return count

    @property
    def pending(self) -> int:
        return len(self._pending)

    def poll(self) -> list[str]:
        """Register every sheet whose jobs are done; returns the names registered."""
        registered: list[str] = []
        still_pending: list[_PendingSheet] = []
        for item in self._pending:
            if not (item.image.done() and item.rects.done()):
                still_pending.append(item)
                continue
            if self._finish(item):
                registered.append(item.spec.name)
        self._pending = still_pending
        return registered

    def wait_all(self, timeout: float | None = None) -> list[str]:
        futures = [f for item in self._pending for f in (item.image, item.rects)]
        if futures:
            wait(futures, timeout=timeout)
        return self.poll()

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _finish(self, item: _PendingSheet) -> bool:
        spec = item.spec
        for label, future in (("image", item.image), ("manifest", item.rects)):
            exc = future.exception()
            if exc is not None:
                logger.error("Failed to load sheet %s (%s): %s", spec.name, label, exc)
                self.atlas.mark_finished(spec.name, ok=False)
                return False
        self.atlas.register_sheet(spec.name, item.image.result(), item.rects.result())
        self.atlas.mark_finished(spec.name, ok=True)
        return True
