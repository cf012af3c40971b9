from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
import logging
import time
from typing import Any, Literal, Protocol

import requests

from isocity.core.model.grid import write_document_atomic


logger = logging.getLogger(__name__)

SaveState = Literal["idle", "saving", "success", "error"]


@dataclass(frozen=True, slots=True)
class SaveResult:
    status: Literal["success", "error"]
    message: str

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass(frozen=True, slots=True)
class SaveStatus:
    state: SaveState
    message: str = ""
    changed_at: float = 0.0


class MapStore(Protocol):
    def save(self, document: dict[str, Any]) -> SaveResult: ...


def validate_document(document: Any) -> str | None:
    """Return a reason the document cannot be stored, or None."""
    if not isinstance(document, dict):
        return "Invalid JSON payload."
    if "size" not in document or "tiles" not in document:
        return "Invalid JSON payload."
    return None


class FileStore:
    """Writes the whole document to one JSON file, never partially."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def save(self, document: dict[str, Any]) -> SaveResult:
        problem = validate_document(document)
        if problem is not None:
            return SaveResult("error", problem)
        try:
            write_document_atomic(self.path, document)
        except OSError as exc:
            logger.error("Failed to write %s: %s", self.path, exc)
            return SaveResult("error", f"Failed to write to {self.path.name}.")
        return SaveResult("success", "Map saved successfully!")


class HttpStore:
    """POSTs the document to a save endpoint answering ``{status, message}``."""

    def __init__(self, url: str, *, timeout_sec: float = 10.0) -> None:
        self.url = url
        self.timeout_sec = timeout_sec

    def save(self, document: dict[str, Any]) -> SaveResult:
        try:
            resp = requests.post(self.url, json=document, timeout=self.timeout_sec)
        except requests.RequestException as exc:
            logger.error("save request to %s failed: %s", self.url, exc)
            return SaveResult("error", f"Network error: {exc}")
        try:
            data = resp.json()
        except ValueError:
            data = {}
        return _parse_reply(resp.status_code, data)


def _parse_reply(http_status: int, data: Any) -> SaveResult:
    if not isinstance(data, dict):
        data = {}
    message = str(data.get("message", ""))
    if not 200 <= http_status < 300:
        return SaveResult("error", message or f"HTTP {http_status}")
    if data.get("status") != "success":
        return SaveResult("error", message or "Malformed reply from save endpoint.")
    return SaveResult("success", message or "Map saved successfully!")


class SaveTracker:
    """Runs at most one save at a time off the UI thread.

    ``poll`` must be called from the UI thread; it is the only place the status
    moves from ``saving`` to ``success`` or ``error``.
    """

    def __init__(
        self,
        store: MapStore,
        *,
        executor: ThreadPoolExecutor | None = None,
        message_ttl_sec: float = 3.0,
        clock=time.monotonic,
    ) -> None:
        self.store = store
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="isocity-save")
        self._clock = clock
        self.message_ttl_sec = message_ttl_sec
        self._future: Future[SaveResult] | None = None
        self.status = SaveStatus("idle")

    @property
    def in_flight(self) -> bool:
        return self._future is not None

    def submit(self, document: dict[str, Any]) -> bool:
        if self._future is not None:
            logger.info("save ignored (already in flight)")
            return False
        self._future = self._executor.submit(self.store.save, document)
        self.status = SaveStatus("saving", "Saving...", self._clock())
        return True

    def poll(self) -> SaveStatus:
        future = self._future
        if future is not None and future.done():
            self._future = None
            try:
                result = future.result()
            except Exception as exc:
                logger.exception("save failed")
                result = SaveResult("error", f"Save failed: {exc}")
            state: SaveState = "success" if result.ok else "error"
            self.status = SaveStatus(state, result.message, self._clock())
            logger.info("save %s: %s", state, result.message)
        elif self.status.state in ("success", "error"):
            if self._clock() - self.status.changed_at >= self.message_ttl_sec:
                self.status = SaveStatus("idle")
        return self.status

    def wait(self, timeout: float | None = None) -> SaveStatus:
        future = self._future
        if future is not None:
            future.exception(timeout=timeout)
        return self.poll()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
