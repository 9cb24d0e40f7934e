"""
Scene persistence: host state stores and the debounced snapshot saver.

The host keeps application state as one JSON document.  The scene lives
under its ``"elements"`` key; sibling keys belong to other parts of the
application and are preserved on every write.

:class:`SnapshotSaver` coalesces bursts of scene changes into a single
write of the latest snapshot.  A write in flight is never cancelled; a
change that arrives during it schedules exactly one trailing write.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from scene_mcp.errors import TransportUnavailable

logger = logging.getLogger("scene-mcp.persistence")

DEFAULT_SAVE_DELAY = 0.3  # seconds


# ---------------------------------------------------------------------------
# Host state stores
# ---------------------------------------------------------------------------

class HostStateStore:
    """Key-value document owned by the host.

    Subclasses implement :meth:`load` and :meth:`save`; both raise
    :class:`TransportUnavailable` when the host cannot be reached.
    """

    async def load(self) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    async def save(self, document: dict[str, Any]) -> None:
        raise NotImplementedError


class MemoryStateStore(HostStateStore):
    """State held in process memory; used when no state file is configured."""

    def __init__(self, state: Optional[dict[str, Any]] = None, latency: float = 0.0) -> None:
        self.state: dict[str, Any] = dict(state or {})
        self.latency = latency
        self.connected = True
        self.saves: list[dict[str, Any]] = []

    def disconnect(self) -> None:
        self.connected = False

    def reconnect(self) -> None:
        self.connected = True

    async def load(self) -> Optional[dict[str, Any]]:
        if not self.connected:
            raise TransportUnavailable("Host state is not connected.")
        return json.loads(json.dumps(self.state)) if self.state else None

    async def save(self, document: dict[str, Any]) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self.connected:
            raise TransportUnavailable("Host state is not connected.")
        self.state.update(document)
        self.saves.append(document)


class JsonFileStateStore(HostStateStore):
    """State kept in a JSON file, replaced atomically on each save.

    File I/O runs in a worker thread so a slow disk never stalls the event loop.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> Optional[dict[str, Any]]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise TransportUnavailable(f"Cannot read state file '{self.path}': {exc}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("State file '%s' is not valid JSON (%s); ignoring it.", self.path, exc)
            return None
        if not isinstance(data, dict):
            logger.warning("State file '%s' does not hold a JSON object; ignoring it.", self.path)
            return None
        return data

    async def load(self) -> Optional[dict[str, Any]]:
        return await asyncio.to_thread(self._read)

    async def save(self, document: dict[str, Any]) -> None:
        await asyncio.to_thread(self._write, document)

    def _write(self, document: dict[str, Any]) -> None:
        merged = self._read() or {}
        merged.update(document)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(merged, f, indent=2)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as exc:
            raise TransportUnavailable(f"Cannot write state file '{self.path}': {exc}") from exc


# ---------------------------------------------------------------------------
# Debounced saver
# ---------------------------------------------------------------------------

class SnapshotSaver:
    """Debounce scene changes into snapshot writes.

    :meth:`schedule` is called after every change.  Without a running event
    loop the change is only marked pending until :meth:`flush`.
    """

    def __init__(
        self,
        store: HostStateStore,
        snapshot: Callable[[], dict[str, Any]],
        delay: float = DEFAULT_SAVE_DELAY,
    ) -> None:
        self.store = store
        self._snapshot = snapshot
        self.delay = delay
        self.writes = 0
        self._dirty = False
        self._closed = False
        self._writing = False
        self._trailing = False
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        """True while a change has not been written yet."""
        return self._dirty

    @property
    def writing(self) -> bool:
        return self._writing

    def schedule(self) -> None:
        """Record a change and (re)arm the debounce timer."""
        if self._closed:
            return
        self._dirty = True
        if self._writing:
            self._trailing = True
            return
        self._arm()

    def _arm(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.delay, self._fire)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        self._task = asyncio.ensure_future(self._write())

    async def _write(self) -> None:
        if not self._dirty:
            return
        self._writing = True
        self._dirty = False
        document = self._snapshot()
        try:
            await self.store.save(document)
            self.writes += 1
            logger.debug("Scene snapshot saved (%d element(s))", len(document.get("elements", [])))
        except TransportUnavailable as exc:
            self._dirty = True
            logger.warning("Snapshot not saved, host unavailable: %s", exc.message)
        except Exception:
            self._dirty = True
            logger.exception("Snapshot save failed")
        finally:
            self._writing = False
        if self._trailing:
            self._trailing = False
            if not self._closed:
                self._arm()

    async def flush(self) -> bool:
        """Write any pending snapshot now.  Returns True when nothing is left pending."""
        self._cancel_timer()
        if self._task is not None and not self._task.done():
            await self._task
        self._cancel_timer()
        self._trailing = False
        if self._dirty:
            await self._write()
        return not self._dirty

    async def close(self, drop: bool = False) -> None:
        """Stop accepting changes, flushing the pending snapshot unless *drop*."""
        if drop:
            self._cancel_timer()
            if self._dirty:
                logger.info("Dropping pending scene snapshot")
            self._dirty = False
            self._trailing = False
            self._closed = True
            if self._task is not None and not self._task.done():
                await self._task
            return
        await self.flush()
        self._closed = True
