"""Watchdog-based reloading of a JSON cache snapshot."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable

from watchdog.events import FileModifiedEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .cache import JsonFileCache

log = logging.getLogger(__name__)

_DEBOUNCE_SECONDS = 0.5


class _SnapshotEventHandler(FileSystemEventHandler):
    """Reloads caches when their snapshot file is modified."""

    def __init__(
        self,
        caches: list[JsonFileCache],
        on_reload: Callable[[], None] | None = None,
    ):
        super().__init__()
        self._caches = caches
        self._on_reload = on_reload
        self._snapshot_name = caches[0].path.name
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def on_modified(self, event: FileModifiedEvent) -> None:  # type: ignore[override]
        if event.is_directory:
            return
        if not str(event.src_path).endswith(self._snapshot_name):
            return

        log.debug("Cache snapshot modified, reloading in %.1fs", _DEBOUNCE_SECONDS)
        self._schedule_reload()

    def _schedule_reload(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(_DEBOUNCE_SECONDS, self._do_reload)
            self._timer.daemon = True
            self._timer.start()

    def _do_reload(self) -> None:
        # Read every collection before swapping any, so they stay consistent
        try:
            loaded = [(cache, cache.read()) for cache in self._caches]
        except Exception:
            log.error("Cache reload failed", exc_info=True)
            return
        for cache, records in loaded:
            cache.replace(records)
        log.info("Reloaded cache from %s", self._caches[0].path)
        if self._on_reload is not None:
            try:
                self._on_reload()
            except Exception:
                log.error("Reload callback failed", exc_info=True)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class CacheWatcher:
    """Keeps one or more caches over the same snapshot file up to date."""

    def __init__(
        self,
        caches: Iterable[JsonFileCache],
        on_reload: Callable[[], None] | None = None,
    ):
        caches = list(caches)
        if not caches:
            raise ValueError("CacheWatcher needs at least one cache")
        paths = {cache.path for cache in caches}
        if len(paths) != 1:
            raise ValueError("All watched caches must share one snapshot file")

        self.path = caches[0].path
        self._handler = _SnapshotEventHandler(caches, on_reload)
        self._observer = Observer()

    def start(self) -> None:
        snapshot_dir = self.path.parent
        if not snapshot_dir.exists():
            raise FileNotFoundError(f"Cache directory does not exist: {snapshot_dir}")
        self._observer.schedule(self._handler, str(snapshot_dir), recursive=False)
        self._observer.start()
        log.info("Watching %s for changes", self.path)

    def stop(self) -> None:
        self._handler.cancel()
        self._observer.stop()
        self._observer.join()
        log.info("Watcher stopped")
