"""Wires caches, gateway and series handles together from a Config."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from .cache import JsonFileCache
from .config import Config
from .meeting_series import MeetingSeries
from .minutes import Minutes
from .models import MinutesRecord
from .rpc import DispatchGateway, RemoteGateway
from .watcher import CacheWatcher

log = logging.getLogger(__name__)


class MinutesClient:
    def __init__(self, config: Config, gateway: RemoteGateway | None = None):
        self.config = config
        self.minutes_cache = JsonFileCache(config.cache_path, config.minutes_collection)
        self.series_cache = JsonFileCache(config.cache_path, config.series_collection)
        self._owns_gateway = gateway is None
        self.gateway = gateway or DispatchGateway(max_workers=config.rpc_workers)
        self._watcher: CacheWatcher | None = None

    def meeting_series(self, series_id: str) -> MeetingSeries:
        return MeetingSeries(
            series_id,
            cache=self.series_cache,
            gateway=self.gateway,
            current_user=self.config.current_user,
        )

    def minutes(self, source: Mapping | MinutesRecord | str) -> Minutes:
        return Minutes(
            source,
            cache=self.minutes_cache,
            gateway=self.gateway,
            series_factory=self.meeting_series,
        )

    def watch(self, on_reload: Callable[[], None] | None = None) -> CacheWatcher:
        """Start reloading both caches whenever the snapshot file changes."""
        if self._watcher is None:
            self._watcher = CacheWatcher(
                [self.minutes_cache, self.series_cache], on_reload=on_reload
            )
            self._watcher.start()
        return self._watcher

    def close(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        if self._owns_gateway and isinstance(self.gateway, DispatchGateway):
            self.gateway.close()

    def __enter__(self) -> MinutesClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
