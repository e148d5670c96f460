"""Handle on the meeting series that owns a set of minutes."""

from __future__ import annotations

import logging
from concurrent.futures import Future

from .cache import DocumentCache
from .rpc import Callback, RemoteGateway, observe

log = logging.getLogger(__name__)


class MeetingSeries:
    def __init__(
        self,
        series_id: str,
        *,
        cache: DocumentCache | None = None,
        gateway: RemoteGateway | None = None,
        current_user: str | None = None,
    ):
        self.id = series_id
        self._cache = cache
        self._gateway = gateway
        self._current_user = current_user

    def __repr__(self) -> str:
        return f"MeetingSeries({self.id!r})"

    def is_current_user_moderator(self) -> bool:
        """True if the configured user is listed as a moderator of this series."""
        if self._current_user is None or self._cache is None:
            return False
        record = self._cache.find_one(self.id)
        if record is None:
            log.debug("Meeting series %s not in cache", self.id)
            return False
        return self._current_user in (record.get("moderators") or [])

    def update_last_minutes_date(self, date: str, callback: Callback | None = None) -> Future:
        if self._gateway is None:
            raise RuntimeError(f"MeetingSeries {self.id} has no remote gateway")
        future = self._gateway.call(
            "meetingseries.update", {"_id": self.id, "lastMinutesDate": date}
        )
        return observe(future, callback)
