"""Minutes document: local record plus remote operations on it."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Any

from .cache import DocumentCache
from .errors import ConstructionError, UnknownFieldError
from .meeting_series import MeetingSeries
from .models import (
    MINUTES_FIELDS,
    MinutesRecord,
    TopicRecord,
    parse_created_at,
    parse_topics,
)
from .rpc import Callback, RemoteGateway, observe

log = logging.getLogger(__name__)

SeriesFactory = Callable[[str], Any]

# Fields an update may not touch
_IMMUTABLE_KEYS = frozenset({"_id", "meetingSeries_id"})

_RECORD_ATTRS = frozenset(MINUTES_FIELDS.values())


class Minutes:
    """One meeting's minutes.

    ``source`` is a full wire record, a MinutesRecord, or a minutes id that is
    looked up in ``cache``. Mutating methods change the local record at once
    and forward the change to ``gateway`` without waiting for the result; each
    returns the remote call's future, and an optional ``callback(error,
    result)`` is attached to it.

    Fields of the underlying record (``id``, ``date``, ``topics``, ...) are
    readable and assignable as attributes.
    """

    def __init__(
        self,
        source: Mapping | MinutesRecord | str | None = None,
        *,
        cache: DocumentCache | None = None,
        gateway: RemoteGateway | None = None,
        series_factory: SeriesFactory | None = None,
    ):
        self._cache = cache
        self._gateway = gateway
        if series_factory is None:
            def series_factory(series_id: str) -> MeetingSeries:
                return MeetingSeries(series_id, gateway=gateway)
        self._series_factory = series_factory
        self.record = self._resolve(source)

    def _resolve(self, source: Mapping | MinutesRecord | str | None) -> MinutesRecord:
        if isinstance(source, MinutesRecord):
            return MinutesRecord.from_record(source.to_record())
        if isinstance(source, Mapping):
            return MinutesRecord.from_record(source)
        if isinstance(source, str) and source:
            return MinutesRecord.from_record(self._lookup(source))
        raise ConstructionError("Invalid or missing argument for Minutes")

    def _lookup(self, minutes_id: str) -> dict:
        if self._cache is None:
            raise ConstructionError(f"No cache to load minutes {minutes_id} from")
        record = self._cache.find_one(minutes_id)
        if record is None:
            raise ConstructionError(f"Minutes {minutes_id} not found in cache")
        return record

    def __getattr__(self, name: str) -> Any:
        record = self.__dict__.get("record")
        if record is None:
            raise AttributeError(name)
        return getattr(record, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _RECORD_ATTRS:
            setattr(self.record, name, value)
        else:
            super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        # Only the optional fields can be unset, e.g. to save as new minutes
        if name in ("id", "created_at"):
            setattr(self.record, name, None)
        elif name in _RECORD_ATTRS:
            raise AttributeError(f"Cannot delete required field {name!r}")
        else:
            super().__delattr__(name)

    def __repr__(self) -> str:
        return f"Minutes(id={self.record.id!r}, date={self.record.date!r})"

    def to_record(self) -> dict:
        return self.record.to_record()

    def refresh(self) -> None:
        """Reload the record from the cache, picking up server-side changes."""
        if self.record.id is None:
            raise ConstructionError("Cannot refresh minutes that were never saved")
        self.record = MinutesRecord.from_record(self._lookup(self.record.id))

    def _call(self, name: str, *args: Any, callback: Callback | None = None) -> Future:
        if self._gateway is None:
            raise RuntimeError("Minutes has no remote gateway")
        log.debug("Issuing %s for minutes %s", name, self.record.id)
        return observe(self._gateway.call(name, *args), callback)

    # -- persistence --

    def update(self, fields: Mapping, callback: Callback | None = None) -> Future:
        """Merge wire-keyed ``fields`` into the record and send them with the id."""
        bad = [k for k in fields if k not in MINUTES_FIELDS or k in _IMMUTABLE_KEYS]
        if bad:
            raise UnknownFieldError(f"Cannot update field(s): {', '.join(map(str, bad))}")

        # Validate everything before touching the record
        if "topics" in fields:
            parse_topics(fields["topics"])
        if "createdAt" in fields:
            parse_created_at(fields["createdAt"])
        for key, value in fields.items():
            setattr(self.record, MINUTES_FIELDS[key], value)

        payload = dict(fields)
        if "topics" in payload:
            payload["topics"] = [topic.to_record() for topic in self.record.topics]
        payload["_id"] = self.record.id
        return self._call("minutes.update", payload, callback=callback)

    def save(self, context_hint: Any = None, callback: Callback | None = None) -> Future:
        if self.record.id is None:
            if self.record.created_at is None:
                self.record.created_at = datetime.now(tz=timezone.utc)
            return self._call(
                "minutes.insert", self.to_record(), context_hint, callback=callback
            )
        return self._call("minutes.update", self.to_record(), callback=callback)

    def finalize(self, callback: Callback | None = None) -> Future:
        # Finalize flags arrive later through the cache, see refresh()
        return self._call("minutes.finalize", self.record.id, callback=callback)

    def unfinalize(self, callback: Callback | None = None) -> Future:
        return self._call("minutes.unfinalize", self.record.id, callback=callback)

    # -- parent series --

    def parent_meeting_series_id(self) -> str:
        return self.record.meeting_series_id

    def parent_meeting_series(self):
        return self._series_factory(self.record.meeting_series_id)

    def is_current_user_moderator(self) -> bool:
        return self.parent_meeting_series().is_current_user_moderator()

    # -- topics --

    def find_topic(self, topic_id: str) -> TopicRecord | None:
        for topic in self.record.topics:
            if topic.id == topic_id:
                return topic
        return None

    def remove_topic(self, topic_id: str, callback: Callback | None = None) -> Future | None:
        """Remove a topic and push the new list. Returns None if no topic matched."""
        topics = self.record.topics
        for index, topic in enumerate(topics):
            if topic.id == topic_id:
                self.record.topics = topics[:index] + topics[index + 1:]
                return self._push_topics(callback)
        log.debug("Topic %s not found in minutes %s", topic_id, self.record.id)
        return None

    def get_new_topics(self) -> list[TopicRecord]:
        return [topic for topic in self.record.topics if topic.is_new]

    def get_old_closed_topics(self) -> list[TopicRecord]:
        return [
            topic for topic in self.record.topics
            if not topic.is_new and not topic.is_open
        ]

    def upsert_topic(self, topic: Mapping | TopicRecord, callback: Callback | None = None) -> Future:
        """Replace the topic with the same id in place, or append it as new.

        A topic without an id is given a fresh one on append.
        """
        new_topic = TopicRecord.from_record(topic)
        topics = list(self.record.topics)

        for index, existing in enumerate(topics):
            if new_topic.id is not None and existing.id == new_topic.id:
                topics[index] = new_topic
                break
        else:
            topics.append(new_topic)
        self.record.topics = topics
        return self._push_topics(callback)

    def _push_topics(self, callback: Callback | None) -> Future:
        payload = {
            "_id": self.record.id,
            "topics": [topic.to_record() for topic in self.record.topics],
        }
        return self._call("minutes.update", payload, callback=callback)
