"""Data models for meeting minutes and their topics."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from .errors import ConstructionError

log = logging.getLogger(__name__)

# Same alphabet as Meteor's Random.id(): no 0/1/O/I/l lookalikes
_ID_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTWXYZabcdefghijkmnopqrstuvwxyz"
_ID_LENGTH = 17

# wire key -> attribute name, in wire order
TOPIC_FIELDS: dict[str, str] = {
    "_id": "id",
    "subject": "subject",
    "isNew": "is_new",
    "isOpen": "is_open",
}

MINUTES_FIELDS: dict[str, str] = {
    "meetingSeries_id": "meeting_series_id",
    "_id": "id",
    "date": "date",
    "createdAt": "created_at",
    "topics": "topics",
    "isFinalized": "is_finalized",
    "isUnfinalized": "is_unfinalized",
    "participants": "participants",
    "agenda": "agenda",
}

# Omitted from the wire form while unset
_OPTIONAL_KEYS = frozenset({"_id", "createdAt"})


def new_id() -> str:
    """Generate a random document id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


def _known_fields(record: Mapping, fields: dict[str, str], kind: str) -> dict:
    kwargs: dict = {}
    for key, value in record.items():
        attr = fields.get(key)
        if attr is None:
            log.warning("Dropping unknown %s field %r", kind, key)
            continue
        kwargs[attr] = value
    return kwargs


def parse_created_at(value: datetime | str | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ConstructionError(f"Invalid createdAt timestamp: {value!r}") from None
    raise ConstructionError(f"Invalid createdAt timestamp: {value!r}")


class _WireRecord:
    """Remembers which wire keys a record was built from.

    Records built directly write out every field. Records built by
    ``from_record`` write out only the keys they arrived with, plus any
    field assigned since.
    """

    _wire_keys = {}
    _present = None

    def __setattr__(self, name, value):
        present = self.__dict__.get("_present")
        if present is not None and name in self._wire_keys:
            present.add(self._wire_keys[name])
        super().__setattr__(name, value)

    def _emits(self, key: str, value) -> bool:
        if key in _OPTIONAL_KEYS:
            return value is not None
        return self._present is None or key in self._present


@dataclass
class TopicRecord(_WireRecord):
    """An agenda item embedded in a minutes document."""

    _wire_keys = {attr: key for key, attr in TOPIC_FIELDS.items()}

    id: str | None = None
    subject: str = ""
    is_new: bool = True
    is_open: bool = True

    @classmethod
    def from_record(cls, record: Mapping | TopicRecord) -> TopicRecord:
        if isinstance(record, TopicRecord):
            topic = cls(record.id, record.subject, record.is_new, record.is_open)
            if record._present is not None:
                topic._present = set(record._present)
            return topic
        if not isinstance(record, Mapping):
            raise ConstructionError(f"Topic must be a mapping, got {type(record).__name__}")
        topic = cls(**_known_fields(record, TOPIC_FIELDS, "topic"))
        topic._present = {key for key in record if key in TOPIC_FIELDS}
        return topic

    def to_record(self) -> dict:
        out: dict = {}
        for key, attr in TOPIC_FIELDS.items():
            value = getattr(self, attr)
            if self._emits(key, value):
                out[key] = value
        return out


@dataclass
class MinutesRecord(_WireRecord):
    """Plain field set of one meeting's minutes.

    ``topics`` always holds TopicRecords with unique ids; assigned lists are
    converted. ``created_at`` is a datetime; when it was given as a string
    the string is written back unchanged.
    """

    _wire_keys = {attr: key for key, attr in MINUTES_FIELDS.items()}
    _created_at_text = None

    meeting_series_id: str
    id: str | None = None
    date: str = ""
    created_at: datetime | None = None
    topics: list[TopicRecord] = field(default_factory=list)
    is_finalized: bool = False
    is_unfinalized: bool = True
    participants: str = ""
    agenda: str = ""

    def __setattr__(self, name, value):
        if name == "topics":
            value = parse_topics(value)
        elif name == "created_at":
            parsed = parse_created_at(value)
            self.__dict__["_created_at_text"] = value if isinstance(value, str) else None
            value = parsed
        super().__setattr__(name, value)

    @classmethod
    def from_record(cls, record: Mapping) -> MinutesRecord:
        """Map a wire record onto a MinutesRecord.

        Unknown keys are logged and dropped. Raises ConstructionError for a
        missing series id or duplicate topic ids.
        """
        if not isinstance(record, Mapping):
            raise ConstructionError(
                f"Minutes record must be a mapping, got {type(record).__name__}"
            )
        kwargs = _known_fields(record, MINUTES_FIELDS, "minutes")
        if not kwargs.get("meeting_series_id"):
            raise ConstructionError("'meetingSeries_id' is required")
        if kwargs.get("topics") is None:
            kwargs.pop("topics", None)

        minutes = cls(**kwargs)
        minutes._present = {key for key in record if key in MINUTES_FIELDS}
        return minutes

    def to_record(self) -> dict:
        out: dict = {}
        for key, attr in MINUTES_FIELDS.items():
            value = getattr(self, attr)
            if not self._emits(key, value):
                continue
            if key == "topics":
                value = [topic.to_record() for topic in value]
            elif key == "createdAt" and self._created_at_text is not None:
                value = self._created_at_text
            out[key] = value
        return out


def parse_topics(items) -> list[TopicRecord]:
    """Convert a sequence of topic records, enforcing unique ids.

    Topics without an id get a freshly generated one.
    """
    topics = [TopicRecord.from_record(item) for item in items]
    seen: set[str] = set()
    for topic in topics:
        if topic.id is None:
            continue
        if topic.id in seen:
            raise ConstructionError(f"Duplicate topic id: {topic.id}")
        seen.add(topic.id)

    for topic in topics:
        if topic.id is None:
            topic_id = new_id()
            while topic_id in seen:
                topic_id = new_id()
            topic.id = topic_id
            seen.add(topic_id)
    return topics
