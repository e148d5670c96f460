"""Shared fixtures for minutekeeper tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from minutekeeper.config import Config
from minutekeeper.minutes import Minutes


class FakeSeries:
    """Stands in for MeetingSeries; records the id it was built with."""

    def __init__(self, series_id: str):
        self.id = series_id
        self.is_current_user_moderator = MagicMock(return_value=True)
        self.update_last_minutes_date = MagicMock()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2016, 5, 6, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def minutes_doc(fixed_now: datetime) -> dict:
    return {
        "meetingSeries_id": "AaBbCc01",
        "_id": "AaBbCc02",
        "date": "2016-05-06",
        "createdAt": fixed_now,
        "topics": [],
        "isFinalized": False,
        "isUnfinalized": True,
        "participants": "",
        "agenda": "",
    }


@pytest.fixture
def gateway() -> MagicMock:
    return MagicMock()


@pytest.fixture
def cache(minutes_doc: dict) -> MagicMock:
    c = MagicMock()
    c.find_one.return_value = dict(minutes_doc)
    return c


@pytest.fixture
def minute(minutes_doc: dict, cache: MagicMock, gateway: MagicMock) -> Minutes:
    return Minutes(minutes_doc, cache=cache, gateway=gateway, series_factory=FakeSeries)


@pytest.fixture
def four_topics() -> list[dict]:
    return [
        {"_id": "01", "subject": "firstTopic", "isNew": True, "isOpen": True},
        {"_id": "02", "subject": "2ndTopic", "isNew": True, "isOpen": False},
        {"_id": "03", "subject": "3rdTopic", "isNew": False, "isOpen": True},
        {"_id": "04", "subject": "4thTopic", "isNew": False, "isOpen": False},
    ]


@pytest.fixture
def snapshot_file(tmp_path: Path, minutes_doc: dict, four_topics: list[dict]) -> Path:
    record = dict(minutes_doc, createdAt="2016-05-06T12:00:00+00:00", topics=four_topics)
    path = tmp_path / "cache" / "snapshot.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({
        "minutes": {"AaBbCc02": record},
        "meetingSeries": {"AaBbCc01": {"name": "Weekly", "moderators": ["alice"]}},
    }))
    return path


@pytest.fixture
def sample_config(snapshot_file: Path) -> Config:
    return Config(cache_path=snapshot_file, current_user="alice", rpc_workers=1)
