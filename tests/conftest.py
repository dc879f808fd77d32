"""
Pytest configuration and shared fixtures.
"""

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import pytest

from recordcompare.fields import RecordShape
from recordcompare.logger import get_logger, reset_logger

_object_ids = itertools.count(1)


@dataclass
class Item:
    """Stored document: object_id is storage identity, ignored is never persisted."""

    name: str
    number: int
    date: datetime
    sub_document: Dict[str, Any]
    ignored: int = 0
    object_id: Optional[str] = field(default=None)


ITEM_SHAPE = RecordShape.of_attributes(
    "Item",
    ["object_id", "ignored", "name", "number", "date", "sub_document"],
    identity="object_id",
    ignored="ignored",
)


@pytest.fixture(autouse=True)
def quiet_logger(monkeypatch):
    """Fresh global logger without console or file output, default settings."""
    for var in (
        "RECORDCOMPARE_LOG_LEVEL",
        "RECORDCOMPARE_LOG_DIR",
        "RECORDCOMPARE_FETCH_TIMEOUT",
        "RECORDCOMPARE_HTTP_TIMEOUT",
        "RECORDCOMPARE_MAX_RETRIES",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_logger()
    logger = get_logger(level="DEBUG", enable_console=False, enable_file=False)
    yield logger
    reset_logger()


@pytest.fixture
def item_shape() -> RecordShape:
    return ITEM_SHAPE


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 3, 1, 12, 30, 0)


@pytest.fixture
def make_item() -> Callable[..., Item]:
    """Build an Item with a fresh storage id, like an insert would."""
    def _make(name: str, number: int, date: datetime, sub_document: Dict[str, Any], ignored: int = 0) -> Item:
        return Item(
            name=name,
            number=number,
            date=date,
            sub_document=dict(sub_document),
            ignored=ignored,
            object_id=f"oid-{next(_object_ids)}",
        )
    return _make


@pytest.fixture
def sub_documents() -> Dict[str, Dict[str, Any]]:
    return {
        "foo_1": {"Foo": "1", "Bar": 0},
        "foo_2": {"Foo": "2", "Bar": 1},
        "foobar_2": {"FooBar": "2", "BarFoo": 1},
    }


@pytest.fixture
def by_name() -> Callable[[Item], str]:
    return ITEM_SHAPE.key_function("name")


@pytest.fixture
def identical_items(make_item, now, sub_documents):
    """Two equal record sets (distinct storage ids) for Item1 and Item2."""
    def side():
        return [
            make_item("Item1", 1, now, sub_documents["foo_1"]),
            make_item("Item2", 21, now + timedelta(days=1), sub_documents["foobar_2"]),
        ]
    return side(), side()
