from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sample_records import Color, Person

from xmlstore import RecordStore


@pytest.fixture()
def ada() -> Person:
    return Person(
        name="Ada",
        age=36,
        height=1.65,
        active=True,
        born=date(1815, 12, 10),
        balance=Decimal("1234.50"),
        email="ada@example.com",
        favourite=Color.GREEN,
    )


@pytest.fixture()
def grace() -> Person:
    return Person(name="Grace", age=85, height=1.6, born=date(1906, 12, 9), email="grace@example.com")


@pytest.fixture()
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "people.xml"


@pytest.fixture()
def store(store_path: Path) -> RecordStore[Person]:
    return RecordStore.create(Person, store_path)
