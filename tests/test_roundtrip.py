"""Every supported scalar type survives insert, commit and load unchanged."""

import math
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from sample_records import Color, Scalars

from xmlstore import RecordStore, StoreConfig
from xmlstore.errors import InvalidFieldValue


def _reload(tmp_path: Path, record: Scalars, config: StoreConfig | None = None) -> Scalars:
    path = tmp_path / "scalars.xml"
    store = RecordStore.create(Scalars, path, config=config)
    store.insert("s-1", record)
    store.commit()
    return RecordStore.load(Scalars, path, config=config).require("s-1")


_TEXTS = [
    "",
    " ",
    "  padded  ",
    "\ttabbed\t",
    "\nleading newline",
    "trailing newline\n",
    "a\r\nb",
    "\r",
    "lone\rcr",
    "<tag> & \"quotes\" 'apos'",
    "]]>",
    "&#13;",
    "snow \u2603 and \U0001F600",
    "\ud7ff\ue000\ufffd\U0010ffff",
]

_CASES = [
    *(("text", t) for t in _TEXTS),
    ("count", 0),
    ("count", -(2**70)),
    ("count", 2**63),
    ("ratio", 0.1 + 0.2),
    ("ratio", -0.0),
    ("ratio", 1e-300),
    ("ratio", 5e-324),
    ("ratio", math.inf),
    ("ratio", -math.inf),
    ("flag", True),
    ("flag", False),
    ("amount", Decimal("0")),
    ("amount", Decimal("-1234.5000")),
    ("amount", Decimal("1E+3")),
    ("amount", Decimal("0.000000000000000000000000001")),
    ("stamp", datetime(2024, 2, 29, 23, 59, 59, 999_999)),
    ("stamp", datetime(1, 1, 1, tzinfo=timezone.utc)),
    ("stamp", datetime(2024, 6, 1, 12, 0, tzinfo=timezone(timedelta(hours=-5, minutes=-30)))),
    ("day", date(1, 1, 1)),
    ("day", date(9999, 12, 31)),
    ("clock", time(0, 0)),
    ("clock", time(23, 59, 59, 1)),
    ("clock", time(8, 30, tzinfo=timezone.utc)),
    ("span", timedelta(0)),
    ("span", timedelta(microseconds=1)),
    ("span", timedelta(microseconds=-1)),
    ("span", timedelta(days=-3, seconds=7, microseconds=11)),
    ("span", timedelta.max),
    ("span", timedelta.min),
    ("key", uuid.UUID(int=0)),
    ("key", uuid.UUID("12345678-1234-5678-1234-567812345678")),
    ("where", Path("relative/dir/file name.txt")),
    ("where", Path("/abs/\u2603")),
    ("color", Color.RED),
    ("color", Color.GREEN),
]


@pytest.mark.parametrize(("field", "value"), _CASES, ids=lambda v: repr(v)[:40])
def test_value_survives_commit_and_load(tmp_path, field, value):
    loaded = _reload(tmp_path, Scalars(**{field: value}))
    assert getattr(loaded, field) == value
    assert type(getattr(loaded, field)) is type(value)


@pytest.mark.parametrize("text", _TEXTS)
def test_text_survives_without_indentation(tmp_path, text):
    config = StoreConfig(indent=0, xml_declaration=False)
    assert _reload(tmp_path, Scalars(text=text), config).text == text


def test_all_fields_together(tmp_path):
    record = Scalars(
        text=" both \r\n ends ",
        count=7,
        ratio=2.5,
        flag=False,
        amount=Decimal("9.99"),
        stamp=datetime(2020, 1, 2, 3, 4, 5, 6),
        day=date(2020, 1, 2),
        clock=time(3, 4, 5),
        span=timedelta(hours=1, microseconds=5),
        key=uuid.UUID(int=42),
        where=Path("a/b"),
        color=Color.GREEN,
    )
    assert _reload(tmp_path, record) == record


def test_absent_values_stay_absent_except_text(tmp_path):
    loaded = _reload(tmp_path, Scalars())
    assert loaded.text == ""
    assert loaded == Scalars(text="")


def test_nan_survives(tmp_path):
    assert math.isnan(_reload(tmp_path, Scalars(ratio=math.nan)).ratio)


@pytest.mark.parametrize("char", ["\x00", "\x01", "\x07", "\x08", "\x0b", "\x0c", "\x1f", "\ufffe", "\uffff"])
def test_control_characters_are_rejected_at_insert(tmp_path, char):
    path = tmp_path / "scalars.xml"
    store = RecordStore.create(Scalars, path)
    store.insert("ok", Scalars(text="fine"))
    with pytest.raises(InvalidFieldValue):
        store.insert("bad", Scalars(text=f"before{char}after"))
    with pytest.raises(InvalidFieldValue):
        store.insert("bad", Scalars(where=Path(f"dir{char}")))
    store.commit()
    assert [r.text for r in RecordStore.load(Scalars, path).read_all()] == ["fine"]
