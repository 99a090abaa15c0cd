"""Weekly outfit memory persistence and rollover coverage."""

import json
from datetime import date
from pathlib import Path

from memory.weekly_log import JSONWeeklyLogStore, week_key, worn_item_ids


class _Clock:
    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


def test_week_key_is_monday_on_or_before_the_day() -> None:
    assert week_key(date(2024, 1, 1)) == "2024-01-01"  # Monday
    assert week_key(date(2024, 1, 3)) == "2024-01-01"
    assert week_key(date(2024, 1, 7)) == "2024-01-01"  # Sunday
    assert week_key(date(2024, 1, 8)) == "2024-01-08"
    assert week_key(date(2024, 3, 2)) == "2024-02-26"


def test_append_merges_ids_for_the_same_date(tmp_path: Path) -> None:
    store = JSONWeeklyLogStore(tmp_path / "weekly-log.json", clock=_Clock(date(2024, 1, 2)))

    store.append("2024-01-02", ["a", "b"])
    store.append("2024-01-02", ["b", "c"])

    entries = store.get()
    assert len(entries) == 1
    assert entries[0].date == "2024-01-02"
    assert set(entries[0].worn_item_ids) == {"a", "b", "c"}


def test_repeated_identical_appends_are_idempotent(tmp_path: Path) -> None:
    store = JSONWeeklyLogStore(tmp_path / "weekly-log.json", clock=_Clock(date(2024, 1, 2)))

    for _ in range(3):
        store.append("2024-01-02", ["a", "a", "b"])

    assert store.get()[0].worn_item_ids == ["a", "b"]


def test_entries_sorted_by_date(tmp_path: Path) -> None:
    store = JSONWeeklyLogStore(tmp_path / "weekly-log.json", clock=_Clock(date(2024, 1, 5)))

    store.append("2024-01-04", ["x"])
    store.append("2024-01-02", ["y"])
    store.append("2024-01-03", ["z"])

    assert [entry.date for entry in store.get()] == ["2024-01-02", "2024-01-03", "2024-01-04"]
    assert worn_item_ids(store.get()) == {"x", "y", "z"}


def test_stale_week_reads_empty_without_touching_storage(tmp_path: Path) -> None:
    path = tmp_path / "weekly-log.json"
    clock = _Clock(date(2024, 1, 2))
    store = JSONWeeklyLogStore(path, clock=clock)
    store.append("2024-01-02", ["a"])
    before = path.read_text()

    clock.today = date(2024, 1, 9)

    assert store.get() == []
    assert path.read_text() == before


def test_append_in_new_week_discards_previous_entries(tmp_path: Path) -> None:
    clock = _Clock(date(2024, 1, 2))
    store = JSONWeeklyLogStore(tmp_path / "weekly-log.json", clock=clock)
    store.append("2024-01-02", ["a"])

    clock.today = date(2024, 1, 9)
    store.append("2024-01-09", ["b"])

    entries = store.get()
    assert [(entry.date, entry.worn_item_ids) for entry in entries] == [("2024-01-09", ["b"])]


def test_reset_if_new_week_clears_prior_week(tmp_path: Path) -> None:
    path = tmp_path / "weekly-log.json"
    clock = _Clock(date(2024, 1, 2))
    store = JSONWeeklyLogStore(path, clock=clock)
    store.append("2024-01-02", ["a"])

    assert store.reset_if_new_week() is False
    assert len(store.get()) == 1

    clock.today = date(2024, 1, 10)
    assert store.reset_if_new_week() is True
    stored = json.loads(path.read_text())
    assert stored == {"weekKey": "2024-01-08", "logs": []}
    assert store.reset_if_new_week() is False


def test_missing_or_corrupt_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "weekly-log.json"
    store = JSONWeeklyLogStore(path, clock=_Clock(date(2024, 1, 2)))

    assert store.get() == []
    assert store.reset_if_new_week() is False

    path.write_text("{not json")
    assert store.get() == []

    store.append("2024-01-02", ["a"])
    assert store.get()[0].worn_item_ids == ["a"]


def test_reads_original_record_layout(tmp_path: Path) -> None:
    path = tmp_path / "weekly-log.json"
    path.write_text(
        json.dumps({"weekKey": "2024-01-01", "logs": [{"date": "2024-01-03", "outfitIds": ["t1", "b1"]}]})
    )
    store = JSONWeeklyLogStore(path, clock=_Clock(date(2024, 1, 4)))

    assert store.get()[0].worn_item_ids == ["t1", "b1"]
