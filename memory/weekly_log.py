"""Weekly outfit memory: which items were worn on which day of the current week."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

LOGGER = logging.getLogger(__name__)


def week_key(day: date) -> str:
    """ISO date of the Monday on or before ``day``."""

    return (day - timedelta(days=day.weekday())).isoformat()


@dataclass
class WeeklyLogEntry:
    """Items used on one calendar day."""

    date: str
    worn_item_ids: List[str] = field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        return {"date": self.date, "outfitIds": list(self.worn_item_ids)}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "WeeklyLogEntry":
        ids = record.get("outfitIds", record.get("worn_item_ids")) or []
        return cls(date=str(record["date"]), worn_item_ids=_dedupe(str(item_id) for item_id in ids))


def _dedupe(values: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def worn_item_ids(entries: Iterable[WeeklyLogEntry]) -> Set[str]:
    """Union of every id logged in ``entries``."""

    return {item_id for entry in entries for item_id in entry.worn_item_ids}


class WeeklyLogStore:
    """Interface for the weekly outfit memory."""

    def today(self) -> date:
        raise NotImplementedError

    def get(self) -> List[WeeklyLogEntry]:
        raise NotImplementedError

    def append(self, day: str, item_ids: List[str]) -> None:
        raise NotImplementedError

    def reset_if_new_week(self) -> bool:
        raise NotImplementedError


class JSONWeeklyLogStore(WeeklyLogStore):
    """Single JSON file holding ``{"weekKey": ..., "logs": [...]}``.

    Reads that hit a stale week key answer with an empty log but leave the
    file alone; only :meth:`append` and :meth:`reset_if_new_week` rewrite it.
    Writes are a plain read-modify-write with no locking, so two concurrent
    appends can lose one update.
    """

    def __init__(self, path: str | Path = "data/weekly-log.json", clock: Callable[[], date] | None = None) -> None:
        self.path = Path(path)
        self.clock = clock or date.today

    def today(self) -> date:
        return self.clock()

    def current_week_key(self) -> str:
        return week_key(self.today())

    def _load(self) -> Optional[Dict[str, Any]]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        return data

    def _save(self, key: str, entries: List[WeeklyLogEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"weekKey": key, "logs": [entry.to_record() for entry in entries]}
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _entries(self, data: Dict[str, Any]) -> List[WeeklyLogEntry]:
        entries: List[WeeklyLogEntry] = []
        for record in data.get("logs") or []:
            try:
                entries.append(WeeklyLogEntry.from_record(record))
            except (KeyError, TypeError, AttributeError):
                LOGGER.warning("Skipping malformed weekly log entry")
        return entries

    def get(self) -> List[WeeklyLogEntry]:
        data = self._load()
        if data is None or data.get("weekKey") != self.current_week_key():
            return []
        return self._entries(data)

    def append(self, day: str, item_ids: List[str]) -> None:
        key = self.current_week_key()
        data = self._load()
        entries = self._entries(data) if data and data.get("weekKey") == key else []

        existing = next((entry for entry in entries if entry.date == day), None)
        if existing:
            existing.worn_item_ids = _dedupe([*existing.worn_item_ids, *item_ids])
        else:
            entries.append(WeeklyLogEntry(date=day, worn_item_ids=_dedupe(item_ids)))
        entries.sort(key=lambda entry: entry.date)

        self._save(key, entries)

    def reset_if_new_week(self) -> bool:
        data = self._load()
        if data is None:
            return False
        key = self.current_week_key()
        if data.get("weekKey") == key:
            return False
        self._save(key, [])
        LOGGER.info("Weekly log reset", extra={"week_key": key})
        return True


__all__ = [
    "JSONWeeklyLogStore",
    "WeeklyLogEntry",
    "WeeklyLogStore",
    "week_key",
    "worn_item_ids",
]
