"""Record type for daily update entries and helpers to build new ones."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from daily_updates.errors import RecordValidationError

LOCAL_ID_PREFIX = "local_"
REMOTE_ID_PREFIX = "csv_row_"
FALLBACK_ID_PREFIX = "fallback_"

# Python attribute name -> key used on the wire and in the local cache.
FIELD_KEYS: Dict[str, str] = {
    "sn": "sn",
    "date": "date",
    "account_name": "accountName",
    "project_name": "projectName",
    "remarks": "remarks",
    "id": "id",
}
_ATTRIBUTE_FOR_KEY: Dict[str, str] = {}
for _attribute, _key in FIELD_KEYS.items():
    _ATTRIBUTE_FOR_KEY[_attribute] = _attribute
    _ATTRIBUTE_FOR_KEY[_key] = _attribute


_stamp_lock = threading.Lock()
_last_stamp = 0


def now_millis() -> int:
    return int(time.time() * 1000)


def unique_millis() -> int:
    """Return the current time in milliseconds, strictly increasing within the process."""

    global _last_stamp
    with _stamp_lock:
        stamp = max(now_millis(), _last_stamp + 1)
        _last_stamp = stamp
        return stamp


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """Return ``moment`` (default: now) as UTC ISO-8601 with millisecond precision."""

    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _to_int(value: Any, default: int = 0) -> int:
    if value in (None, ""):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class DailyUpdate:
    """A single daily update entry."""

    sn: int
    date: str
    account_name: str
    project_name: str
    remarks: str = ""
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DailyUpdate":
        values = normalise_changes(payload)
        record_id = values.get("id")
        return cls(
            sn=_to_int(values.get("sn")),
            date=_to_text(values.get("date")),
            account_name=_to_text(values.get("account_name")),
            project_name=_to_text(values.get("project_name")),
            remarks=_to_text(values.get("remarks")),
            id=str(record_id) if record_id not in (None, "") else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "sn": self.sn,
            "date": self.date,
            "accountName": self.account_name,
            "projectName": self.project_name,
            "remarks": self.remarks,
        }
        if self.id is not None:
            payload["id"] = self.id
        return payload

    def merged(self, changes: Mapping[str, Any]) -> "DailyUpdate":
        """Return a copy with ``changes`` applied; ``sn`` and ``id`` are kept."""

        values = normalise_changes(changes)
        values.pop("sn", None)
        values.pop("id", None)
        return replace(self, **{key: _to_text(value) for key, value in values.items()})


def normalise_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase or snake_case keys onto :class:`DailyUpdate` attribute names.

    Unknown keys are dropped.
    """

    values: Dict[str, Any] = {}
    for key, value in changes.items():
        attribute = _ATTRIBUTE_FOR_KEY.get(key)
        if attribute is not None:
            values[attribute] = value
    return values


def new_update(
    account_name: str,
    project_name: str,
    remarks: str = "",
    date: Optional[str] = None,
) -> Dict[str, str]:
    """Build the partial record accepted by ``DailyUpdateService.add_record``."""

    account = (account_name or "").strip()
    project = (project_name or "").strip()
    missing = [label for label, value in (("account name", account), ("project name", project)) if not value]
    if missing:
        raise RecordValidationError("Missing required field(s): " + ", ".join(missing))
    return {
        "date": date or iso_timestamp(),
        "accountName": account,
        "projectName": project,
        "remarks": (remarks or "").strip(),
    }


__all__ = [
    "DailyUpdate",
    "FALLBACK_ID_PREFIX",
    "FIELD_KEYS",
    "LOCAL_ID_PREFIX",
    "REMOTE_ID_PREFIX",
    "iso_timestamp",
    "new_update",
    "normalise_changes",
    "now_millis",
    "unique_millis",
]
