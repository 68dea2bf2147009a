"""Merge remote and locally cached records into one ordered view."""
from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Set

from daily_updates.models import FALLBACK_ID_PREFIX, DailyUpdate, now_millis


def reconcile(remote: Iterable[DailyUpdate], local: Iterable[DailyUpdate]) -> List[DailyUpdate]:
    """Return remote followed by local records, deduplicated by id and sorted by ``sn``.

    The first record seen for an id wins, so a local record whose id collides
    with a remote one is shadowed. Records without an id are kept and given a
    ``fallback_`` id. The sort is stable; records sharing an ``sn`` keep their
    merge order.
    """

    seen: Set[str] = set()
    merged: List[DailyUpdate] = []
    stamp = now_millis()
    for record in [*remote, *local]:
        if record.id is None:
            record = replace(record, id=f"{FALLBACK_ID_PREFIX}{stamp}_{len(merged)}")
        elif record.id in seen:
            continue
        seen.add(record.id)
        merged.append(record)
    merged.sort(key=lambda record: record.sn)
    return merged


def next_sequence_number(records: Iterable[DailyUpdate]) -> int:
    numbers = [record.sn for record in records]
    if not numbers:
        return 1
    return max(numbers) + 1


__all__ = ["next_sequence_number", "reconcile"]
