"""Read daily updates from the spreadsheet's public CSV export.

The export is the only read path that works without OAuth credentials, so it
is treated as the remote source of truth for listing. Every failure (missing
configuration, HTTP status, network error, unexpected body) degrades to an
empty result; the caller still has the local cache to show.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Protocol

from daily_updates.errors import TransportError
from daily_updates.http_transport import HttpResponse, UrllibTransport
from daily_updates.models import REMOTE_ID_PREFIX, DailyUpdate

logger = logging.getLogger(__name__)

EXPORT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/export?format=csv&gid={gid}"
MIN_ROW_FIELDS = 3

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


class TextTransport(Protocol):
    def get_text(self, url: str) -> HttpResponse:
        ...


def export_url(spreadsheet_id: str, gid: str = "0") -> str:
    return EXPORT_URL_TEMPLATE.format(spreadsheet_id=spreadsheet_id, gid=gid or "0")


def parse_csv_row(row: str) -> List[str]:
    """Split one CSV line into fields.

    ``"`` toggles quoting, ``""`` inside a quoted field is a literal quote and
    commas inside quotes do not split. The field being read when the line ends
    is always emitted, so an unterminated quoted field is kept as-is.
    """

    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    index = 0
    length = len(row)
    while index < length:
        char = row[index]
        if char == '"':
            if in_quotes and index + 1 < length and row[index + 1] == '"':
                current.append('"')
                index += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    fields.append("".join(current))
    return fields


def _parse_sn(raw: str, default: int) -> int:
    match = _LEADING_INT.match(raw)
    if not match:
        return default
    value = int(match.group(1))
    return value or default


def _record_from_fields(fields: List[str], line_index: int) -> Optional[DailyUpdate]:
    if len(fields) < MIN_ROW_FIELDS or not fields[0]:
        return None

    def _field(position: int) -> str:
        return fields[position] if position < len(fields) else ""

    return DailyUpdate(
        sn=_parse_sn(fields[0], line_index),
        date=_field(1),
        account_name=_field(2),
        project_name=_field(3),
        remarks=_field(4),
        id=f"{REMOTE_ID_PREFIX}{line_index + 1}",
    )


def parse_csv(text: str) -> List[DailyUpdate]:
    """Convert an export body into records, most recent row first.

    The first line is the header. Rows with fewer than three fields or an empty
    first field are skipped. ``id`` is ``csv_row_<n>`` where ``n`` is the
    1-based line number in the sheet, header included.
    """

    lines = text.strip().split("\n")
    if len(lines) <= 1:
        logger.debug("CSV export contains no data rows")
        return []

    records: List[DailyUpdate] = []
    for line_index in range(1, len(lines)):
        line = lines[line_index]
        if line.endswith("\r"):
            line = line[:-1]
        record = _record_from_fields(parse_csv_row(line), line_index)
        if record is None:
            logger.debug("Skipping CSV line %d: fewer than %d populated fields", line_index + 1, MIN_ROW_FIELDS)
            continue
        records.append(record)

    logger.info("Parsed %d records from CSV export", len(records))
    records.reverse()
    return records


class SheetExportReader:
    """Fetch and parse the CSV export of one worksheet."""

    def __init__(
        self,
        spreadsheet_id: str,
        *,
        gid: str = "0",
        transport: Optional[TextTransport] = None,
    ) -> None:
        self._spreadsheet_id = (spreadsheet_id or "").strip()
        self._gid = gid
        self._transport = transport or UrllibTransport()

    @property
    def is_configured(self) -> bool:
        return bool(self._spreadsheet_id)

    @property
    def url(self) -> str:
        return export_url(self._spreadsheet_id, self._gid)

    def fetch(self) -> List[DailyUpdate]:
        if not self.is_configured:
            logger.warning("Spreadsheet id missing; remote records unavailable")
            return []

        try:
            response = self._transport.get_text(self.url)
        except TransportError as exc:
            logger.error("CSV export fetch failed: %s", exc)
            return []

        if not response.ok:
            logger.error("CSV export fetch failed with HTTP %s", response.status)
            return []

        try:
            return parse_csv(response.body)
        except Exception:
            logger.exception("CSV export could not be parsed")
            return []


__all__ = [
    "EXPORT_URL_TEMPLATE",
    "SheetExportReader",
    "export_url",
    "parse_csv",
    "parse_csv_row",
]
