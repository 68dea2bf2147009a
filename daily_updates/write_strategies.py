"""Remote write strategies tried in order by the dispatcher.

Each strategy reports a :class:`WriteResult`. ``UNKNOWN`` means the request
left this process but its outcome cannot be read back (an opaque response);
the dispatcher counts it as success once and exposes it to the caller.
"""
from __future__ import annotations

import enum
import logging
import webbrowser
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from daily_updates.errors import TransportError
from daily_updates.http_transport import HttpResponse, UrllibTransport
from daily_updates.models import DailyUpdate

logger = logging.getLogger(__name__)

SHEET_EDIT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/edit"


class WriteResult(enum.Enum):
    CONFIRMED = "confirmed"
    DENIED = "denied"
    UNKNOWN = "unknown"

    @property
    def succeeded(self) -> bool:
        return self is not WriteResult.DENIED


class JsonTransport(Protocol):
    def post_json(self, url: str, payload: Dict[str, Any]) -> HttpResponse:
        ...


def sheet_edit_url(spreadsheet_id: str) -> str:
    return SHEET_EDIT_URL_TEMPLATE.format(spreadsheet_id=spreadsheet_id)


def add_payload(record: DailyUpdate) -> Dict[str, Any]:
    return {
        "sn": record.sn,
        "date": record.date,
        "accountName": record.account_name,
        "projectName": record.project_name,
        "remarks": record.remarks,
    }


def update_payload(record: DailyUpdate) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"action": "update", "id": record.id}
    payload.update(add_payload(record))
    return payload


def delete_payload(record_id: str, sn: int) -> Dict[str, Any]:
    return {"action": "delete", "id": record_id, "sn": sn}


def classify_response(response: HttpResponse) -> WriteResult:
    if response.opaque or response.status == 0:
        return WriteResult.UNKNOWN
    if response.ok:
        return WriteResult.CONFIRMED
    return WriteResult.DENIED


class WriteStrategy:
    """Base class for one way of getting a record onto the spreadsheet."""

    name = "strategy"

    def is_configured(self) -> bool:
        return True

    def attempt(self, record: DailyUpdate) -> WriteResult:
        raise NotImplementedError


class WebAppStrategy(WriteStrategy):
    """POST records to a deployed Apps Script web app."""

    name = "web-app"

    def __init__(self, url: str, transport: Optional[JsonTransport] = None) -> None:
        self._url = (url or "").strip()
        self._transport = transport or UrllibTransport()

    def is_configured(self) -> bool:
        return bool(self._url)

    def attempt(self, record: DailyUpdate) -> WriteResult:
        return self._send("add", add_payload(record))

    def attempt_update(self, record: DailyUpdate) -> WriteResult:
        return self._send("update", update_payload(record))

    def attempt_delete(self, record_id: str, sn: int) -> WriteResult:
        return self._send("delete", delete_payload(record_id, sn))

    def _send(self, action: str, payload: Dict[str, Any]) -> WriteResult:
        if not self.is_configured():
            logger.info("Web app URL not configured; skipping %s", action)
            return WriteResult.DENIED

        logger.debug("Web app %s payload: %s", action, payload)
        try:
            response = self._transport.post_json(self._url, payload)
        except TransportError as exc:
            logger.error("Web app %s failed: %s", action, exc)
            return WriteResult.DENIED
        except Exception:
            logger.exception("Web app %s failed unexpectedly", action)
            return WriteResult.DENIED

        result = classify_response(response)
        if result is WriteResult.UNKNOWN:
            logger.info("Web app %s sent; response is opaque (HTTP %s)", action, response.status)
        elif result is WriteResult.CONFIRMED:
            logger.info("Web app %s confirmed: %s", action, response.body[:200])
        else:
            logger.error("Web app %s rejected with HTTP %s: %s", action, response.status, response.body[:200])
        return result


class FormSubmissionStrategy(WriteStrategy):
    """Placeholder for posting through a Google Form.

    Submitting a form needs the form's per-question entry ids, which are not
    part of the configuration yet, so every attempt is declined.
    """

    name = "form"

    def __init__(self, form_url: str) -> None:
        self._form_url = (form_url or "").strip()

    def is_configured(self) -> bool:
        return bool(self._form_url)

    def attempt(self, record: DailyUpdate) -> WriteResult:
        if not self.is_configured():
            logger.info("Google Form URL not configured")
        else:
            logger.info("Google Form submission requires manual setup of field ids")
        return WriteResult.DENIED


@dataclass
class ManualInstructions:
    """Operator-facing steps for changing the sheet by hand."""

    title: str
    sheet_url: str
    lines: List[str] = field(default_factory=list)

    def render(self) -> str:
        steps = [self.title, f"1. Open the Google Sheet: {self.sheet_url}"]
        steps.extend(self.lines)
        return "\n".join(steps)


InstructionSink = Callable[[ManualInstructions], None]


def log_instructions(instructions: ManualInstructions) -> None:
    logger.warning("%s", instructions.render())


def entry_instructions(record: DailyUpdate, sheet_url: str) -> ManualInstructions:
    return ManualInstructions(
        title="MANUAL ENTRY INSTRUCTIONS",
        sheet_url=sheet_url,
        lines=[
            "2. Add a new row with this data:",
            f"   SN: {record.sn}",
            f"   Date: {record.date}",
            f"   Account Name: {record.account_name}",
            f"   Project Name: {record.project_name}",
            f"   Remarks: {record.remarks}",
        ],
    )


def update_instructions(record: DailyUpdate, sheet_url: str) -> ManualInstructions:
    return ManualInstructions(
        title="MANUAL UPDATE INSTRUCTIONS",
        sheet_url=sheet_url,
        lines=[
            f"2. Find the row with SN: {record.sn}",
            "3. Update the row with this data:",
            f"   Date: {record.date}",
            f"   Account Name: {record.account_name}",
            f"   Project Name: {record.project_name}",
            f"   Remarks: {record.remarks}",
        ],
    )


def delete_instructions(record_id: str, sheet_url: str) -> ManualInstructions:
    return ManualInstructions(
        title="MANUAL DELETION INSTRUCTIONS",
        sheet_url=sheet_url,
        lines=[f"2. Find and delete the row with ID: {record_id}"],
    )


class ManualEntryStrategy(WriteStrategy):
    """Hand the change to a human: emit instructions and open the sheet.

    The sheet is not modified, so the result is always ``DENIED``.
    """

    name = "manual"

    def __init__(
        self,
        spreadsheet_id: str,
        *,
        sink: Optional[InstructionSink] = None,
        open_browser: bool = True,
        opener: Callable[[str], Any] = webbrowser.open,
    ) -> None:
        self._spreadsheet_id = (spreadsheet_id or "").strip()
        self._sink = sink or log_instructions
        self._open_browser = open_browser
        self._opener = opener

    def is_configured(self) -> bool:
        return bool(self._spreadsheet_id)

    @property
    def sheet_url(self) -> str:
        return sheet_edit_url(self._spreadsheet_id)

    def attempt(self, record: DailyUpdate) -> WriteResult:
        self.emit(entry_instructions(record, self.sheet_url))
        return WriteResult.DENIED

    def emit_update(self, record: DailyUpdate) -> None:
        self.emit(update_instructions(record, self.sheet_url))

    def emit_delete(self, record_id: str) -> None:
        self.emit(delete_instructions(record_id, self.sheet_url))

    def emit(self, instructions: ManualInstructions) -> None:
        if not self.is_configured():
            return
        try:
            self._sink(instructions)
        except Exception:
            logger.exception("Manual instruction sink failed")
        if not self._open_browser:
            return
        try:
            opened = self._opener(self.sheet_url)
        except Exception as exc:
            logger.info("Could not open the sheet automatically: %s", exc)
            return
        if opened is False:
            logger.info("Could not open the sheet automatically (no browser available)")
        else:
            logger.debug("Opened %s for manual editing", self.sheet_url)


__all__ = [
    "FormSubmissionStrategy",
    "InstructionSink",
    "ManualEntryStrategy",
    "ManualInstructions",
    "WebAppStrategy",
    "WriteResult",
    "WriteStrategy",
    "add_payload",
    "classify_response",
    "delete_payload",
    "log_instructions",
    "sheet_edit_url",
    "update_payload",
]
