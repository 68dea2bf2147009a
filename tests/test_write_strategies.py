from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from daily_updates.errors import TransportError
from daily_updates.http_transport import HttpResponse, UrllibTransport
from daily_updates.models import DailyUpdate
from daily_updates.write_strategies import (
    FormSubmissionStrategy,
    ManualEntryStrategy,
    ManualInstructions,
    WebAppStrategy,
    WriteResult,
)

WEBAPP_URL = "https://script.google.com/macros/s/example/exec"


class _FakeTransport:
    def __init__(self, response: HttpResponse | None = None, error: Exception | None = None) -> None:
        self._response = response or HttpResponse(status=200, body='{"ok": true}')
        self._error = error
        self.posts: List[tuple[str, Dict[str, Any]]] = []

    def post_json(self, url: str, payload: Dict[str, Any]) -> HttpResponse:
        self.posts.append((url, dict(payload)))
        if self._error is not None:
            raise self._error
        return self._response


def _record() -> DailyUpdate:
    return DailyUpdate(
        sn=4,
        date="2024-03-01T08:00:00.000Z",
        account_name="Acme",
        project_name="Alpha",
        remarks="Kick-off",
        id="local_1700000000000",
    )


@pytest.mark.parametrize(
    "response, expected",
    [
        (HttpResponse(status=200, body="ok"), WriteResult.CONFIRMED),
        (HttpResponse(status=302, opaque=True), WriteResult.UNKNOWN),
        (HttpResponse(status=0), WriteResult.UNKNOWN),
        (HttpResponse(status=500, body="boom"), WriteResult.DENIED),
        (HttpResponse(status=403, body="denied"), WriteResult.DENIED),
    ],
)
def test_web_app_maps_responses_to_results(response, expected):
    strategy = WebAppStrategy(WEBAPP_URL, _FakeTransport(response))

    assert strategy.attempt(_record()) is expected


def test_web_app_add_payload_has_no_action_or_id() -> None:
    transport = _FakeTransport()

    WebAppStrategy(WEBAPP_URL, transport).attempt(_record())

    url, payload = transport.posts[0]
    assert url == WEBAPP_URL
    assert payload == {
        "sn": 4,
        "date": "2024-03-01T08:00:00.000Z",
        "accountName": "Acme",
        "projectName": "Alpha",
        "remarks": "Kick-off",
    }


def test_web_app_update_and_delete_payloads() -> None:
    transport = _FakeTransport()
    strategy = WebAppStrategy(WEBAPP_URL, transport)

    strategy.attempt_update(_record())
    strategy.attempt_delete("csv_row_3", 2)

    update = transport.posts[0][1]
    assert update["action"] == "update"
    assert update["id"] == "local_1700000000000"
    assert update["remarks"] == "Kick-off"
    assert transport.posts[1][1] == {"action": "delete", "id": "csv_row_3", "sn": 2}


def test_web_app_denies_without_url_or_on_transport_error() -> None:
    transport = _FakeTransport()
    assert WebAppStrategy("", transport).attempt(_record()) is WriteResult.DENIED
    assert transport.posts == []

    failing = WebAppStrategy(WEBAPP_URL, _FakeTransport(error=TransportError("offline")))
    assert failing.attempt(_record()) is WriteResult.DENIED


def test_web_app_denies_when_transport_raises_unexpectedly() -> None:
    strategy = WebAppStrategy(WEBAPP_URL, _FakeTransport(error=RuntimeError("bug")))

    assert strategy.attempt(_record()) is WriteResult.DENIED
    assert strategy.attempt_update(_record()) is WriteResult.DENIED
    assert strategy.attempt_delete("local_1", 1) is WriteResult.DENIED


def test_urllib_transport_wraps_malformed_url_in_transport_error() -> None:
    transport = UrllibTransport()

    with pytest.raises(TransportError):
        transport.post_json("script.google.com/macros/s/x/exec", {"action": "delete"})
    with pytest.raises(TransportError):
        transport.get_text("docs.google.com/spreadsheets/d/x/export")

    assert WebAppStrategy("script.google.com/macros/s/x/exec", transport).attempt(_record()) is WriteResult.DENIED


def test_form_submission_is_never_successful() -> None:
    assert FormSubmissionStrategy("").attempt(_record()) is WriteResult.DENIED
    assert FormSubmissionStrategy("https://docs.google.com/forms/d/x/formResponse").attempt(_record()) is WriteResult.DENIED


def test_manual_entry_emits_instructions_and_opens_sheet() -> None:
    emitted: List[ManualInstructions] = []
    opened: List[str] = []
    strategy = ManualEntryStrategy("sheet-1", sink=emitted.append, opener=opened.append)

    result = strategy.attempt(_record())

    assert result is WriteResult.DENIED
    assert opened == ["https://docs.google.com/spreadsheets/d/sheet-1/edit"]
    text = emitted[0].render()
    assert emitted[0].title == "MANUAL ENTRY INSTRUCTIONS"
    assert "https://docs.google.com/spreadsheets/d/sheet-1/edit" in text
    assert "SN: 4" in text
    assert "Remarks: Kick-off" in text


def test_manual_entry_survives_browser_failure_and_respects_open_browser() -> None:
    emitted: List[ManualInstructions] = []

    def _blocked(url: str) -> bool:
        raise RuntimeError("popup blocked")

    ManualEntryStrategy("sheet-1", sink=emitted.append, opener=_blocked).emit_delete("csv_row_2")
    assert "ID: csv_row_2" in emitted[0].render()

    opened: List[str] = []
    ManualEntryStrategy("sheet-1", sink=emitted.append, open_browser=False, opener=opened.append).emit_update(_record())
    assert opened == []
    assert emitted[1].title == "MANUAL UPDATE INSTRUCTIONS"


def test_manual_entry_is_silent_without_spreadsheet_id() -> None:
    emitted: List[ManualInstructions] = []
    opened: List[str] = []

    result = ManualEntryStrategy("", sink=emitted.append, opener=opened.append).attempt(_record())

    assert result is WriteResult.DENIED
    assert emitted == []
    assert opened == []
