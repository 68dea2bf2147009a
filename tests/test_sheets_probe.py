from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import httplib2
from googleapiclient.errors import HttpError

from daily_updates.sheets_probe import SheetsProbe


class _FakeRequest:
    def __init__(self, callback):
        self._callback = callback

    def execute(self):
        return self._callback()


class _FakeSpreadsheets:
    def __init__(self, service: "_FakeService") -> None:
        self._service = service

    def get(self, spreadsheetId: str, fields: str):  # noqa: N803 - API compatibility
        self._service.calls.append({"spreadsheetId": spreadsheetId, "fields": fields})
        return _FakeRequest(self._service._respond)


class _FakeService:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self._result = result
        self._error = error
        self.calls: List[Dict[str, str]] = []

    def spreadsheets(self) -> _FakeSpreadsheets:  # noqa: D401 - API compatibility
        return _FakeSpreadsheets(self)

    def _respond(self):
        if self._error is not None:
            raise self._error
        return self._result


def test_probe_reports_title_on_success() -> None:
    service = _FakeService(result={"properties": {"title": "Daily Updates"}})
    probe = SheetsProbe("sheet-1", "key-1", service=service)

    assert probe.test_sheet_access() is True
    assert probe.last_title == "Daily Updates"
    assert service.calls == [{"spreadsheetId": "sheet-1", "fields": "properties.title"}]


def test_probe_returns_false_on_http_error() -> None:
    error = HttpError(httplib2.Response({"status": "403"}), b'{"error": {"message": "forbidden"}}')
    probe = SheetsProbe("sheet-1", "key-1", service=_FakeService(error=error))

    assert probe.test_sheet_access() is False
    assert probe.last_title is None


def test_probe_returns_false_on_transport_error() -> None:
    probe = SheetsProbe("sheet-1", "key-1", service=_FakeService(error=OSError("offline")))

    assert probe.test_sheet_access() is False


def test_probe_skips_network_without_configuration() -> None:
    service = _FakeService(result={})

    assert SheetsProbe("", "key", service=service).test_sheet_access() is False
    assert SheetsProbe("sheet-1", "", service=service).test_sheet_access() is False
    assert service.calls == []
