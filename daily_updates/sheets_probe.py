"""Connectivity self-test against the Google Sheets v4 API.

The probe reads the spreadsheet properties with an API key. It never raises:
missing configuration, HTTP errors and transport failures all report
``False`` so the caller can show a simple status.
"""
from __future__ import annotations

import logging
from typing import Optional

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)


def build_service(api_key: str):
    """Construct an API-key authenticated Sheets service."""

    return build("sheets", "v4", developerKey=api_key, cache_discovery=False)


class SheetsProbe:
    """Check that the configured spreadsheet is reachable with the API key."""

    def __init__(self, spreadsheet_id: str, api_key: str, *, service=None) -> None:
        self._spreadsheet_id = (spreadsheet_id or "").strip()
        self._api_key = (api_key or "").strip()
        self._service = service
        self.last_title: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self._spreadsheet_id and self._api_key)

    def _get_service(self):
        if self._service is None:
            self._service = build_service(self._api_key)
        return self._service

    def test_sheet_access(self) -> bool:
        self.last_title = None
        if not self.is_configured:
            logger.warning("Missing spreadsheet id or API key; cannot test sheet access")
            return False

        logger.info("Testing sheet access for %s", self._spreadsheet_id)
        try:
            result = (
                self._get_service()
                .spreadsheets()
                .get(spreadsheetId=self._spreadsheet_id, fields="properties.title")
                .execute()
            )
        except HttpError as exc:
            status = getattr(getattr(exc, "resp", None), "status", "?")
            logger.error("Sheet access failed with HTTP %s: %s", status, exc)
            return False
        except Exception:
            logger.exception("Sheet access test error")
            return False

        properties = result.get("properties", {}) if isinstance(result, dict) else {}
        title = properties.get("title") if isinstance(properties, dict) else None
        self.last_title = str(title) if title is not None else None
        logger.info("Sheet access successful. Sheet: %s", self.last_title)
        return True


__all__ = ["SheetsProbe", "build_service"]
