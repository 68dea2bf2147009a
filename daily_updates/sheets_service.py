"""Business logic for listing and changing daily updates.

:class:`DailyUpdateService` reads the spreadsheet through its CSV export and
merges in records held by the local cache. Writes go through the configured
strategies in order (web app, Google Form, manual entry); whatever the remote
side could not take is kept in the local cache so it keeps showing up in
listings.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from daily_updates.errors import RecordNotFoundError
from daily_updates.http_transport import UrllibTransport
from daily_updates.local_store import JsonFileKeyValueStore, KeyValueStore, LocalRecordCache
from daily_updates.models import (
    FALLBACK_ID_PREFIX,
    LOCAL_ID_PREFIX,
    DailyUpdate,
    normalise_changes,
    unique_millis,
)
from daily_updates.reconcile import next_sequence_number, reconcile
from daily_updates.sheets_probe import SheetsProbe
from daily_updates.sheets_reader import SheetExportReader
from daily_updates.write_strategies import (
    FormSubmissionStrategy,
    InstructionSink,
    ManualEntryStrategy,
    WebAppStrategy,
    WriteResult,
    WriteStrategy,
)
from settings import DailyUpdateSettings

logger = logging.getLogger(__name__)


def _record_from_partial(partial: Mapping[str, Any], *, sn: int, record_id: str) -> DailyUpdate:
    values: Dict[str, Any] = normalise_changes(partial) if isinstance(partial, Mapping) else {}
    values["sn"] = sn
    values["id"] = record_id
    return DailyUpdate.from_dict(values)


def _record_from_changes(record_id: str, changes: Mapping[str, Any]) -> DailyUpdate:
    values = normalise_changes(changes) if isinstance(changes, Mapping) else {}
    values["id"] = record_id
    return DailyUpdate.from_dict(values)


class DailyUpdateService:
    """Coordinate reads, writes and fallbacks for daily update records."""

    def __init__(
        self,
        reader: SheetExportReader,
        cache: LocalRecordCache,
        *,
        web_app: WebAppStrategy,
        manual: ManualEntryStrategy,
        extra_strategies: Sequence[WriteStrategy] = (),
        probe: Optional[SheetsProbe] = None,
    ) -> None:
        self._reader = reader
        self._cache = cache
        self._web_app = web_app
        self._manual = manual
        self._strategies: List[WriteStrategy] = [web_app, *extra_strategies, manual]
        self._probe = probe
        self.last_write_result: Optional[WriteResult] = None

    @classmethod
    def from_settings(
        cls,
        settings: DailyUpdateSettings,
        *,
        store: Optional[KeyValueStore] = None,
        instruction_sink: Optional[InstructionSink] = None,
    ) -> "DailyUpdateService":
        transport = UrllibTransport(timeout=settings.http_timeout_seconds)
        if store is None:
            store = JsonFileKeyValueStore(Path(settings.store_path) if settings.store_path else None)
        return cls(
            SheetExportReader(settings.spreadsheet_id, gid=settings.sheet_gid, transport=transport),
            LocalRecordCache(store),
            web_app=WebAppStrategy(settings.webapp_url, transport),
            manual=ManualEntryStrategy(
                settings.spreadsheet_id,
                sink=instruction_sink,
                open_browser=settings.open_browser,
            ),
            extra_strategies=[FormSubmissionStrategy(settings.form_url)],
            probe=SheetsProbe(settings.spreadsheet_id, settings.api_key),
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------
    def test_sheet_access(self) -> bool:
        if self._probe is None:
            logger.warning("No sheet probe configured")
            return False
        return self._probe.test_sheet_access()

    @property
    def sheet_title(self) -> Optional[str]:
        return self._probe.last_title if self._probe is not None else None

    def list_records(self) -> List[DailyUpdate]:
        """Return remote and cached records merged, ascending by ``sn``."""

        try:
            remote = self._reader.fetch()
            return reconcile(remote, self._cache.load())
        except Exception:
            logger.exception("Error fetching records; using local cache only")
            return reconcile([], self._cache.load())

    def get_record(self, record_id: str) -> DailyUpdate:
        for record in self.list_records():
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    def add_record(self, partial: Mapping[str, Any]) -> DailyUpdate:
        """Create a record; always returns one, even when nothing could be stored."""

        logger.info("Adding new record")
        self.last_write_result = None
        try:
            sn = next_sequence_number(self.list_records())
            record = _record_from_partial(partial, sn=sn, record_id=f"{LOCAL_ID_PREFIX}{unique_millis()}")

            for strategy in self._strategies:
                result = strategy.attempt(record)
                if result.succeeded:
                    logger.info("Record %s saved via %s (%s)", record.id, strategy.name, result.value)
                    self.last_write_result = result
                    return record

            self._cache.prepend(record)
            self.last_write_result = WriteResult.DENIED
            logger.warning("Record %s saved to local cache only", record.id)
            return record
        except Exception:
            logger.exception("Error adding record; returning fallback record")
            stamp = unique_millis()
            self.last_write_result = WriteResult.DENIED
            return _record_from_partial(partial, sn=stamp % 1000, record_id=f"{FALLBACK_ID_PREFIX}{stamp}")

    def update_record(self, record_id: str, changes: Mapping[str, Any]) -> DailyUpdate:
        """Apply ``changes`` to the record ``record_id`` wherever it is held."""

        logger.info("Updating record %s", record_id)
        self.last_write_result = None
        try:
            updated = self.get_record(record_id).merged(changes)

            result = self._web_app.attempt_update(updated)
            self.last_write_result = result
            if result.succeeded:
                logger.info("Record %s updated via web app (%s)", record_id, result.value)
                return updated

            if self._cache.replace(updated):
                logger.info("Record %s updated in local cache", record_id)
                return updated

            self._manual.emit_update(updated)
            return updated
        except RecordNotFoundError:
            logger.warning("Record %s not found; returning the supplied fields", record_id)
            return _record_from_changes(record_id, changes)
        except Exception:
            logger.exception("Error updating record %s", record_id)
            return _record_from_changes(record_id, changes)

    def delete_record(self, record_id: str) -> None:
        """Remove ``record_id``; remote-only records just produce instructions."""

        logger.info("Deleting record %s", record_id)
        self.last_write_result = self._delete_via_web_app(record_id)
        if self.last_write_result.succeeded:
            logger.info("Record %s deleted via web app (%s)", record_id, self.last_write_result.value)
            return

        if self._cache.remove(record_id):
            logger.info("Record %s removed from local cache", record_id)
            return

        self._manual.emit_delete(record_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _delete_via_web_app(self, record_id: str) -> WriteResult:
        if not self._web_app.is_configured():
            logger.info("Web app URL not configured for deletion")
            return WriteResult.DENIED
        try:
            record = self.get_record(record_id)
        except RecordNotFoundError:
            logger.warning("Record not found for deletion: %s", record_id)
            return WriteResult.DENIED
        return self._web_app.attempt_delete(record_id, record.sn)


__all__ = ["DailyUpdateService"]
