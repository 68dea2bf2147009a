"""Application configuration helpers for Daily Updates."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Dict, Mapping, Optional

from daily_updates import app_paths
from daily_updates.errors import SettingsError
from daily_updates.http_transport import DEFAULT_TIMEOUT


logger = logging.getLogger(__name__)


SETTINGS_PATH = str(app_paths.APP_DIR / "settings.json")
DEFAULT_SHEET_GID = "0"

ENV_VARS: Dict[str, str] = {
    "spreadsheet_id": "DAILY_UPDATES_SHEETS_ID",
    "api_key": "DAILY_UPDATES_API_KEY",
    "webapp_url": "DAILY_UPDATES_WEBAPP_URL",
    "form_url": "DAILY_UPDATES_FORM_URL",
    "sheet_gid": "DAILY_UPDATES_SHEET_GID",
    "store_path": "DAILY_UPDATES_STORE_PATH",
    "open_browser": "DAILY_UPDATES_OPEN_BROWSER",
    "http_timeout_seconds": "DAILY_UPDATES_HTTP_TIMEOUT",
}

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}


@dataclass
class DailyUpdateSettings:
    """Connection options; every field may be left empty."""

    spreadsheet_id: str = ""
    api_key: str = ""
    webapp_url: str = ""
    form_url: str = ""
    sheet_gid: str = DEFAULT_SHEET_GID
    store_path: str = ""
    open_browser: bool = True
    http_timeout_seconds: float = DEFAULT_TIMEOUT

    def to_json(self) -> Dict[str, object]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


def _coerce_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def _coerce_timeout(value: object, default: float) -> float:
    try:
        timeout = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if timeout <= 0:
        return default
    return timeout


def _apply(settings: DailyUpdateSettings, key: str, value: object) -> None:
    if key == "open_browser":
        settings.open_browser = _coerce_bool(value, settings.open_browser)
    elif key == "http_timeout_seconds":
        settings.http_timeout_seconds = _coerce_timeout(value, settings.http_timeout_seconds)
    elif key in ENV_VARS and isinstance(value, (str, int)):
        setattr(settings, key, str(value).strip())


def _read_settings_file(path: str) -> Dict[str, object]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected a JSON object", path)
        return {}
    return data


def load_settings(
    path: str = SETTINGS_PATH,
    environ: Optional[Mapping[str, str]] = None,
) -> DailyUpdateSettings:
    """Load settings from ``path`` and overlay non-empty environment variables."""

    environ = os.environ if environ is None else environ
    settings = DailyUpdateSettings()
    for key, value in _read_settings_file(path).items():
        _apply(settings, key, value)
    for key, env_var in ENV_VARS.items():
        value = environ.get(env_var)
        if value:
            _apply(settings, key, value)
    if not settings.sheet_gid:
        settings.sheet_gid = DEFAULT_SHEET_GID
    return settings


def save_settings(settings: DailyUpdateSettings, path: str = SETTINGS_PATH) -> None:
    directory = os.path.dirname(path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(settings.to_json(), handle, indent=2)
    except OSError as exc:
        raise SettingsError(f"Unable to write settings to {path}: {exc}") from exc


__all__ = [
    "DEFAULT_SHEET_GID",
    "DailyUpdateSettings",
    "ENV_VARS",
    "SETTINGS_PATH",
    "load_settings",
    "save_settings",
]
