"""Minimal HTTP transport built on :mod:`urllib.request`.

Reads follow redirects as usual. Writes do not: Google Apps Script web apps
answer a POST with a redirect to a one-off result URL, and the response behind
it is not something the caller can rely on. An unfollowed redirect is returned
as an *opaque* response so the write strategies can treat it as "sent, outcome
unknown" instead of guessing.
"""
from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from daily_updates.errors import TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "DailyUpdates/1.0"
DEFAULT_TIMEOUT = 30.0


@dataclass
class HttpResponse:
    status: int
    body: str = ""
    opaque: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class _NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):  # noqa: D401 - urllib hook
        return None


def _decode(raw: bytes, charset: Optional[str]) -> str:
    return raw.decode(charset or "utf-8", errors="replace")


def _error_body(exc: urllib.error.HTTPError) -> str:
    try:
        raw = exc.read()
    except (AttributeError, OSError):
        return ""
    return _decode(raw or b"", None)


class UrllibTransport:
    """Send GET and JSON POST requests, raising :class:`TransportError` on failure."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout
        self._write_opener = urllib.request.build_opener(_NoRedirectHandler)

    def get_text(self, url: str) -> HttpResponse:
        try:
            request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
            with urllib.request.urlopen(request, timeout=self._timeout) as response:  # nosec: B310 - configured URL
                body = _decode(response.read(), response.headers.get_content_charset())
                return HttpResponse(status=response.status, body=body)
        except urllib.error.HTTPError as exc:
            return HttpResponse(status=exc.code, body=_error_body(exc))
        except (urllib.error.URLError, OSError, ValueError, http.client.HTTPException) as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc

    def post_json(self, url: str, payload: Mapping[str, Any]) -> HttpResponse:
        data = json.dumps(dict(payload), ensure_ascii=False).encode("utf-8")
        try:
            request = urllib.request.Request(
                url,
                data=data,
                method="POST",
                headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
            )
            with self._write_opener.open(request, timeout=self._timeout) as response:
                body = _decode(response.read(), response.headers.get_content_charset())
                return HttpResponse(status=response.status, body=body)
        except urllib.error.HTTPError as exc:
            if 300 <= exc.code < 400:
                logger.debug("POST %s answered with unfollowed redirect %s", url, exc.code)
                return HttpResponse(status=exc.code, opaque=True)
            return HttpResponse(status=exc.code, body=_error_body(exc))
        except (urllib.error.URLError, OSError, ValueError, http.client.HTTPException) as exc:
            raise TransportError(f"POST {url} failed: {exc}") from exc


__all__ = ["DEFAULT_TIMEOUT", "HttpResponse", "UrllibTransport", "USER_AGENT"]
