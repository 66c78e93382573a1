"""
HTTP client for the session backend (start / stop / health).
"""
# core/backend.py
from __future__ import annotations
from typing import Dict, Optional
import logging

import requests
from pydantic import ValidationError

from core.config import Settings
from core.models import HealthReport, SessionConfig, StartSessionResponse

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """A start/stop request could not be completed."""


class BackendClient:
    def __init__(self, settings: Settings, http: Optional[requests.Session] = None):
        self.s = settings
        self.http = http or requests.Session()

    def _post(self, route: str, body: Dict) -> Dict:
        url = self.s.api_url(route)
        logger.debug(f"[backend] POST {url}")
        try:
            resp = self.http.post(url, json=body, timeout=self.s.REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise BackendError(str(e) or type(e).__name__) from e
        try:
            data = resp.json()
        except ValueError:
            raise BackendError(f"HTTP {resp.status_code}: invalid response body") from None
        if not isinstance(data, dict):
            raise BackendError(f"HTTP {resp.status_code}: unexpected response body")
        return data

    def start_session(self, config: SessionConfig) -> StartSessionResponse:
        """
        Ask the backend to create a session and dispatch its meeting bot.

        The body is read regardless of HTTP status; the backend reports
        refusals as `{"success": false, "error": ...}`.
        """
        data = self._post("/api/start-session", config.model_dump())
        try:
            return StartSessionResponse.model_validate(data)
        except ValidationError as e:
            raise BackendError("unexpected start-session response") from e

    def stop_session(self, session_id: str) -> Dict:
        return self._post("/api/stop-session", {"session_id": session_id})

    def check_health(self) -> HealthReport:
        url = self.s.health_url()
        try:
            resp = self.http.get(url, timeout=self.s.REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.debug(f"[backend] health unreachable: {e}")
            return HealthReport(status="unreachable", error=str(e) or type(e).__name__)
        if resp.status_code != 200:
            return HealthReport(status="unhealthy", error=f"HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError:
            data = None
        return HealthReport(status="healthy", data=data if isinstance(data, dict) else None)

    def close(self) -> None:
        self.http.close()
