# core/session.py
"""
Session lifecycle controller.

Owns the only mutable display state of the engine (session id, status text,
rolling log buffer, current signal, advice) and serializes every change
behind one lock. Inbound stream events arrive through `dispatch`; user
actions arrive through `start` / `stop` / `close_app`.

States: idle -> starting -> active -> stopping -> idle, and starting -> idle
when the backend refuses or cannot be reached.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional, Tuple

from core.advice import normalize_advice
from core.backend import BackendError
from core.context import EngineContext
from core.emotion import DEFAULT_EMOTIONS, describe, reduce_detection
from core.models import (
    DisplaySignal,
    EngineStatus,
    HealthReport,
    LogEntry,
    SessionConfig,
    SessionState,
    StartSessionResponse,
)
from core.sanitizer import derive_status, sanitize

logger = logging.getLogger(__name__)

# Only meaningful while a session is active; anything else is a stale delivery
SESSION_EVENTS = frozenset({"log_update", "emotion_detected", "affina_advice"})


class SessionError(ValueError):
    """The requested lifecycle action is not allowed in the current state."""


def _as_text(data: Any) -> str:
    try:
        return json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


class SessionController:
    def __init__(self, ctx: EngineContext):
        self.ctx = ctx
        self.s = ctx.settings
        self._lock = threading.RLock()
        self._generation = 0
        self._stop_done = threading.Event()
        self._stop_done.set()

        self.state: SessionState = "idle"
        self.session_id: Optional[str] = None
        self.display_name = ctx.prefs.load_user_name()
        self.returning_user = bool(self.display_name)
        self.status = "Welcome!"
        self.selected_emotions: Tuple[str, ...] = tuple(DEFAULT_EMOTIONS)
        self.logs: Deque[LogEntry] = deque(maxlen=self.s.LOG_BUFFER_SIZE)
        self.signal: Optional[DisplaySignal] = None
        self.advice = ""

        self._handlers: Dict[str, Callable[[Any], None]] = {
            "connect": self._on_connect,
            "disconnect": self._on_disconnect,
            "connect_error": self._on_connect_error,
            "log_update": self._on_log_update,
            "emotion_detected": self._on_emotion_detected,
            "affina_advice": self._on_advice,
            "error": self._on_error,
        }

    # ---- engine lifecycle ----
    def startup(self) -> None:
        self.ctx.connection.bind(self.dispatch, self.active_session_id)
        self.ctx.connection.open()

    def shutdown(self) -> None:
        self.ctx.close()

    def close_app(self) -> None:
        """Host `close-app` signal: end any session before the process exits."""
        with self._lock:
            pending = self.session_id is not None or self.state == "starting"
        if pending:
            self.stop()
        # a stop started elsewhere may still be waiting on the backend
        if not self._stop_done.wait(self.s.REQUEST_TIMEOUT):
            logger.warning("[session] shutting down with a stop request still in flight")
        self.shutdown()

    def active_session_id(self) -> Optional[str]:
        with self._lock:
            return self.session_id if self.state == "active" else None

    # ---- log buffer ----
    def add_log(self, message: Any) -> Optional[LogEntry]:
        """Sanitize and append one entry; empty results are dropped without side effects."""
        text = sanitize(message)
        if not text:
            return None
        with self._lock:
            entry = LogEntry(text=text)
            self.logs.append(entry)
            status = derive_status(text)
            if status:
                self.status = status
        logger.debug(f"[session] log: {text}")
        return entry

    # ---- session lifecycle ----
    def start(self, config: SessionConfig) -> bool:
        """
        Create a backend session for `config`.

        Raises:
            SessionError: missing meeting URL / objective / emotions, or not idle.

        Returns:
            bool: True when the session is active, False when the backend
            refused, was unreachable, or the session was stopped meanwhile.
        """
        missing = [
            name for name, value in (
                ("meeting_url", config.meeting_url),
                ("meeting_objective", config.meeting_objective),
            ) if not value.strip()
        ]
        if not config.selected_emotions:
            missing.append("selected_emotions")
        if missing:
            raise SessionError(f"missing {', '.join(missing)}")

        with self._lock:
            if self.state != "idle":
                raise SessionError(f"cannot start a session while {self.state}")
            name = config.user_name.strip() or self.display_name
            if name:
                self.display_name = name
                self.ctx.prefs.save_user_name(name)
            # frozen for the lifetime of the session
            self.selected_emotions = tuple(dict.fromkeys(config.selected_emotions))
            config = config.model_copy(update={
                "user_name": name,
                "selected_emotions": list(self.selected_emotions),
            })
            self.state = "starting"
            self.status = "Initializing..."
            self._generation += 1
            token = self._generation
            self.add_log("Creating session...")

        resp: Optional[StartSessionResponse] = None
        reason: Optional[str] = None
        try:
            resp = self.ctx.backend.start_session(config)
        except BackendError as e:
            reason = str(e) or "Backend unreachable"
        else:
            if not resp.success:
                reason = resp.error or "Failed to start session"
            elif not resp.session_id:
                reason = "Backend returned no session id"

        orphan: Optional[str] = None
        with self._lock:
            if token != self._generation:
                logger.info("[session] discarding start-session response for a stopped session")
                orphan = resp.session_id if (reason is None and resp is not None) else None
            elif reason is not None:
                logger.warning(f"[session] start failed: {sanitize(reason)}")
                self.state = "idle"
                self.session_id = None
                self.status = f"Failed: {sanitize(reason)}"
                self.add_log(f"ERROR: {reason}")
                return False
            else:
                self.session_id = resp.session_id
                self.state = "active"
                self.status = "Analysis Active..."
                self.add_log("Session created")
                self.add_log("Bot joining meeting")
                self.add_log("Please admit the bot")
                if self.ctx.connection.join(self.session_id):
                    self.add_log("Joining session...")
                else:
                    self.add_log("Waiting for connection...")
                return True

        if orphan:
            self._stop_orphan(orphan)
        return False

    def stop(self) -> None:
        """End the session. Local state is always reset, whatever the backend says."""
        with self._lock:
            if self.state == "stopping":
                return
            session_id = self.session_id
            self._generation += 1
            if not session_id:
                self._reset()
                return
            self.state = "stopping"
            self._stop_done.clear()
            self.status = "Stopping..."
            self.add_log("Stopping session...")

        try:
            data = self.ctx.backend.stop_session(session_id)
            message = data.get("message") or "Session stopped"
        except BackendError as e:
            logger.warning(f"[session] stop-session failed: {sanitize(str(e))}")
            message = f"Stop error: {e}"

        with self._lock:
            self.add_log(message)
            self._reset()
            self._stop_done.set()

    def _reset(self) -> None:
        self.state = "idle"
        self.session_id = None
        self.signal = None
        self.advice = ""
        self.status = "Session ended"

    def _stop_orphan(self, session_id: str) -> None:
        try:
            self.ctx.backend.stop_session(session_id)
        except BackendError as e:
            logger.warning(f"[session] could not stop orphaned session: {sanitize(str(e))}")

    def check_health(self) -> HealthReport:
        report = self.ctx.backend.check_health()
        logger.debug(f"[session] backend health={report.status}")
        return report

    # ---- inbound events ----
    def dispatch(self, event: str, data: Any = None) -> None:
        """Single entry point for connection and stream events."""
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug(f"[session] unhandled event {event}")
            return
        with self._lock:
            if event in SESSION_EVENTS and self.state != "active":
                logger.debug(f"[session] ignoring {event} while {self.state}")
                return
            try:
                handler(data)
            except Exception:
                logger.exception(f"[session] handler for {event} failed")

    def _on_connect(self, data: Any) -> None:
        self.status = "Analysis active" if self.state == "active" else "Connected"
        self.add_log("Connected to backend")
        if isinstance(data, dict) and data.get("rejoining"):
            self.add_log("Reconnected - rejoining session...")

    def _on_disconnect(self, data: Any) -> None:
        self.status = "Disconnected"
        self.add_log("Disconnected from backend")

    def _on_connect_error(self, data: Any) -> None:
        message = data.get("message") if isinstance(data, dict) else data
        self.status = "Connection error"
        self.add_log(f"Connection error: {message or 'unknown error'}")

    def _on_log_update(self, data: Any) -> None:
        logs = data.get("logs") if isinstance(data, dict) else None
        if not isinstance(logs, list):
            return
        for line in logs:
            self.add_log(line)

    def _on_emotion_detected(self, data: Any) -> None:
        signal = reduce_detection(data, self.s.CLOSENESS_THRESHOLD, self.s.MAX_BREAKDOWN)
        if signal is None:
            return
        self.signal = signal
        self.add_log(describe(signal))

    def _on_advice(self, data: Any) -> None:
        self.advice = normalize_advice(data)

    def _on_error(self, data: Any) -> None:
        message = data.get("message") if isinstance(data, dict) else None
        self.add_log(f"Error: {message or _as_text(data)}")

    # ---- view ----
    def snapshot(self) -> EngineStatus:
        with self._lock:
            return EngineStatus(
                state=self.state,
                connection=self.ctx.connection.state,
                status=self.status,
                display_name=self.display_name,
                returning_user=self.returning_user,
                has_session=self.session_id is not None,
                selected_emotions=list(self.selected_emotions),
                logs=[e.render() for e in self.logs],
                signal=self.signal,
                advice=self.advice,
            )
