# core/connection.py
"""
Persistent Socket.IO connection to the analysis backend.

The manager owns one client for its whole lifetime:
- handlers are registered once, at construction
- every event is forwarded to a single dispatch callable (the session controller)
- on every (re)connect the active session, if any, is joined again
"""

from __future__ import annotations

import logging
import threading
from functools import partial
from typing import Any, Callable, Optional

import socketio
from socketio import exceptions as sio_exceptions

from core.config import Settings
from core.models import ConnectionState

logger = logging.getLogger(__name__)

TRANSPORTS = ["websocket", "polling"]
CLOSE_JOIN_TIMEOUT = 5.0     # seconds close() waits for a pending connect
STREAM_EVENTS = ("log_update", "emotion_detected", "affina_advice", "error")

Dispatch = Callable[[str, Any], None]
SessionLookup = Callable[[], Optional[str]]


class ConnectionManager:
    """Connect, reconnect with fixed backoff, and rejoin the active session."""
    def __init__(self, settings: Settings, client: Optional[socketio.Client] = None):
        self.s = settings
        self.state: ConnectionState = "disconnected"
        self._dispatch: Dispatch = lambda event, data: None
        self._session_lookup: SessionLookup = lambda: None
        self._closing = threading.Event()
        self._connect_thread: Optional[threading.Thread] = None
        self._error_seen = False

        self._sio = client or socketio.Client(
            reconnection=True,
            reconnection_attempts=settings.RECONNECT_ATTEMPTS,
            reconnection_delay=settings.RECONNECT_DELAY,
            reconnection_delay_max=settings.RECONNECT_DELAY,
            randomization_factor=0,
        )
        self._sio.on("connect", self._on_connect)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on("connect_error", self._on_connect_error)
        for event in STREAM_EVENTS:
            self._sio.on(event, partial(self._forward, event))

    def bind(self, dispatch: Dispatch, session_lookup: SessionLookup) -> None:
        self._dispatch = dispatch
        self._session_lookup = session_lookup

    @property
    def connected(self) -> bool:
        return self.state == "connected"

    # ---- lifecycle ----
    def open(self) -> None:
        """Start connecting in the background; returns immediately."""
        if self._connect_thread is not None and self._connect_thread.is_alive():
            return
        self._closing.clear()
        self._connect_thread = threading.Thread(target=self._connect_loop, daemon=True)
        self._connect_thread.start()

    def close(self) -> None:
        self._closing.set()
        self._disconnect()
        thread = self._connect_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=CLOSE_JOIN_TIMEOUT)
            if thread.is_alive():
                logger.warning("[connection] connect thread still running after close")
        self.state = "disconnected"

    def _disconnect(self) -> None:
        try:
            if self._sio.connected:
                self._sio.disconnect()
        except Exception:
            logger.exception("[connection] disconnect failed")

    def _connect_loop(self) -> None:
        attempts = max(1, self.s.RECONNECT_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            if self._closing.is_set():
                return
            self.state = "connecting"
            self._error_seen = False
            logger.debug(f"[connection] connecting to {self.s.BACKEND_URL} attempt={attempt}/{attempts}")
            try:
                self._sio.connect(
                    self.s.BACKEND_URL,
                    transports=TRANSPORTS,
                    socketio_path=self.s.SOCKETIO_PATH,
                    wait_timeout=self.s.CONNECT_TIMEOUT,
                )
                if self._closing.is_set():
                    # close() ran while connect() was still pending
                    self._disconnect()
                    self.state = "disconnected"
                return
            except sio_exceptions.ConnectionError as e:
                logger.warning(f"[connection] attempt {attempt}/{attempts} failed: {e}")
                if not self._error_seen:
                    self._on_connect_error(str(e))
            if self._closing.wait(self.s.RECONNECT_DELAY):
                return
        logger.error(f"[connection] giving up after {attempts} attempts")

    # ---- outbound ----
    def join(self, session_id: str) -> bool:
        """Emit `join_session`; only possible while connected. Joins are idempotent server-side."""
        if not self.connected:
            return False
        logger.debug("[connection] join_session")
        self._sio.emit("join_session", {"session_id": session_id})
        return True

    # ---- inbound ----
    def _on_connect(self, *args) -> None:
        if self._closing.is_set():
            return
        self.state = "connected"
        session_id = self._session_lookup()
        self._dispatch("connect", {"rejoining": bool(session_id)})
        if session_id:
            self.join(session_id)

    def _on_disconnect(self, *args) -> None:
        self.state = "disconnected"
        self._dispatch("disconnect", args[0] if args else None)

    def _on_connect_error(self, *args) -> None:
        self._error_seen = True
        self.state = "error"
        data = args[0] if args else None
        message = data.get("message") if isinstance(data, dict) else data
        self._dispatch("connect_error", {"message": str(message or "unknown error")})

    def _forward(self, event: str, *args) -> None:
        self._dispatch(event, args[0] if args else None)
