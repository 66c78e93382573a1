"""
Owned collaborators of the session engine.
"""
from __future__ import annotations
from dataclasses import dataclass
import logging

from core.backend import BackendClient
from core.config import Settings
from core.connection import ConnectionManager
from core.prefs import PreferenceStore

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    settings: Settings
    backend: BackendClient
    connection: ConnectionManager
    prefs: PreferenceStore

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineContext":
        return cls(
            settings=settings,
            backend=BackendClient(settings),
            connection=ConnectionManager(settings),
            prefs=PreferenceStore(settings.PREFS_PATH),
        )

    def close(self) -> None:
        logger.debug("[context] closing connection and http session")
        self.connection.close()
        self.backend.close()
