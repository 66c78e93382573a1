"""
Configuration for the live-session engine.
"""
from pydantic import BaseModel
import os

class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    BACKEND_URL: str = os.getenv("BACKEND_URL", "https://emo-insight-backend.onrender.com")
    HEALTH_URL: str | None = os.getenv("HEALTH_URL") or None
    SOCKETIO_PATH: str = os.getenv("SOCKETIO_PATH", "/socket.io")

    RECONNECT_ATTEMPTS: int = int(os.getenv("RECONNECT_ATTEMPTS", "10"))
    RECONNECT_DELAY: float = float(os.getenv("RECONNECT_DELAY", "1"))
    CONNECT_TIMEOUT: float = float(os.getenv("CONNECT_TIMEOUT", "20"))
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "15"))

    LOG_BUFFER_SIZE: int = int(os.getenv("LOG_BUFFER_SIZE", "10"))
    CLOSENESS_THRESHOLD: float = float(os.getenv("CLOSENESS_THRESHOLD", "0.07"))
    MAX_BREAKDOWN: int = int(os.getenv("MAX_BREAKDOWN", "3"))

    PREFS_PATH: str = os.path.expanduser(
        os.getenv("PREFS_PATH", os.path.join("~", ".emo_insight", "prefs.json"))
    )
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def api_url(self, route: str) -> str:
        return self.BACKEND_URL.rstrip("/") + route

    def health_url(self) -> str:
        return self.HEALTH_URL or self.api_url("/api/health")
