"""
Display-name persistence between runs.
"""
from __future__ import annotations
import json
import logging
import os

logger = logging.getLogger(__name__)


class PreferenceStore:
    """Small JSON file holding the user's display name."""
    def __init__(self, path: str):
        self.path = path

    def load_user_name(self) -> str:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return ""
        except (OSError, ValueError):
            logger.warning(f"[prefs] unreadable preferences file: {self.path}")
            return ""
        name = data.get("user_name") if isinstance(data, dict) else None
        return name if isinstance(name, str) else ""

    def save_user_name(self, name: str) -> None:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump({"user_name": name}, f, ensure_ascii=False)
        except OSError:
            logger.exception(f"[prefs] failed to save preferences: {self.path}")
