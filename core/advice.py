"""
Extract a coaching string from heterogeneous `affina_advice` payloads.
"""
from __future__ import annotations
from collections.abc import Mapping
import json
import logging

logger = logging.getLogger(__name__)

FALLBACK_ADVICE = "Coach is analyzing…"


def _field(payload, name: str):
    if isinstance(payload, Mapping):
        return payload.get(name)
    return getattr(payload, name, None)


def normalize_advice(payload) -> str:
    """
    Resolve advice text: plain string, then `advice`, then `recommendation`,
    then the JSON form of the whole payload. Never raises.
    """
    try:
        if isinstance(payload, str):
            return payload
        if payload is None:
            return FALLBACK_ADVICE
        for name in ("advice", "recommendation"):
            value = _field(payload, name)
            if value:
                return value if isinstance(value, str) else normalize_advice(value)
        return json.dumps(payload, ensure_ascii=False)
    except Exception:
        logger.debug(f"[advice] could not normalize payload of type {type(payload).__name__}")
        return FALLBACK_ADVICE
