"""
Reduce multi-modal emotion detections into a single display signal.
"""
# core/emotion.py
from __future__ import annotations
from typing import List, Optional, Tuple, Union
import logging

from pydantic import ValidationError

from core.models import DetectionEvent, DisplaySignal, EmotionScore, ModalityResult

logger = logging.getLogger(__name__)

CLOSENESS_THRESHOLD = 0.07   # max score gap for two candidates to count as tied
MAX_BREAKDOWN = 3            # cap on the near-tied candidates shown
SCORE_EPS = 1e-9             # absorbs float error at the threshold boundary

AVAILABLE_EMOTIONS = [
    "Confusion", "Boredom", "Concentration", "Doubt", "Authenticity",
    "Joy", "Excitement", "Sadness", "Anger", "Fear", "Surprise",
    "Disgust", "Contempt", "Pride", "Shame", "Guilt", "Embarrassment",
    "Gratitude", "Love", "Interest", "Amusement", "Awe", "Admiration",
    "Relief", "Satisfaction", "Triumph", "Anxiety", "Distress",
]
DEFAULT_EMOTIONS = ["Confusion", "Boredom", "Concentration", "Doubt", "Authenticity"]

DEFAULT_COLOR = "bg-gray-400/40 border-gray-400/60"
EMOTION_COLORS = {
    "joy": "bg-yellow-400/40 border-yellow-400/60",
    "excitement": "bg-orange-400/40 border-orange-400/60",
    "amusement": "bg-amber-400/40 border-amber-400/60",
    "satisfaction": "bg-lime-400/40 border-lime-400/60",
    "concentration": "bg-blue-500/40 border-blue-500/60",
    "interest": "bg-blue-400/40 border-blue-400/60",
    "confusion": "bg-amber-500/40 border-amber-500/60",
    "doubt": "bg-gray-600/40 border-gray-600/60",
    "boredom": "bg-gray-400/40 border-gray-400/60",
    "sadness": "bg-blue-600/40 border-blue-600/60",
    "anger": "bg-red-500/40 border-red-500/60",
    "fear": "bg-purple-600/40 border-purple-600/60",
    "authenticity": "bg-green-500/40 border-green-500/60",
    "love": "bg-pink-400/40 border-pink-400/60",
    "surprise": "bg-cyan-400/40 border-cyan-400/60",
    "disgust": "bg-green-600/40 border-green-600/60",
    "contempt": "bg-red-600/40 border-red-600/60",
    "pride": "bg-indigo-400/40 border-indigo-400/60",
    "shame": "bg-stone-500/40 border-stone-500/60",
    "guilt": "bg-gray-500/40 border-gray-500/60",
    "embarrassment": "bg-red-300/40 border-red-300/60",
    "gratitude": "bg-rose-300/40 border-rose-300/60",
    "awe": "bg-purple-400/40 border-purple-400/60",
    "admiration": "bg-violet-400/40 border-violet-400/60",
    "relief": "bg-teal-300/40 border-teal-300/60",
    "triumph": "bg-yellow-400/40 border-yellow-400/60",
    "anxiety": "bg-violet-600/40 border-violet-600/60",
    "distress": "bg-red-700/40 border-red-700/60",
}


def color_for(label: str) -> str:
    return EMOTION_COLORS.get((label or "").lower(), DEFAULT_COLOR)


def _ranked(raw) -> List[EmotionScore]:
    """One modality's ranked list; a malformed list counts as absent."""
    if raw is None:
        return []
    if isinstance(raw, ModalityResult):
        return raw.top_emotions
    try:
        return ModalityResult.model_validate(raw).top_emotions
    except ValidationError:
        logger.warning("[emotion] malformed modality result; skipped")
        return []


def _parse(event) -> Tuple[DetectionEvent, List[EmotionScore], List[EmotionScore]]:
    # Modalities are validated one at a time so a bad voice list cannot hide a good facial one
    if isinstance(event, DetectionEvent):
        return event, _ranked(event.video), _ranked(event.audio)
    meta = {k: event.get(k) for k in ("speaker", "is_sales_rep", "blended_label")}
    try:
        parsed = DetectionEvent.model_validate(meta)
    except ValidationError:
        logger.warning("[emotion] malformed detection metadata; using defaults")
        parsed = DetectionEvent()
    return parsed, _ranked(event.get("video")), _ranked(event.get("audio"))


def _pick_modality(
    facial: List[EmotionScore], voice: List[EmotionScore]
) -> Tuple[Optional[str], List[EmotionScore]]:
    # Facial always wins when present, regardless of scores
    if facial:
        return "facial", facial
    if voice:
        return "voice", voice
    return None, []


def close_candidates(
    ranked: List[EmotionScore],
    threshold: float = CLOSENESS_THRESHOLD,
    limit: int = MAX_BREAKDOWN,
) -> List[EmotionScore]:
    """Entries within `threshold` of the top score, in rank order, capped to `limit`."""
    if not ranked:
        return []
    top = ranked[0]
    close = [e for e in ranked if top.score - e.score <= threshold + SCORE_EPS]
    return close[:max(1, limit)]


def reduce_detection(
    event: Union[DetectionEvent, dict],
    threshold: float = CLOSENESS_THRESHOLD,
    max_breakdown: int = MAX_BREAKDOWN,
) -> Optional[DisplaySignal]:
    """
    Turn one `emotion_detected` payload into a DisplaySignal.

    Returns None when no modality carries a valid non-empty list or the
    payload is not an object; callers keep the previous signal in that case.
    """
    if not isinstance(event, (DetectionEvent, dict)):
        logger.warning("[emotion] malformed detection payload; ignored")
        return None

    event, facial, voice = _parse(event)
    modality, ranked = _pick_modality(facial, voice)
    if modality is None:
        return None

    top = ranked[0]
    breakdown = close_candidates(ranked, threshold, max_breakdown)
    if event.blended_label:
        label = event.blended_label
    elif len(breakdown) > 1:
        label = ",".join(e.name for e in breakdown)
    else:
        label = top.name

    return DisplaySignal(
        label=label,
        confidence=top.score,
        participant=event.speaker or "Unknown",
        is_user=bool(event.is_sales_rep),
        modality=modality,
        color=color_for(top.name),
        breakdown=breakdown,
    )


def describe(signal: DisplaySignal) -> str:
    role = " [You]" if signal.is_user else " [Customer]"
    return f"{signal.participant}{role}: {signal.label} ({round(signal.confidence * 100)}%)"
