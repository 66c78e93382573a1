import pytest

from core.emotion import (
    DEFAULT_COLOR, EMOTION_COLORS, close_candidates, color_for, describe, reduce_detection,
)
from core.models import DetectionEvent, EmotionScore


def _ranked(*pairs):
    return {"top_emotions": [{"name": n, "score": s} for n, s in pairs]}


def test_facial_beats_voice_regardless_of_score():
    sig = reduce_detection({
        "speaker": "Alex",
        "video": _ranked(("joy", 0.40)),
        "audio": _ranked(("anger", 0.95)),
    })
    assert sig.label == "joy"
    assert sig.modality == "facial"
    assert sig.confidence == pytest.approx(0.40)


def test_voice_used_when_facial_empty():
    sig = reduce_detection({"video": {"top_emotions": []}, "audio": _ranked(("Doubt", 0.6))})
    assert sig.modality == "voice"
    assert sig.label == "Doubt"
    assert sig.color == EMOTION_COLORS["doubt"]


def test_near_tie_joins_labels():
    sig = reduce_detection({"video": _ranked(("A", 0.80), ("B", 0.78), ("C", 0.50))})
    assert [e.name for e in sig.breakdown] == ["A", "B"]
    assert sig.label == "A,B"
    assert sig.confidence == pytest.approx(0.80)


def test_clear_winner_single_label():
    sig = reduce_detection({"video": _ranked(("A", 0.80), ("B", 0.60))})
    assert [e.name for e in sig.breakdown] == ["A"]
    assert sig.label == "A"


def test_breakdown_capped_at_three():
    ranked = [EmotionScore(name=n, score=0.5) for n in "ABCDE"]
    assert [e.name for e in close_candidates(ranked)] == ["A", "B", "C"]


def test_threshold_boundary_is_inclusive():
    ranked = [EmotionScore(name="A", score=0.80), EmotionScore(name="B", score=0.73)]
    assert len(close_candidates(ranked)) == 2


def test_blended_label_overrides():
    sig = reduce_detection({
        "blended_label": "Skeptical interest",
        "video": _ranked(("Interest", 0.7), ("Doubt", 0.69)),
    })
    assert sig.label == "Skeptical interest"
    assert len(sig.breakdown) == 2
    assert sig.color == EMOTION_COLORS["interest"]


def test_participant_and_role():
    sig = reduce_detection({"is_sales_rep": True, "audio": _ranked(("Joy", 0.9))})
    assert sig.participant == "Unknown"
    assert sig.is_user is True
    assert describe(sig) == "Unknown [You]: Joy (90%)"

    sig = reduce_detection(DetectionEvent.model_validate({"speaker": "Kim", "audio": _ranked(("Joy", 0.5))}))
    assert sig.is_user is False
    assert describe(sig) == "Kim [Customer]: Joy (50%)"


def test_no_modality_or_malformed_yields_none():
    assert reduce_detection({}) is None
    assert reduce_detection({"audio": {"top_emotions": []}}) is None
    assert reduce_detection({"video": {"top_emotions": [{"name": "joy"}]}}) is None
    assert reduce_detection({"video": "garbage"}) is None


def test_color_lookup_never_fails():
    assert color_for("JOY") == EMOTION_COLORS["joy"]
    assert color_for("Bewilderment") == DEFAULT_COLOR
    assert color_for("") == DEFAULT_COLOR


def test_malformed_voice_does_not_hide_facial():
    sig = reduce_detection({
        "video": _ranked(("Joy", 0.9)),
        "audio": {"top_emotions": [{"name": "Anger"}]},
    })
    assert sig.label == "Joy"
    assert sig.modality == "facial"


def test_malformed_facial_falls_back_to_voice():
    sig = reduce_detection({"video": "garbage", "audio": _ranked(("Doubt", 0.6))})
    assert sig.modality == "voice"
    assert sig.label == "Doubt"


def test_numeric_speaker_kept():
    sig = reduce_detection({"speaker": 2, "video": _ranked(("Joy", 0.9))})
    assert sig.participant == "2"


def test_bad_metadata_falls_back_to_defaults():
    sig = reduce_detection({"speaker": ["x"], "video": _ranked(("Joy", 0.9))})
    assert sig.participant == "Unknown"
    assert sig.label == "Joy"
