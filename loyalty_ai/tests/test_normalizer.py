import json

import pytest

from loyalty_ai.features.analysis.normalizer import extract_analysis
from loyalty_ai.models.analysis import FALLBACK_ANALYSIS, ChatAnalysis, fallback_analysis


VALID = {
    "messageBalance": {"you": 12, "them": 4},
    "engagementLevel": 35,
    "warningSignals": ["Replies are one word", "Long gaps between replies"],
    "positiveSignals": ["Polite tone", "Asks follow-up questions"],
    "compatibilityScore": 41,
}

EXPECTED_FALLBACK = {
    "messageBalance": {"you": 0, "them": 0},
    "engagementLevel": 50,
    "warningSignals": ["Unable to fully analyze the conversation", "Try uploading clearer screenshots"],
    "positiveSignals": ["Analysis incomplete", "More context may help"],
    "compatibilityScore": 50,
}


def test_pure_json_round_trips():
    result = extract_analysis(json.dumps(VALID))
    assert result.fallback is False
    assert result.payload == VALID


@pytest.mark.parametrize("value", [{}, {"a": {"b": [1, {"c": None}]}}, {"text": "braces } inside { strings"}])
def test_any_object_round_trips(value):
    assert extract_analysis(json.dumps(value)).payload == value


def test_json_wrapped_in_prose_and_fences():
    raw = "Here is the analysis:\n```json\n" + json.dumps(VALID, indent=2) + "\n```\nHope this helps!"
    result = extract_analysis(raw)
    assert result.fallback is False
    assert result.payload == VALID


def test_trailing_braces_after_object_still_parse():
    raw = json.dumps(VALID) + " (scores are estimates {approx})"
    assert extract_analysis(raw).payload == VALID


@pytest.mark.parametrize(
    "raw",
    [
        "I couldn't read these screenshots clearly, sorry.",
        "",
        "{",
        "}{",
        '{"messageBalance": {"you": 3,}',
        "{not json at all}",
        "[1, 2, 3]",
        "{" * 5000,
        None,
        42,
        b'{"a": 1}',
    ],
)
def test_unusable_output_returns_exact_fallback(raw):
    result = extract_analysis(raw)
    assert result.fallback is True
    assert result.payload == EXPECTED_FALLBACK


def test_fallback_matches_analysis_shape():
    parsed = ChatAnalysis.model_validate(fallback_analysis())
    assert parsed.engagementLevel == 50
    assert parsed.compatibilityScore == 50
    assert 2 <= len(parsed.warningSignals) <= 4
    assert 2 <= len(parsed.positiveSignals) <= 4


def test_fallback_is_a_fresh_copy():
    first = extract_analysis("nope").payload
    first["warningSignals"].append("mutated")
    first["messageBalance"]["you"] = 99

    assert extract_analysis("nope").payload == EXPECTED_FALLBACK
    assert FALLBACK_ANALYSIS.messageBalance.you == 0
