"""Tests for the sentiment score quality gate."""

import math

from moodwatch.core.quality import is_valid_score, partition_messages, percentage_breakdown, sentiment_label
from conftest import make_message


def test_is_valid_score():
    assert is_valid_score(1)
    assert is_valid_score(10)
    assert is_valid_score(5.5)
    assert not is_valid_score(0.99)
    assert not is_valid_score(10.01)
    assert not is_valid_score(float("nan"))
    assert not is_valid_score(None)


def test_sentiment_label_boundaries():
    assert sentiment_label(7) == "positive"
    assert sentiment_label(6.99) == "neutral"
    assert sentiment_label(4) == "neutral"
    assert sentiment_label(3.99) == "negative"


def test_partition_records_quality_notes(caplog):
    """Invalid scores become notes and a warning is logged."""
    messages = [make_message(score=5), make_message(user_id="U9", score=11), make_message(score=float("nan"))]
    valid, notes = partition_messages(messages)

    assert len(valid) == 1
    assert len(notes) == 2
    assert notes[0].user_id == "U9"
    assert "outside" in notes[0].reason
    assert notes[1].reason == "missing sentiment score"
    assert math.isnan(notes[1].sentiment_score)
    assert "Excluded 2 message(s)" in caplog.text


def test_percentage_breakdown():
    assert percentage_breakdown([]) == (0.0, 0.0, 0.0)
    pos, neu, neg = percentage_breakdown([1, 5, 9])
    assert abs(pos + neu + neg - 100.0) < 0.1


def test_non_numeric_scores_become_notes():
    """String scores are noted instead of crashing the gate."""
    messages = [make_message(score=5), make_message(user_id="U7", score="abc"), make_message(score="5")]
    valid, notes = partition_messages(messages)

    assert [m.sentiment_score for m in valid] == [5]
    assert [n.reason for n in notes] == ["non-numeric sentiment score 'abc'", "non-numeric sentiment score '5'"]
    assert math.isnan(notes[0].sentiment_score)
    assert notes[1].sentiment_score == 5.0
    assert not is_valid_score("5")
    assert not is_valid_score(True)
