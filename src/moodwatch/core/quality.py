"""Data-quality gate for incoming sentiment scores."""

import logging
import math
import numbers
from typing import Iterable, List, Tuple

from .constants import SentimentConstants
from .models import Message, DataQualityNote, parse_score

logger = logging.getLogger(__name__)


def _is_number(score) -> bool:
    return isinstance(score, numbers.Real) and not isinstance(score, bool)


def is_valid_score(score: float) -> bool:
    """True when the score is a real number inside [1, 10].

    Strings are rejected even when numeric; stores convert scores on read.
    """
    if not _is_number(score) or math.isnan(score):
        return False
    return SentimentConstants.MIN_SCORE <= score <= SentimentConstants.MAX_SCORE


def _invalid_reason(score) -> str:
    if score is None or (isinstance(score, float) and math.isnan(score)):
        return "missing sentiment score"
    if not _is_number(score):
        return f"non-numeric sentiment score {score!r}"
    return f"sentiment score {score} outside [{SentimentConstants.MIN_SCORE:g}, {SentimentConstants.MAX_SCORE:g}]"


def sentiment_label(score: float) -> str:
    if score >= SentimentConstants.POSITIVE_MIN:
        return "positive"
    if score >= SentimentConstants.NEGATIVE_MAX:
        return "neutral"
    return "negative"


def partition_messages(messages: Iterable[Message]) -> Tuple[List[Message], List[DataQualityNote]]:
    """Split messages into usable ones and data-quality notes for the rest."""
    valid: List[Message] = []
    notes: List[DataQualityNote] = []
    for m in messages:
        if is_valid_score(m.sentiment_score):
            valid.append(m)
            continue
        notes.append(DataQualityNote(
            channel_id=m.channel_id,
            user_id=m.user_id,
            timestamp=m.timestamp,
            sentiment_score=parse_score(m.sentiment_score),
            reason=_invalid_reason(m.sentiment_score),
        ))
    if notes:
        logger.warning(f"Excluded {len(notes)} message(s) with invalid sentiment scores")
    return valid, notes


def valid_messages(messages: Iterable[Message]) -> List[Message]:
    """Messages with usable scores, dropping the rest silently."""
    return [m for m in messages if is_valid_score(m.sentiment_score)]


def percentage_breakdown(scores: List[float]) -> Tuple[float, float, float]:
    """(positive_pct, neutral_pct, negative_pct) for a non-empty score list."""
    n = len(scores)
    if n == 0:
        return 0.0, 0.0, 0.0
    pos = sum(1 for s in scores if s >= SentimentConstants.POSITIVE_MIN)
    neg = sum(1 for s in scores if s < SentimentConstants.NEGATIVE_MAX)
    neu = n - pos - neg
    return pos * 100.0 / n, neu * 100.0 / n, neg * 100.0 / n
