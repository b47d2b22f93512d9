"""Message evidence: cleaned text, word frequencies and simple pattern insights."""

import logging
import re
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from .constants import EvidenceConstants
from .models import EvidenceInsight, EvidenceReport, Message
from .quality import sentiment_label
from .timeseries import in_window

logger = logging.getLogger(__name__)

USER_MENTION_RE = re.compile(r"<@[A-Z0-9]+>")
CHANNEL_REF_RE = re.compile(r"<#[A-Z0-9]+\|[^>]+>")
URL_RE = re.compile(r"https?://\S+")
PUNCT_RE = re.compile(r"[^\w\s]")


def clean_text(text: str) -> str:
    """Replace user mentions, channel references and links with placeholders."""
    text = USER_MENTION_RE.sub("@user", text or "")
    text = CHANNEL_REF_RE.sub("#channel", text)
    text = URL_RE.sub("[link]", text)
    return text.strip()


def word_frequencies(texts: Iterable[str], limit: int = EvidenceConstants.MAX_WORDS) -> List[Tuple[str, int]]:
    """Most common non-stop-words across texts."""
    counts: Counter = Counter()
    for t in texts:
        for word in PUNCT_RE.sub("", t.lower()).split():
            if len(word) < EvidenceConstants.MIN_WORD_LENGTH or word in EvidenceConstants.STOP_WORDS:
                continue
            counts[word] += 1
    return counts.most_common(limit)


def _insights(messages: List[Message], words: List[Tuple[str, int]]) -> List[EvidenceInsight]:
    insights = []
    positive = [m for m in messages if sentiment_label(m.sentiment_score) == "positive"]
    negative = [m for m in messages if sentiment_label(m.sentiment_score) == "negative"]

    if len(negative) > len(positive) * EvidenceConstants.NEGATIVE_DOMINANCE_RATIO:
        insights.append(EvidenceInsight(
            type="concern",
            title="Negative Sentiment Dominance",
            description=f"{len(negative)} negative messages vs {len(positive)} positive messages",
            evidence=[m.text for m in negative[:2]],
            recommendation="Investigate root causes of team dissatisfaction",
        ))

    stress = [(w, c) for w, c in words if w in EvidenceConstants.STRESS_WORDS]
    if stress:
        insights.append(EvidenceInsight(
            type="warning",
            title="Stress Indicators Detected",
            description=f"Found {len(stress)} stress-related keywords",
            evidence=[{"text": w, "value": c} for w, c in stress],
            recommendation="Monitor workload and provide additional support",
        ))

    upbeat = [(w, c) for w, c in words if w in EvidenceConstants.POSITIVE_WORDS]
    if upbeat:
        insights.append(EvidenceInsight(
            type="positive",
            title="Positive Language Patterns",
            description=f"Found {len(upbeat)} positive keywords",
            evidence=[{"text": w, "value": c} for w, c in upbeat],
            recommendation="Build on current positive momentum",
        ))
    return insights


def collect_evidence(
    messages: Iterable[Message],
    channel_id: Optional[str] = None,
    sentiment: Optional[str] = None,
    window_days: int = 7,
    now: Optional[datetime] = None,
) -> EvidenceReport:
    """
    Gather the messages behind a sentiment reading.

    sentiment filters by label ("positive", "neutral", "negative"). Negative
    evidence is ordered lowest score first, everything else highest first.
    """
    if sentiment not in (None, "positive", "neutral", "negative"):
        raise ValueError(f"Unknown sentiment filter: {sentiment}")

    scoped = in_window(messages, timedelta(days=window_days), now, channel_id)
    if sentiment:
        scoped = [m for m in scoped if sentiment_label(m.sentiment_score) == sentiment]
    scoped.sort(key=lambda m: m.sentiment_score, reverse=sentiment != "negative")

    words = word_frequencies(clean_text(m.text) for m in scoped)
    distribution = {"positive": 0, "neutral": 0, "negative": 0}
    for m in scoped:
        distribution[sentiment_label(m.sentiment_score)] += 1

    n = len(scoped)
    report = EvidenceReport(
        channel_id=channel_id,
        sentiment_filter=sentiment,
        days_analyzed=window_days,
        total_messages=n,
        sentiment_distribution=distribution,
        avg_sentiment=sum(m.sentiment_score for m in scoped) / n if n else 0.0,
        avg_word_count=round(sum(len(m.text.split()) for m in scoped) / n) if n else 0,
        messages=scoped[:EvidenceConstants.MAX_MESSAGES],
        word_cloud=words,
        insights=_insights(scoped, words),
        examples={
            "most_positive": [m for m in scoped if sentiment_label(m.sentiment_score) == "positive"][:EvidenceConstants.MAX_EXAMPLES],
            "most_negative": [m for m in scoped if sentiment_label(m.sentiment_score) == "negative"][:EvidenceConstants.MAX_EXAMPLES],
        },
    )
    logger.debug(f"Collected {n} evidence message(s) for {channel_id or 'all channels'}")
    return report
