"""Channel rollups and the dashboard overview."""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from .constants import AlertConstants, DashboardConstants, SentimentConstants
from .models import Channel, ChannelSummary, DashboardOverview, Message, WeeklyBucket
from .quality import sentiment_label
from .timeseries import in_window

logger = logging.getLogger(__name__)


def channel_label(channel_id: str, names: Optional[Dict[str, str]] = None) -> str:
    """Display name for a channel, falling back to a shortened id."""
    if names and names.get(channel_id):
        return names[channel_id]
    return f"{AlertConstants.UNKNOWN_CHANNEL_PREFIX}{channel_id[:AlertConstants.CHANNEL_ID_LABEL_LENGTH]}"


def build_channel_summaries(
    messages: Iterable[Message],
    channels: Optional[Sequence[Channel]] = None,
    window_days: int = 7,
    now: Optional[datetime] = None,
) -> List[ChannelSummary]:
    """Summaries for channels with in-window messages, lowest average first."""
    names = {c.id: c.name for c in channels or ()}
    by_channel: Dict[str, List[Message]] = defaultdict(list)
    for m in in_window(messages, timedelta(days=window_days), now):
        by_channel[m.channel_id].append(m)

    summaries = []
    for channel_id, msgs in by_channel.items():
        scores = [m.sentiment_score for m in msgs]
        avg = sum(scores) / len(scores)
        summaries.append(ChannelSummary(
            channel_id=channel_id,
            avg_sentiment=avg,
            total_messages=len(msgs),
            active_users=len({m.user_id for m in msgs}),
            last_message_at=max(m.timestamp for m in msgs),
            burnout_risk_pct=sum(1 for s in scores if s < SentimentConstants.NEGATIVE_MAX) * 100.0 / len(scores),
            channel_name=channel_label(channel_id, names),
            sentiment_category=sentiment_label(avg),
        ))

    summaries.sort(key=lambda s: (s.avg_sentiment, s.channel_id))
    return summaries


def _weekly_comparison(weekly_buckets: Sequence[WeeklyBucket]) -> Optional[Dict[str, float]]:
    if len(weekly_buckets) < 2:
        return None
    current = weekly_buckets[-1].mean_sentiment
    previous = weekly_buckets[-2].mean_sentiment
    base = previous or DashboardConstants.NEUTRAL_BASELINE
    return {
        "current_week": round(current, 2),
        "previous_week": round(previous, 2),
        "change_percentage": round((current - previous) / base * 100, 1),
    }


def build_dashboard_overview(
    summaries: Sequence[ChannelSummary],
    weekly_buckets: Sequence[WeeklyBucket] = (),
) -> DashboardOverview:
    """Roll channel summaries up into dashboard-level figures."""
    n = len(summaries)
    avg_sentiment = sum(s.avg_sentiment for s in summaries) / n if n else 0.0
    avg_burnout = sum(s.burnout_risk_pct for s in summaries) / n if n else 0.0

    if avg_sentiment >= DashboardConstants.HEALTH_GOOD:
        health = "good"
    elif avg_sentiment >= DashboardConstants.HEALTH_FAIR:
        health = "fair"
    else:
        health = "concerning"

    distribution = {"positive": 0, "neutral": 0, "negative": 0}
    for s in summaries:
        distribution[sentiment_label(s.avg_sentiment)] += 1

    comparison = _weekly_comparison(list(weekly_buckets))
    direction = "stable"
    if comparison:
        if comparison["change_percentage"] > DashboardConstants.TREND_CHANGE_PCT:
            direction = "improving"
        elif comparison["change_percentage"] < -DashboardConstants.TREND_CHANGE_PCT:
            direction = "declining"

    top = max(summaries, key=lambda s: s.avg_sentiment) if summaries else None
    worst = min(summaries, key=lambda s: s.avg_sentiment) if summaries else None

    return DashboardOverview(
        total_channels=n,
        total_messages=sum(s.total_messages for s in summaries),
        # summed per channel, so a user active in two channels counts twice
        total_active_users=sum(s.active_users for s in summaries),
        avg_sentiment_all_channels=avg_sentiment,
        avg_burnout_risk=avg_burnout,
        sentiment_health=health,
        sentiment_distribution=distribution,
        weekly_comparison=comparison,
        top_performing_channel=top.channel_id if top else None,
        most_concerning_channel=worst.channel_id if worst else None,
        trend_direction=direction,
    )
