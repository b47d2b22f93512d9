"""Daily and weekly mood series."""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from .models import Message, DailyBucket, WeeklyBucket
from .quality import valid_messages, percentage_breakdown

logger = logging.getLogger(__name__)


def resolve_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)


def local_date(ts: datetime, tz: str = "UTC") -> date:
    """Calendar date of a timestamp in the reference timezone."""
    return ts.astimezone(ZoneInfo(tz)).date()


def week_start(d: date) -> date:
    """Most recent Sunday on or before d."""
    return d - timedelta(days=(d.weekday() + 1) % 7)


def in_window(messages: Iterable[Message], window: timedelta, now: Optional[datetime] = None,
              channel_id: Optional[str] = None) -> List[Message]:
    """Valid messages with timestamp >= now - window, optionally for one channel."""
    cutoff = resolve_now(now) - window
    return [
        m for m in valid_messages(messages)
        if m.timestamp >= cutoff and (channel_id is None or m.channel_id == channel_id)
    ]


def _group(messages: List[Message], key: Callable[[Message], date]) -> Dict[date, List[Message]]:
    groups: Dict[date, List[Message]] = defaultdict(list)
    for m in messages:
        groups[key(m)].append(m)
    return groups


def bucket_daily(
    messages: Iterable[Message],
    window_days: int,
    channel_id: Optional[str] = None,
    now: Optional[datetime] = None,
    tz: str = "UTC",
) -> List[DailyBucket]:
    """
    Bucket messages by calendar day.

    Only days with at least one message produce a bucket; the series is
    sparse. Buckets come back sorted ascending by date.
    """
    scoped = in_window(messages, timedelta(days=window_days), now, channel_id)
    if not scoped:
        return []

    groups = _group(scoped, lambda m: local_date(m.timestamp, tz))
    buckets = []
    for day in sorted(groups):
        group = groups[day]
        scores = [m.sentiment_score for m in group]
        pos, neu, neg = percentage_breakdown(scores)
        buckets.append(DailyBucket(
            date=day,
            mean_sentiment=sum(scores) / len(scores),
            message_count=len(group),
            positive_pct=pos,
            neutral_pct=neu,
            negative_pct=neg,
            active_users=len({m.user_id for m in group}),
            channel_id=channel_id,
            active_channels=len({m.channel_id for m in group}),
            min_sentiment=min(scores),
            max_sentiment=max(scores),
        ))
    logger.debug(f"Daily buckets for {channel_id or 'all channels'}: {len(buckets)} day(s)")
    return buckets


def bucket_weekly(
    messages: Iterable[Message],
    window_weeks: int,
    channel_id: Optional[str] = None,
    now: Optional[datetime] = None,
    tz: str = "UTC",
) -> List[WeeklyBucket]:
    """Bucket messages by Sunday-started calendar week, ascending by week start."""
    scoped = in_window(messages, timedelta(weeks=window_weeks), now, channel_id)
    if not scoped:
        return []

    groups = _group(scoped, lambda m: week_start(local_date(m.timestamp, tz)))
    buckets = []
    for start in sorted(groups):
        group = groups[start]
        scores = [m.sentiment_score for m in group]
        pos, neu, neg = percentage_breakdown(scores)
        buckets.append(WeeklyBucket(
            week_start=start,
            mean_sentiment=sum(scores) / len(scores),
            message_count=len(group),
            positive_pct=pos,
            neutral_pct=neu,
            negative_pct=neg,
            active_users=len({m.user_id for m in group}),
            channel_id=channel_id,
        ))
    return buckets


def channel_sentiment_trend(
    messages: Iterable[Message],
    channel_id: str,
    days: int = 7,
    now: Optional[datetime] = None,
    tz: str = "UTC",
) -> List[DailyBucket]:
    """Daily series for a single channel."""
    return bucket_daily(messages, days, channel_id=channel_id, now=now, tz=tz)
