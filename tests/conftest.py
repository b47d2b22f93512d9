"""Shared fixtures for moodwatch tests."""

from datetime import date, datetime, timedelta, timezone

import pytest

from moodwatch.core.models import DailyBucket, Message

# Saturday evening, UTC
NOW = datetime(2024, 6, 15, 18, 0, tzinfo=timezone.utc)


def make_message(channel_id="C1", user_id="U1", days_ago=0, score=5.0, text="status update", hour=12):
    """Message sent `days_ago` days before NOW's date, at `hour` UTC."""
    day = NOW.date() - timedelta(days=days_ago)
    ts = datetime(day.year, day.month, day.day, hour, 0, tzinfo=timezone.utc)
    return Message(channel_id=channel_id, user_id=user_id, text=text, timestamp=ts, sentiment_score=score)


def make_buckets(values, channel_id="C1", start=date(2024, 6, 1), skip=()):
    """One daily bucket per value on consecutive dates, leaving out the day offsets in skip."""
    buckets = []
    offset = 0
    for v in values:
        while offset in skip:
            offset += 1
        buckets.append(DailyBucket(
            date=start + timedelta(days=offset),
            mean_sentiment=v,
            message_count=1,
            positive_pct=0.0,
            neutral_pct=0.0,
            negative_pct=100.0,
            active_users=1,
            channel_id=channel_id,
        ))
        offset += 1
    return buckets


@pytest.fixture
def now():
    return NOW
