"""Sentiment analytics pipeline: per-channel fan-out, alert fan-in."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from ..core.alerts import build_weekly_insight, generate_alerts, load_playbook
from ..core.config import Settings
from ..core.models import (
    Channel, ChannelSummary, DailyBucket, Message, SentimentReport, Streak, TrendResult,
)
from ..core.quality import partition_messages
from ..core.streaks import find_streaks
from ..core.summary import build_channel_summaries, build_dashboard_overview
from ..core.timeseries import bucket_daily, bucket_weekly, resolve_now
from ..core.trends import compute_trend
from ..core.users import score_users
from .message_store import MessageStore

logger = logging.getLogger(__name__)


@dataclass
class ChannelAnalysis:
    """Per-channel results computed in parallel."""
    channel_id: str
    trend_buckets: List[DailyBucket] = field(default_factory=list)
    streaks: List[Streak] = field(default_factory=list)
    trend: Optional[TrendResult] = None
    summary: Optional[ChannelSummary] = None


class SentimentEngine:
    """Runs the analytics pipeline over one message snapshot.

    The engine holds no global state: the store and settings are injected.
    """

    def __init__(self, store: MessageStore, config: Settings):
        self.store = store
        self.config = config
        self.playbook = load_playbook(config.actions_playbook_path)

    @property
    def _lookback_days(self) -> int:
        c = self.config
        return max(c.streak_window_days, c.trend_window_days, c.user_window_days,
                   c.summary_window_days, c.daily_trend_days, c.weekly_trend_weeks * 7)

    def _analyze_channel(self, channel_id: str, messages: Sequence[Message],
                         channels: Sequence[Channel], now: datetime) -> ChannelAnalysis:
        c = self.config
        tz = c.reference_timezone
        streak_buckets = bucket_daily(messages, c.streak_window_days, channel_id=channel_id, now=now, tz=tz)
        trend_buckets = bucket_daily(messages, c.trend_window_days, channel_id=channel_id, now=now, tz=tz)
        summaries = build_channel_summaries(
            [m for m in messages if m.channel_id == channel_id], channels, c.summary_window_days, now
        )
        return ChannelAnalysis(
            channel_id=channel_id,
            trend_buckets=bucket_daily(messages, c.daily_trend_days, channel_id=channel_id, now=now, tz=tz),
            streaks=find_streaks(streak_buckets, threshold=c.low_sentiment_threshold, min_length=c.streak_min_length),
            trend=compute_trend(
                trend_buckets,
                window_days=c.trend_window_days,
                min_points=c.trend_min_points,
                now=now,
                decline_slope=c.trend_decline_slope,
                decline_mean=c.trend_decline_mean,
                min_messages_per_day=c.trend_min_messages_per_day,
                tz=tz,
            ),
            summary=summaries[0] if summaries else None,
        )

    def _fan_out(self, messages: Sequence[Message], channels: Sequence[Channel],
                 now: datetime) -> List[ChannelAnalysis]:
        channel_ids = sorted({m.channel_id for m in messages})
        if not channel_ids:
            return []

        results: Dict[str, ChannelAnalysis] = {}
        workers = max(1, min(self.config.max_workers, len(channel_ids)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_channel = {
                executor.submit(self._analyze_channel, cid, messages, channels, now): cid
                for cid in channel_ids
            }
            for future in as_completed(future_to_channel):
                cid = future_to_channel[future]
                results[cid] = future.result()
                logger.debug(f"{cid}: analysis complete")

        # completion order must not leak into the output
        return [results[cid] for cid in channel_ids]

    def analyze(
        self,
        messages: Sequence[Message],
        channels: Sequence[Channel] = (),
        now: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ) -> SentimentReport:
        """Run every analysis over an in-memory snapshot."""
        start_time = time.time()
        now = resolve_now(now)
        c = self.config
        tz = c.reference_timezone

        valid, notes = partition_messages(messages)
        per_channel = self._fan_out(valid, channels, now)

        # fan-in: everything below needs all channels
        streaks = [s for a in per_channel for s in a.streaks]
        trends = [a.trend for a in per_channel if a.trend is not None]
        summaries = sorted(
            (a.summary for a in per_channel if a.summary is not None),
            key=lambda s: (s.avg_sentiment, s.channel_id),
        )
        user_risks = score_users(
            valid,
            window_days=c.user_window_days,
            now=now,
            mean_threshold=c.user_mean_threshold,
            negative_pct_threshold=c.user_negative_pct_threshold,
        )
        weekly = bucket_weekly(valid, c.weekly_trend_weeks, now=now, tz=tz)

        alerts = generate_alerts(
            streaks,
            trends,
            user_risks,
            summaries,
            channel_names={ch.id: ch.name for ch in channels},
            created_at=created_at or now,
            playbook=self.playbook,
            low_threshold=c.low_sentiment_threshold,
        )

        report = SentimentReport(
            generated_at=created_at or now,
            daily_buckets=bucket_daily(valid, c.daily_trend_days, now=now, tz=tz),
            weekly_buckets=weekly,
            channel_trends={a.channel_id: a.trend_buckets for a in per_channel if a.trend_buckets},
            streaks=streaks,
            trends=trends,
            user_risks=user_risks,
            channel_summaries=summaries,
            alerts=alerts,
            weekly_insight=build_weekly_insight(alerts, weekly),
            overview=build_dashboard_overview(summaries, weekly),
            quality_notes=notes,
        )
        logger.info(
            f"Analyzed {len(valid)} messages across {len(per_channel)} channel(s) "
            f"in {time.time() - start_time:.2f}s: {len(alerts)} alert(s)"
        )
        return report

    def run(self, channel_ids: Optional[Sequence[str]] = None, now: Optional[datetime] = None) -> SentimentReport:
        """Fetch one snapshot from the store and analyze it."""
        now = resolve_now(now)
        since = now - timedelta(days=self._lookback_days)
        if channel_ids:
            messages: List[Message] = []
            for cid in channel_ids:
                messages.extend(self.store.fetch_messages(channel_id=cid, since=since))
        else:
            messages = self.store.fetch_messages(since=since)
        channels = self.store.fetch_channels()
        logger.info(f"Fetched {len(messages)} messages and {len(channels)} channels")
        return self.analyze(messages, channels, now=now)
