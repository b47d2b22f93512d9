"""Trend-slope decline detection."""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from .models import DailyBucket, TrendResult
from .timeseries import local_date, resolve_now

logger = logging.getLogger(__name__)


def least_squares_slope(ys: Sequence[float]) -> Optional[float]:
    """
    Ordinary least-squares slope of ys against x = 0..n-1.

    slope = (n*Sxy - Sx*Sy) / (n*Sxx - Sx^2)

    Returns None when there are fewer than two points or the denominator
    is zero.
    """
    n = len(ys)
    if n < 2:
        return None
    xs = range(n)
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_xx = sum(x * x for x in xs)
    denom = n * sum_xx - sum_x * sum_x
    if denom == 0:
        return None
    return (n * sum_xy - sum_x * sum_y) / denom


def compute_trend(
    daily_buckets: Iterable[DailyBucket],
    window_days: int = 5,
    min_points: int = 3,
    now: Optional[datetime] = None,
    decline_slope: float = -0.3,
    decline_mean: float = 6.0,
    min_messages_per_day: int = 1,
    tz: str = "UTC",
) -> Optional[TrendResult]:
    """Trend for a single channel's daily buckets, or None if there is too little data.

    The window is the `window_days` calendar dates ending at the anchor:
    today (in `tz`) when `now` is given, otherwise the latest bucket date.
    """
    buckets = sorted(
        (b for b in daily_buckets if b.message_count >= min_messages_per_day),
        key=lambda b: b.date,
    )
    if not buckets:
        return None

    anchor = local_date(resolve_now(now), tz) if now is not None else buckets[-1].date
    first_day = anchor - timedelta(days=window_days - 1)
    window = [b for b in buckets if first_day <= b.date <= anchor]
    if len(window) < max(min_points, 2):
        return None

    ys = [b.mean_sentiment for b in window]
    slope = least_squares_slope(ys)
    if slope is None:
        return None

    mean_y = sum(ys) / len(ys)
    return TrendResult(
        channel_id=window[0].channel_id,
        slope=slope,
        mean_sentiment=mean_y,
        points_used=len(window),
        min_sentiment=min(ys),
        max_sentiment=max(ys),
        start_date=window[0].date,
        end_date=window[-1].date,
        # both conditions: a slight dip from a high baseline is not a decline
        declining=slope < decline_slope and mean_y < decline_mean,
    )


def analyze_trends(
    daily_buckets: Iterable[DailyBucket],
    window_days: int = 5,
    min_points: int = 3,
    now: Optional[datetime] = None,
    decline_slope: float = -0.3,
    decline_mean: float = 6.0,
    min_messages_per_day: int = 1,
    tz: str = "UTC",
) -> List[TrendResult]:
    """Apply compute_trend to each channel present in the buckets."""
    by_channel: "OrderedDict[str, List[DailyBucket]]" = OrderedDict()
    for b in daily_buckets:
        by_channel.setdefault(b.channel_id, []).append(b)

    results = []
    for channel_id, buckets in by_channel.items():
        trend = compute_trend(
            buckets,
            window_days=window_days,
            min_points=min_points,
            now=now,
            decline_slope=decline_slope,
            decline_mean=decline_mean,
            min_messages_per_day=min_messages_per_day,
            tz=tz,
        )
        if trend is None:
            logger.debug(f"Not enough daily points for a trend in {channel_id}")
            continue
        results.append(trend)
    declining = sum(1 for t in results if t.declining)
    if declining:
        logger.info(f"{declining} channel(s) show a declining trend")
    return results
