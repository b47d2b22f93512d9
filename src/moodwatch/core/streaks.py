"""Low-sentiment streak detection."""

import logging
from collections import OrderedDict
from datetime import timedelta
from typing import Iterable, List

from .models import DailyBucket, Streak

logger = logging.getLogger(__name__)


def _run_ids(buckets: List[DailyBucket], threshold: float) -> List[int]:
    """
    Assign each bucket a run id.

    The id increments when the low/not-low classification changes, and
    also when the next bucket is not the following calendar day.
    """
    ids: List[int] = []
    run = 0
    for i, b in enumerate(buckets):
        if i > 0:
            prev = buckets[i - 1]
            changed = (b.mean_sentiment < threshold) != (prev.mean_sentiment < threshold)
            gap = b.date - prev.date != timedelta(days=1)
            if changed or gap:
                run += 1
        ids.append(run)
    return ids


def find_streaks(
    daily_buckets: Iterable[DailyBucket],
    threshold: float = 4.0,
    min_length: int = 3,
) -> List[Streak]:
    """
    Find maximal runs of consecutive low-sentiment days per channel.

    Buckets may cover several channels; each channel is scanned separately
    in date order. Channels are reported in order of first appearance.
    """
    by_channel: "OrderedDict[str, List[DailyBucket]]" = OrderedDict()
    for b in daily_buckets:
        by_channel.setdefault(b.channel_id, []).append(b)

    streaks: List[Streak] = []
    for channel_id, buckets in by_channel.items():
        buckets = sorted(buckets, key=lambda b: b.date)
        runs: "OrderedDict[int, List[DailyBucket]]" = OrderedDict()
        for run_id, b in zip(_run_ids(buckets, threshold), buckets):
            runs.setdefault(run_id, []).append(b)

        for group in runs.values():
            if group[0].mean_sentiment >= threshold or len(group) < min_length:
                continue
            streaks.append(Streak(
                channel_id=channel_id,
                start_date=group[0].date,
                end_date=group[-1].date,
                length=len(group),
                mean_sentiment_in_streak=sum(b.mean_sentiment for b in group) / len(group),
            ))

    if streaks:
        logger.info(f"Found {len(streaks)} low-sentiment streak(s)")
    return streaks
