"""Per-user burnout risk scoring."""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from .constants import SentimentConstants
from .models import Message, UserRisk
from .timeseries import in_window

logger = logging.getLogger(__name__)


def score_users(
    messages: Iterable[Message],
    window_days: int = 7,
    now: Optional[datetime] = None,
    mean_threshold: float = 4.5,
    negative_pct_threshold: float = 30.0,
) -> List[UserRisk]:
    """
    Score every user with at least one in-window message.

    A user is at risk when mean sentiment < mean_threshold AND the share
    of negative messages > negative_pct_threshold. Results are sorted by
    mean sentiment, lowest first.
    """
    by_user: Dict[str, List[Message]] = defaultdict(list)
    for m in in_window(messages, timedelta(days=window_days), now):
        by_user[m.user_id].append(m)

    risks = []
    for user_id, msgs in by_user.items():
        scores = [m.sentiment_score for m in msgs]
        mean = sum(scores) / len(scores)
        negative_pct = sum(1 for s in scores if s < SentimentConstants.NEGATIVE_MAX) * 100.0 / len(scores)
        risks.append(UserRisk(
            user_id=user_id,
            mean_sentiment=mean,
            negative_pct=negative_pct,
            channels_active=len({m.channel_id for m in msgs}),
            total_messages=len(msgs),
            lowest_sentiment=min(scores),
            last_activity=max(m.timestamp for m in msgs),
            at_risk=mean < mean_threshold and negative_pct > negative_pct_threshold,
        ))

    risks.sort(key=lambda r: (r.mean_sentiment, r.user_id))
    flagged = sum(1 for r in risks if r.at_risk)
    logger.info(f"Scored {len(risks)} user(s), {flagged} at risk")
    return risks


def at_risk_users(messages: Iterable[Message], **kwargs) -> List[UserRisk]:
    """Only the users score_users flags as at risk."""
    return [r for r in score_users(messages, **kwargs) if r.at_risk]
