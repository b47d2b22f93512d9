"""Data models for moodwatch."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple

logger = logging.getLogger(__name__)


class Severity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    HIGH = "high"
    MEDIUM = "medium"


class AlertType(Enum):
    BURNOUT_CRITICAL = "burnout_critical"
    DECLINING_TREND = "declining_trend"
    LOW_SENTIMENT = "low_sentiment"
    MODERATE_CONCERN = "moderate_concern"
    INDIVIDUAL_RISK = "individual_risk"


class AlertState(Enum):
    OPEN = "open"


def _round_pct(value: float) -> float:
    return round(float(value), 1)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Message:
    """A single scored message. Never mutated by the engine."""
    channel_id: str
    user_id: str
    text: str
    timestamp: datetime
    sentiment_score: float

    def __post_init__(self):
        # Naive timestamps are UTC
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=timezone.utc))


@dataclass(frozen=True)
class Channel:
    """A named communication group."""
    id: str
    name: str
    is_active: bool = True
    alert_threshold: float = 4.0


def parse_timestamp(value: Any) -> datetime:
    """Parse ISO-8601 strings, epoch seconds and Slack-style "1700000000.000100" stamps."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    text = str(value).strip()
    try:
        return datetime.fromtimestamp(float(text), tz=timezone.utc)
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_score(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def message_from_record(record: Dict[str, Any]) -> Message:
    """Build a Message from a raw store record.

    Unparseable scores become NaN so the quality gate can reject them;
    a missing or unparseable timestamp raises ValueError.
    """
    if record.get("timestamp") in (None, ""):
        raise ValueError("record has no timestamp")
    return Message(
        channel_id=str(record.get("channel_id", "")),
        user_id=str(record.get("user_id", "")),
        text=str(record.get("text") or ""),
        timestamp=parse_timestamp(record["timestamp"]),
        sentiment_score=parse_score(record.get("sentiment_score")),
    )


def channel_from_record(record: Dict[str, Any]) -> Channel:
    return Channel(
        id=str(record["id"]),
        name=str(record.get("name") or record["id"]),
        is_active=bool(record.get("is_active", True)),
        alert_threshold=float(record.get("alert_threshold", 4.0)),
    )


@dataclass
class DataQualityNote:
    """A message excluded from aggregates."""
    channel_id: str
    user_id: str
    timestamp: datetime
    sentiment_score: float
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "user_id": self.user_id,
            "timestamp": _iso(self.timestamp),
            "sentiment_score": None if math.isnan(self.sentiment_score) else self.sentiment_score,
            "reason": self.reason,
        }


@dataclass
class DailyBucket:
    """Aggregated messages for one calendar day."""
    date: date
    mean_sentiment: float
    message_count: int
    positive_pct: float
    neutral_pct: float
    negative_pct: float
    active_users: int
    channel_id: Optional[str] = None  # None = all channels
    active_channels: int = 1
    min_sentiment: float = 0.0
    max_sentiment: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "channel_id": self.channel_id,
            "mean_sentiment": round(self.mean_sentiment, 2),
            "message_count": self.message_count,
            "positive_pct": _round_pct(self.positive_pct),
            "neutral_pct": _round_pct(self.neutral_pct),
            "negative_pct": _round_pct(self.negative_pct),
            "active_users": self.active_users,
            "active_channels": self.active_channels,
            "min_sentiment": self.min_sentiment,
            "max_sentiment": self.max_sentiment,
        }


@dataclass
class WeeklyBucket:
    """Aggregated messages for one Sunday-started calendar week."""
    week_start: date
    mean_sentiment: float
    message_count: int
    positive_pct: float
    neutral_pct: float
    negative_pct: float
    active_users: int
    channel_id: Optional[str] = None

    @property
    def burnout_risk_pct(self) -> float:
        return self.negative_pct

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_start": self.week_start.isoformat(),
            "channel_id": self.channel_id,
            "mean_sentiment": round(self.mean_sentiment, 2),
            "message_count": self.message_count,
            "positive_pct": _round_pct(self.positive_pct),
            "neutral_pct": _round_pct(self.neutral_pct),
            "negative_pct": _round_pct(self.negative_pct),
            "burnout_risk_pct": _round_pct(self.burnout_risk_pct),
            "active_users": self.active_users,
        }


@dataclass
class Streak:
    """A maximal run of consecutive low-sentiment days."""
    channel_id: str
    start_date: date
    end_date: date
    length: int
    mean_sentiment_in_streak: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "length": self.length,
            "mean_sentiment_in_streak": round(self.mean_sentiment_in_streak, 2),
        }


@dataclass
class TrendResult:
    """Least-squares slope of daily mean sentiment over a recent window."""
    channel_id: str
    slope: float
    mean_sentiment: float
    points_used: int
    min_sentiment: float = 0.0
    max_sentiment: float = 0.0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    declining: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "slope": round(self.slope, 3),
            "mean_sentiment": round(self.mean_sentiment, 2),
            "points_used": self.points_used,
            "min_sentiment": self.min_sentiment,
            "max_sentiment": self.max_sentiment,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "declining": self.declining,
        }


@dataclass
class UserRisk:
    """Per-user sentiment statistics."""
    user_id: str
    mean_sentiment: float
    negative_pct: float
    channels_active: int
    total_messages: int
    lowest_sentiment: float = 0.0
    last_activity: Optional[datetime] = None
    at_risk: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "mean_sentiment": round(self.mean_sentiment, 2),
            "negative_pct": _round_pct(self.negative_pct),
            "channels_active": self.channels_active,
            "total_messages": self.total_messages,
            "lowest_sentiment": self.lowest_sentiment,
            "last_activity": _iso(self.last_activity),
            "at_risk": self.at_risk,
        }


@dataclass
class ChannelSummary:
    """Per-channel rollup over the summary window."""
    channel_id: str
    avg_sentiment: float
    total_messages: int
    active_users: int
    last_message_at: Optional[datetime]
    burnout_risk_pct: float
    channel_name: str = ""
    sentiment_category: str = "neutral"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "channel_name": self.channel_name,
            "avg_sentiment": round(self.avg_sentiment, 2),
            "total_messages": self.total_messages,
            "active_users": self.active_users,
            "last_message_at": _iso(self.last_message_at),
            "burnout_risk_pct": _round_pct(self.burnout_risk_pct),
            "sentiment_category": self.sentiment_category,
        }


@dataclass
class Alert:
    """A channel alert or a user insight, always created open."""
    scope: str
    scope_type: str  # "channel" or "user"
    alert_type: AlertType
    severity: Severity
    message: str
    evidence: Dict[str, Any]
    manager_actions: Tuple[str, ...]
    business_impact: str
    created_at: datetime
    state: AlertState = AlertState.OPEN

    @property
    def dedup_key(self) -> Tuple[str, str]:
        """Key the alert store upserts on."""
        return (self.scope, self.alert_type.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope,
            "scope_type": self.scope_type,
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "evidence": self.evidence,
            "manager_actions": list(self.manager_actions),
            "business_impact": self.business_impact,
            "created_at": _iso(self.created_at),
            "state": self.state.value,
        }


@dataclass
class WeeklyInsight:
    """Week-over-week summary attached to an alert run."""
    current_week_mood: float
    trend_direction: str
    total_contributors: int
    executive_summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "weekly_summary",
            "current_week_mood": round(self.current_week_mood, 2),
            "trend_direction": self.trend_direction,
            "total_contributors": self.total_contributors,
            "executive_summary": self.executive_summary,
        }


@dataclass
class DashboardOverview:
    """Cross-channel rollup for the dashboard."""
    total_channels: int
    total_messages: int
    total_active_users: int
    avg_sentiment_all_channels: float
    avg_burnout_risk: float
    sentiment_health: str
    sentiment_distribution: Dict[str, int]
    weekly_comparison: Optional[Dict[str, float]]
    top_performing_channel: Optional[str]
    most_concerning_channel: Optional[str]
    trend_direction: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_channels": self.total_channels,
            "total_messages": self.total_messages,
            "total_active_users": self.total_active_users,
            "avg_sentiment_all_channels": round(self.avg_sentiment_all_channels, 2),
            "avg_burnout_risk": _round_pct(self.avg_burnout_risk),
            "sentiment_health": self.sentiment_health,
            "sentiment_distribution": dict(self.sentiment_distribution),
            "weekly_comparison": self.weekly_comparison,
            "top_performing_channel": self.top_performing_channel,
            "most_concerning_channel": self.most_concerning_channel,
            "trend_direction": self.trend_direction,
        }


@dataclass
class EvidenceInsight:
    """A pattern found in message evidence."""
    type: str
    title: str
    description: str
    evidence: List[Any]
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "evidence": self.evidence,
            "recommendation": self.recommendation,
        }


@dataclass
class EvidenceReport:
    """Messages, word frequencies and insights backing a sentiment reading."""
    channel_id: Optional[str]
    sentiment_filter: Optional[str]
    days_analyzed: int
    total_messages: int
    sentiment_distribution: Dict[str, int]
    avg_sentiment: float
    avg_word_count: int
    messages: List[Message]
    word_cloud: List[Tuple[str, int]]
    insights: List[EvidenceInsight]
    examples: Dict[str, List[Message]]

    def to_dict(self) -> Dict[str, Any]:
        def _msg(m: Message) -> Dict[str, Any]:
            return {
                "channel_id": m.channel_id,
                "user_id": m.user_id,
                "text": m.text,
                "timestamp": _iso(m.timestamp),
                "sentiment_score": m.sentiment_score,
            }

        return {
            "channel_id": self.channel_id,
            "sentiment_filter": self.sentiment_filter,
            "days_analyzed": self.days_analyzed,
            "summary": {
                "total_messages": self.total_messages,
                "sentiment_distribution": dict(self.sentiment_distribution),
                "avg_sentiment": round(self.avg_sentiment, 2),
                "avg_word_count": self.avg_word_count,
            },
            "messages": [_msg(m) for m in self.messages],
            "word_cloud_data": [{"text": w, "value": c} for w, c in self.word_cloud],
            "insights": [i.to_dict() for i in self.insights],
            "examples": {k: [_msg(m) for m in v] for k, v in self.examples.items()},
        }


@dataclass
class SentimentReport:
    """Everything one engine run produces."""
    generated_at: datetime
    daily_buckets: List[DailyBucket] = field(default_factory=list)
    weekly_buckets: List[WeeklyBucket] = field(default_factory=list)
    channel_trends: Dict[str, List[DailyBucket]] = field(default_factory=dict)
    streaks: List[Streak] = field(default_factory=list)
    trends: List[TrendResult] = field(default_factory=list)
    user_risks: List[UserRisk] = field(default_factory=list)
    channel_summaries: List[ChannelSummary] = field(default_factory=list)
    alerts: List[Alert] = field(default_factory=list)
    weekly_insight: Optional[WeeklyInsight] = None
    overview: Optional[DashboardOverview] = None
    quality_notes: List[DataQualityNote] = field(default_factory=list)

    @property
    def channel_alerts(self) -> List[Alert]:
        return [a for a in self.alerts if a.scope_type == "channel"]

    @property
    def user_insights(self) -> List[Alert]:
        return [a for a in self.alerts if a.scope_type == "user"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": _iso(self.generated_at),
            "summary": {
                "critical_alerts": sum(1 for a in self.channel_alerts if a.severity is Severity.CRITICAL),
                "warning_alerts": sum(
                    1 for a in self.channel_alerts if a.severity in (Severity.WARNING, Severity.HIGH)
                ),
                "individual_risks": len(self.user_insights),
                "channels_analyzed": len(self.channel_summaries),
                "data_quality_issues": len(self.quality_notes),
            },
            "overview": self.overview.to_dict() if self.overview else None,
            "daily_trends": [b.to_dict() for b in self.daily_buckets],
            "weekly_trends": [b.to_dict() for b in self.weekly_buckets],
            "channel_trends": {
                cid: [b.to_dict() for b in buckets] for cid, buckets in self.channel_trends.items()
            },
            "channels": [s.to_dict() for s in self.channel_summaries],
            "burnout_analysis": {
                "consecutive_low_channels": [s.to_dict() for s in self.streaks],
                "declining_trend_channels": [t.to_dict() for t in self.trends if t.declining],
                "at_risk_users": [u.to_dict() for u in self.user_risks if u.at_risk],
            },
            "trends": [t.to_dict() for t in self.trends],
            "alerts": [a.to_dict() for a in self.channel_alerts],
            "insights": [a.to_dict() for a in self.user_insights],
            "weekly_insight": self.weekly_insight.to_dict() if self.weekly_insight else None,
            "data_quality": [n.to_dict() for n in self.quality_notes],
        }
