"""Core modules for moodwatch."""

from .models import *
from .config import settings, Settings
from .timeseries import bucket_daily, bucket_weekly, channel_sentiment_trend
from .streaks import find_streaks
from .trends import least_squares_slope, compute_trend, analyze_trends
from .users import score_users, at_risk_users
from .summary import build_channel_summaries, build_dashboard_overview
from .alerts import generate_alerts, build_weekly_insight, generate_executive_summary
from .evidence import collect_evidence

__all__ = [
    "settings",
    "Settings",
    "Message",
    "Channel",
    "DailyBucket",
    "WeeklyBucket",
    "Streak",
    "TrendResult",
    "UserRisk",
    "ChannelSummary",
    "Alert",
    "Severity",
    "AlertType",
    "SentimentReport",
    "bucket_daily",
    "bucket_weekly",
    "channel_sentiment_trend",
    "find_streaks",
    "least_squares_slope",
    "compute_trend",
    "analyze_trends",
    "score_users",
    "at_risk_users",
    "build_channel_summaries",
    "build_dashboard_overview",
    "generate_alerts",
    "build_weekly_insight",
    "generate_executive_summary",
    "collect_evidence",
]
