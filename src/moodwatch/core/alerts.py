"""Alert generation with per-channel severity dedup."""

import logging
import os
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

import yaml

from .constants import AlertConstants
from .models import (
    Alert, AlertType, ChannelSummary, Severity, Streak, TrendResult, UserRisk, WeeklyBucket, WeeklyInsight,
)
from .summary import channel_label

logger = logging.getLogger(__name__)

# Static manager playbook keyed by alert type
DEFAULT_PLAYBOOK: Dict[str, Dict[str, Any]] = {
    AlertType.BURNOUT_CRITICAL.value: {
        "actions": [
            "IMMEDIATE: Schedule urgent team meeting within 24 hours",
            "PRIORITY: Identify root cause - recent changes, workload, conflicts",
            "PEOPLE: Conduct confidential 1:1s with key team members",
            "METRICS: Review sprint velocity, ticket complexity, deadline pressure",
            "INTERVENTION: Consider temporary workload redistribution",
        ],
        "impact": "High risk of team productivity decline and potential talent attrition",
    },
    AlertType.DECLINING_TREND.value: {
        "actions": [
            "MONITOR: Track daily sentiment for next 3-5 days",
            "INVESTIGATE: Review recent project milestones and deadlines",
            "COMMUNICATE: Increase transparency in team communications",
            "FOCUS: Identify and remove process bottlenecks",
            "MOTIVATE: Celebrate small wins and acknowledge contributions",
        ],
        "impact": "Moderate risk of decreased team engagement and output quality",
    },
    AlertType.LOW_SENTIMENT.value: {
        "actions": [
            "ASSESS: Review recent team dynamics and project status",
            "FEEDBACK: Gather anonymous team feedback",
            "QUICK WIN: Identify immediate process improvements",
            "COMMUNICATION: Hold team retrospective within 1 week",
            "GOALS: Clarify priorities and expectations",
        ],
        "impact": "{burnout_risk_pct:.1f}% of messages show burnout risk signals",
    },
    AlertType.MODERATE_CONCERN.value: {
        "actions": [
            "TRACK: Monitor sentiment daily for early intervention",
            "ENGAGE: Increase casual team interactions",
            "RECOGNIZE: Highlight team achievements publicly",
            "OPTIMIZE: Review and streamline workflows",
            "DOCUMENT: Create action plan for improvement",
        ],
        "impact": "Team morale at moderate risk, preventive action recommended",
    },
    AlertType.INDIVIDUAL_RISK.value: {
        "actions": [
            "1:1 MEETING: Schedule private conversation within 48 hours",
            "WORKLOAD: Review current assignments and deadlines",
            "SUPPORT: Offer additional resources or mentoring",
            "FLEXIBILITY: Consider schedule adjustments or time off",
            "FOLLOW-UP: Check in weekly for next month",
        ],
        "impact": "Active in {channels_active} channel(s), {negative_pct:.1f}% negative messages",
    },
}


def load_playbook(path: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """Load manager actions, overlaying an optional YAML file on the defaults."""
    playbook = {k: dict(v) for k, v in DEFAULT_PLAYBOOK.items()}
    if not path:
        return playbook
    if not os.path.exists(path):
        logger.warning(f"Actions playbook {path} not found. Using defaults.")
        return playbook
    try:
        with open(path, 'r', encoding='utf-8') as f:
            overrides = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load actions playbook: {e}. Using defaults.")
        return playbook
    if not isinstance(overrides, dict):
        logger.warning(f"Actions playbook {path} is not a mapping of alert types. Using defaults.")
        return playbook
    for alert_type, entry in overrides.items():
        if alert_type not in playbook or not isinstance(entry, dict):
            logger.warning(f"Ignoring unknown playbook entry: {alert_type}")
            continue
        if "actions" in entry:
            actions = entry["actions"]
            if isinstance(actions, str):
                entry["actions"] = [actions]
            elif not isinstance(actions, list):
                logger.warning(f"Ignoring non-list actions for {alert_type}")
                del entry["actions"]
        if "impact" in entry:
            entry["impact"] = str(entry["impact"])
        playbook[alert_type].update(entry)
    return playbook


def get_manager_actions(alert_type: AlertType, playbook: Optional[Dict[str, Dict[str, Any]]] = None) -> tuple:
    """Recommended manager actions for an alert type."""
    entry = (playbook or DEFAULT_PLAYBOOK)[alert_type.value]
    actions = entry.get("actions", ())
    if isinstance(actions, str):
        return (actions,)
    return tuple(str(a) for a in actions)


def _business_impact(alert_type: AlertType, evidence: Dict[str, Any], playbook) -> str:
    template = (playbook or DEFAULT_PLAYBOOK)[alert_type.value].get("impact", "")
    try:
        return template.format(**evidence)
    except (KeyError, IndexError, ValueError) as e:
        logger.warning(f"Impact template for {alert_type.value} could not be filled: {e}")
        return template


def _build(scope, scope_type, alert_type, severity, message, evidence, created_at, playbook) -> Alert:
    return Alert(
        scope=scope,
        scope_type=scope_type,
        alert_type=alert_type,
        severity=severity,
        message=message,
        evidence=evidence,
        manager_actions=get_manager_actions(alert_type, playbook),
        business_impact=_business_impact(alert_type, evidence, playbook),
        created_at=created_at,
    )


def _streak_evidence(streak: Streak, count: int) -> Dict[str, Any]:
    return {
        "signal": AlertType.BURNOUT_CRITICAL.value,
        "consecutive_days": streak.length,
        "streak_start": streak.start_date.isoformat(),
        "streak_end": streak.end_date.isoformat(),
        "sentiment_score": round(streak.mean_sentiment_in_streak, 2),
        "streak_count": count,
    }


def _trend_evidence(trend: TrendResult) -> Dict[str, Any]:
    return {
        "signal": AlertType.DECLINING_TREND.value,
        "trend_slope": round(trend.slope, 3),
        "sentiment_score": round(trend.mean_sentiment, 2),
        "points_used": trend.points_used,
    }


def _threshold_signal(summary: ChannelSummary, high: float, medium: float) -> Optional[AlertType]:
    if summary.avg_sentiment < high:
        return AlertType.LOW_SENTIMENT
    if summary.avg_sentiment < medium:
        return AlertType.MODERATE_CONCERN
    return None


def _summary_evidence(summary: ChannelSummary, signal: AlertType) -> Dict[str, Any]:
    return {
        "signal": signal.value,
        "sentiment_score": round(summary.avg_sentiment, 2),
        "burnout_risk_pct": round(summary.burnout_risk_pct, 1),
        "active_users": summary.active_users,
        "total_messages": summary.total_messages,
    }


def generate_alerts(
    streaks: Iterable[Streak],
    trends: Iterable[TrendResult],
    user_risks: Iterable[UserRisk],
    channel_summaries: Iterable[ChannelSummary],
    channel_names: Optional[Dict[str, str]] = None,
    created_at: Optional[datetime] = None,
    playbook: Optional[Dict[str, Dict[str, Any]]] = None,
    low_threshold: float = 4.0,
    high_threshold: float = AlertConstants.HIGH_AVG_SENTIMENT,
    medium_threshold: float = AlertConstants.MEDIUM_AVG_SENTIMENT,
    user_critical_mean: float = AlertConstants.USER_CRITICAL_MEAN,
) -> List[Alert]:
    """
    Merge every risk signal into one ordered alert list.

    Each channel gets at most one alert; the first matching rule wins:
    streak (critical), declining trend (warning), avg below 4.0 (high),
    avg below 5.5 (medium). Lower-priority signals that also matched are
    listed under evidence["suppressed_signals"] of the winning alert.

    Order: streak alerts, then trend alerts, then threshold alerts, then
    individual_risk insights for at-risk users, lowest mean first. User
    insights are never deduplicated against channel alerts.
    """
    created_at = created_at or datetime.now(timezone.utc)

    streaks_by_channel: "OrderedDict[str, List[Streak]]" = OrderedDict()
    for s in streaks:
        streaks_by_channel.setdefault(s.channel_id, []).append(s)
    declines: "OrderedDict[str, TrendResult]" = OrderedDict(
        (t.channel_id, t) for t in trends if t.declining
    )
    summaries: "OrderedDict[str, ChannelSummary]" = OrderedDict(
        (s.channel_id, s) for s in channel_summaries
    )

    names = dict(channel_names or {})
    for cid, s in summaries.items():
        if s.channel_name and cid not in names:
            names[cid] = s.channel_name

    def lower_signals(channel_id: str, after: AlertType) -> List[Dict[str, Any]]:
        found = []
        if after is AlertType.BURNOUT_CRITICAL and channel_id in declines:
            found.append(_trend_evidence(declines[channel_id]))
        summary = summaries.get(channel_id)
        if summary is not None:
            signal = _threshold_signal(summary, high_threshold, medium_threshold)
            if signal is not None:
                found.append(_summary_evidence(summary, signal))
        return found

    alerts: List[Alert] = []
    alerted = set()

    for channel_id, channel_streaks in streaks_by_channel.items():
        streak = max(channel_streaks, key=lambda s: (s.length, s.end_date))
        name = channel_label(channel_id, names)
        evidence = _streak_evidence(streak, len(channel_streaks))
        evidence["suppressed_signals"] = lower_signals(channel_id, AlertType.BURNOUT_CRITICAL)
        message = (
            f"CRITICAL: #{name} has {streak.length} consecutive days below {low_threshold:g} sentiment "
            f"({streak.start_date.isoformat()} to {streak.end_date.isoformat()})"
        )
        alerts.append(_build(channel_id, "channel", AlertType.BURNOUT_CRITICAL, Severity.CRITICAL,
                             message, evidence, created_at, playbook))
        alerted.add(channel_id)

    for channel_id, trend in declines.items():
        if channel_id in alerted:
            continue
        name = channel_label(channel_id, names)
        evidence = _trend_evidence(trend)
        evidence["suppressed_signals"] = lower_signals(channel_id, AlertType.DECLINING_TREND)
        message = f"#{name} showing significant decline (trend: {trend.slope:.2f})"
        alerts.append(_build(channel_id, "channel", AlertType.DECLINING_TREND, Severity.WARNING,
                             message, evidence, created_at, playbook))
        alerted.add(channel_id)

    for channel_id, summary in summaries.items():
        if channel_id in alerted:
            continue
        signal = _threshold_signal(summary, high_threshold, medium_threshold)
        if signal is None:
            continue
        name = channel_label(channel_id, names)
        evidence = _summary_evidence(summary, signal)
        evidence["suppressed_signals"] = []
        if signal is AlertType.LOW_SENTIMENT:
            severity = Severity.HIGH
            message = f"#{name} has low sentiment ({summary.avg_sentiment:.1f}/10)"
        else:
            severity = Severity.MEDIUM
            message = f"#{name} sentiment below healthy range ({summary.avg_sentiment:.1f}/10)"
        alerts.append(_build(channel_id, "channel", signal, severity, message, evidence, created_at, playbook))
        alerted.add(channel_id)

    flagged = sorted((u for u in user_risks if u.at_risk), key=lambda u: (u.mean_sentiment, u.user_id))
    for user in flagged:
        severity = Severity.CRITICAL if user.mean_sentiment < user_critical_mean else Severity.WARNING
        evidence = {
            "signal": AlertType.INDIVIDUAL_RISK.value,
            "avg_sentiment": round(user.mean_sentiment, 2),
            "negative_pct": round(user.negative_pct, 1),
            "channels_active": user.channels_active,
            "total_messages": user.total_messages,
        }
        message = (
            f"User {user.user_id} shows burnout risk signals "
            f"({user.mean_sentiment:.1f}/10 average, {user.negative_pct:.1f}% negative)"
        )
        alerts.append(_build(user.user_id, "user", AlertType.INDIVIDUAL_RISK, severity,
                             message, evidence, created_at, playbook))

    logger.info(f"Generated {len(alerted)} channel alert(s) and {len(flagged)} individual insight(s)")
    return alerts


def generate_executive_summary(alerts: Sequence[Alert], weekly_buckets: Sequence[WeeklyBucket]) -> str:
    """Plain-text summary of an alert run."""
    channel_alerts = [a for a in alerts if a.scope_type == "channel"]
    critical = sum(1 for a in channel_alerts if a.severity is Severity.CRITICAL)
    warnings = sum(1 for a in channel_alerts if a.severity in (Severity.WARNING, Severity.HIGH))

    lines = ["Team Sentiment Analysis Summary:"]
    if critical:
        lines.append(f"{critical} critical burnout risk(s) detected - immediate intervention required.")
    if warnings:
        lines.append(f"{warnings} moderate concern(s) identified - preventive action recommended.")
    if not critical and not warnings:
        lines.append("No immediate sentiment risks detected. Team morale appears stable.")
    if len(weekly_buckets) > 1:
        improving = weekly_buckets[-1].mean_sentiment > weekly_buckets[-2].mean_sentiment
        lines.append(f"Weekly trend: {'Improving' if improving else 'Declining'} sentiment patterns.")
    lines.append("")
    lines.append("Focus areas: Team communication, workload management, and recognition programs.")
    return "\n".join(lines)


def build_weekly_insight(alerts: Sequence[Alert], weekly_buckets: Sequence[WeeklyBucket]) -> Optional[WeeklyInsight]:
    """Week-over-week insight, or None without weekly data."""
    if not weekly_buckets:
        return None
    current = weekly_buckets[-1]
    if len(weekly_buckets) > 1:
        previous = weekly_buckets[-2]
        direction = "improving" if current.mean_sentiment > previous.mean_sentiment else "declining"
    else:
        direction = "stable"
    return WeeklyInsight(
        current_week_mood=current.mean_sentiment,
        trend_direction=direction,
        total_contributors=current.active_users,
        executive_summary=generate_executive_summary(alerts, weekly_buckets),
    )
