"""Tests for alert generation and manager playbooks."""

from datetime import date, datetime, timezone

from moodwatch.core.alerts import (
    build_weekly_insight, generate_alerts, generate_executive_summary, get_manager_actions, load_playbook,
)
from moodwatch.core.config import Settings
from moodwatch.core.models import (
    AlertState, AlertType, ChannelSummary, Severity, Streak, TrendResult, UserRisk, WeeklyBucket,
)
from moodwatch.services.message_store import InMemoryMessageStore
from moodwatch.services.pipeline import SentimentEngine

CREATED = datetime(2024, 6, 15, 18, 0, tzinfo=timezone.utc)


def _summary(channel_id, avg, name="", risk=50.0):
    return ChannelSummary(
        channel_id=channel_id,
        avg_sentiment=avg,
        total_messages=20,
        active_users=4,
        last_message_at=CREATED,
        burnout_risk_pct=risk,
        channel_name=name,
    )


def _streak(channel_id, length=3, end_day=14, mean=3.0):
    return Streak(channel_id, date(2024, 6, end_day - length + 1), date(2024, 6, end_day), length, mean)


def _trend(channel_id, slope=-0.8, mean=4.5, declining=True):
    return TrendResult(channel_id, slope, mean, 5, declining=declining)


def _user(user_id, mean, negative_pct=50.0, at_risk=True):
    return UserRisk(user_id, mean, negative_pct, channels_active=2, total_messages=10, at_risk=at_risk)


def _weeks(*means):
    return [
        WeeklyBucket(date(2024, 6, 2 + 7 * i), m, 10, 20.0, 50.0, 30.0, 5)
        for i, m in enumerate(means)
    ]


class TestGenerateAlerts:
    """Severity dedup, ordering and evidence."""

    def setup_method(self):
        self.names = {"C1": "eng", "C2": "ops", "C3": "sales", "C4": "support"}

    def test_streak_outranks_low_average(self):
        """A channel with both a streak and a low average gets one critical alert."""
        alerts = generate_alerts([_streak("C1")], [], [], [_summary("C1", 3.2)],
                                 channel_names=self.names, created_at=CREATED)

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.severity is Severity.CRITICAL
        assert alert.alert_type is AlertType.BURNOUT_CRITICAL
        assert alert.message == "CRITICAL: #eng has 3 consecutive days below 4 sentiment (2024-06-12 to 2024-06-14)"
        assert alert.evidence["consecutive_days"] == 3
        suppressed = alert.evidence["suppressed_signals"]
        assert [s["signal"] for s in suppressed] == ["low_sentiment"]

    def test_one_alert_per_channel_in_priority_order(self):
        """Streak, then trend, then high, then medium; first match wins."""
        alerts = generate_alerts(
            streaks=[_streak("C1")],
            trends=[_trend("C1"), _trend("C2")],
            user_risks=[],
            channel_summaries=[_summary("C3", 3.5), _summary("C2", 3.0), _summary("C4", 5.0), _summary("C1", 2.0)],
            channel_names=self.names,
            created_at=CREATED,
        )

        assert [(a.scope, a.severity) for a in alerts] == [
            ("C1", Severity.CRITICAL),
            ("C2", Severity.WARNING),
            ("C3", Severity.HIGH),
            ("C4", Severity.MEDIUM),
        ]
        assert len({a.dedup_key for a in alerts}) == len(alerts)
        assert alerts[1].message == "#ops showing significant decline (trend: -0.80)"
        assert alerts[2].message == "#sales has low sentiment (3.5/10)"
        assert alerts[3].message == "#support sentiment below healthy range (5.0/10)"

    def test_healthy_channel_gets_no_alert(self):
        assert generate_alerts([], [_trend("C1", declining=False)], [], [_summary("C1", 7.0)]) == []

    def test_longest_streak_is_reported(self):
        streaks = [_streak("C1", length=3, end_day=5), _streak("C1", length=4, end_day=14)]
        (alert,) = generate_alerts(streaks, [], [], [], created_at=CREATED)
        assert alert.evidence["consecutive_days"] == 4
        assert alert.evidence["streak_count"] == 2

    def test_unknown_channel_name_uses_id_prefix(self):
        (alert,) = generate_alerts([], [], [], [_summary("C0123456789", 3.0)], created_at=CREATED)
        assert "#channel-C0123456" in alert.message

    def test_user_insights_follow_channel_alerts(self):
        """User insights are never deduplicated against channel alerts."""
        users = [_user("U2", 4.0), _user("U1", 2.5), _user("U3", 6.0, at_risk=False)]
        alerts = generate_alerts([_streak("C1")], [], users, [], created_at=CREATED)

        assert [a.scope for a in alerts] == ["C1", "U1", "U2"]
        u1, u2 = alerts[1], alerts[2]
        assert u1.scope_type == "user"
        assert u1.severity is Severity.CRITICAL
        assert u2.severity is Severity.WARNING
        assert u2.message == "User U2 shows burnout risk signals (4.0/10 average, 50.0% negative)"
        assert u2.business_impact == "Active in 2 channel(s), 50.0% negative messages"

    def test_alert_defaults(self):
        (alert,) = generate_alerts([], [], [], [_summary("C1", 3.0, risk=62.5)], created_at=CREATED)
        assert alert.state is AlertState.OPEN
        assert alert.created_at == CREATED
        assert len(alert.manager_actions) == 5
        assert alert.business_impact == "62.5% of messages show burnout risk signals"
        assert alert.to_dict()["severity"] == "high"


class TestPlaybook:
    """Manager actions and YAML overrides."""

    def test_every_alert_type_has_actions(self):
        for alert_type in AlertType:
            assert get_manager_actions(alert_type)

    def test_yaml_override(self, tmp_path):
        path = tmp_path / "playbook.yaml"
        path.write_text("moderate_concern:\n  actions:\n    - Talk to the team\nbogus: {}\n")
        playbook = load_playbook(str(path))

        assert get_manager_actions(AlertType.MODERATE_CONCERN, playbook) == ("Talk to the team",)
        assert len(get_manager_actions(AlertType.BURNOUT_CRITICAL, playbook)) == 5
        assert "bogus" not in playbook

    def test_missing_file_falls_back_to_defaults(self, tmp_path):
        playbook = load_playbook(str(tmp_path / "absent.yaml"))
        assert get_manager_actions(AlertType.LOW_SENTIMENT, playbook) == get_manager_actions(AlertType.LOW_SENTIMENT)

    def test_non_mapping_file_falls_back_to_defaults(self, tmp_path):
        """A YAML list at the top level is ignored with a warning."""
        path = tmp_path / "playbook.yaml"
        path.write_text("- just\n- a list\n")
        playbook = load_playbook(str(path))
        assert playbook == load_playbook(None)

        engine = SentimentEngine(InMemoryMessageStore(), Settings(actions_playbook_path=str(path)))
        assert engine.playbook == load_playbook(None)

    def test_single_string_action(self, tmp_path):
        """A plain string is one action, not one per character."""
        path = tmp_path / "playbook.yaml"
        path.write_text("individual_risk:\n  actions: Check in today\n")
        playbook = load_playbook(str(path))
        assert get_manager_actions(AlertType.INDIVIDUAL_RISK, playbook) == ("Check in today",)


class TestWeeklyInsight:
    """Executive summary and week-over-week direction."""

    def test_no_weeks(self):
        assert build_weekly_insight([], []) is None

    def test_direction(self):
        assert build_weekly_insight([], _weeks(5.0, 6.0)).trend_direction == "improving"
        assert build_weekly_insight([], _weeks(6.0, 5.0)).trend_direction == "declining"
        insight = build_weekly_insight([], _weeks(6.0))
        assert insight.trend_direction == "stable"
        assert insight.total_contributors == 5

    def test_executive_summary(self):
        alerts = generate_alerts([_streak("C1")], [_trend("C2")], [], [], created_at=CREATED)
        text = generate_executive_summary(alerts, _weeks(6.0, 5.0))

        assert "1 critical burnout risk(s)" in text
        assert "1 moderate concern(s)" in text
        assert "Weekly trend: Declining" in text

    def test_quiet_summary(self):
        assert "Team morale appears stable" in generate_executive_summary([], [])
