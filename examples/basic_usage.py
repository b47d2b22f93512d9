"""Basic usage examples for moodwatch."""

import random
from datetime import datetime, timedelta, timezone

from moodwatch import Channel, Message, SentimentEngine, Settings
from moodwatch.core.evidence import collect_evidence
from moodwatch.services.message_store import InMemoryMessageStore

NOW = datetime(2024, 6, 15, 18, 0, tzinfo=timezone.utc)


def build_snapshot():
    """Three channels over two weeks: one stressed, one steady, one sliding."""
    rng = random.Random(7)
    channels = [Channel("C01", "backend"), Channel("C02", "design"), Channel("C03", "support")]
    messages = []
    for day in range(14):
        ts = NOW - timedelta(days=day, hours=6)
        for user in ("U1", "U2", "U3"):
            messages.append(Message("C01", user, "deadline moved again, so tired", ts, rng.uniform(1.5, 3.5)))
            messages.append(Message("C02", user, "great review today", ts, rng.uniform(6.5, 9.0)))
        messages.append(Message("C03", "U4", "ticket queue keeps growing", ts, min(10.0, 2.0 + day * 0.6)))
    return messages, channels


def example_full_analysis():
    """Example: run every analysis and print the alerts."""
    print("Analyzing two weeks of team messages")

    messages, channels = build_snapshot()
    engine = SentimentEngine(InMemoryMessageStore(messages, channels), Settings())
    report = engine.run(now=NOW)

    overview = report.overview
    print(f"Channels: {overview.total_channels}, health: {overview.sentiment_health}")
    for alert in report.alerts:
        print(f"  [{alert.severity.value}] {alert.message}")
        print(f"    first action: {alert.manager_actions[0]}")

    if report.weekly_insight:
        print(report.weekly_insight.executive_summary)


def example_evidence():
    """Example: the negative messages behind a channel's score."""
    print("\nEvidence for #backend")

    messages, _ = build_snapshot()
    evidence = collect_evidence(messages, channel_id="C01", sentiment="negative", now=NOW)
    print(f"{evidence.total_messages} negative messages, average {evidence.avg_sentiment:.1f}/10")
    for insight in evidence.insights:
        print(f"  {insight.title}: {insight.description}")


if __name__ == "__main__":
    print("moodwatch Examples")
    print("=" * 50)

    example_full_analysis()
    example_evidence()
