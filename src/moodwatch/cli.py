"""Command-line interface for moodwatch."""

import argparse
import logging
import sys
from datetime import timedelta

from .core.config import settings
from .core.constants import FileConstants
from .core.evidence import collect_evidence
from .core.models import parse_timestamp
from .core.timeseries import bucket_daily, bucket_weekly, resolve_now
from .services.message_store import JsonFileMessageStore, MessageStoreError, MessageStoreFactory
from .services.pipeline import SentimentEngine
from .utils.data_prep import export_to_json, prepare_export

logger = logging.getLogger(__name__)


def setup_logging():
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=FileConstants.LOG_FORMAT
    )


def _build_store(args):
    """A file store for --source, otherwise the configured backend."""
    if getattr(args, "source", None):
        return JsonFileMessageStore(args.source)
    return MessageStoreFactory.create(settings)


def _now(args):
    return resolve_now(parse_timestamp(args.now)) if getattr(args, "now", None) else resolve_now(None)


def cmd_analyze(args):
    """Analyze command: run the full pipeline and print a summary."""
    engine = SentimentEngine(_build_store(args), settings)
    report = engine.run(channel_ids=args.channel, now=_now(args))

    overview = report.overview
    print(f"Analyzed {overview.total_messages} messages across {overview.total_channels} channel(s)")
    print(f"Average sentiment: {overview.avg_sentiment_all_channels:.2f}/10 ({overview.sentiment_health})")
    print(f"Average burnout risk: {overview.avg_burnout_risk:.1f}%")
    if report.quality_notes:
        print(f"Excluded {len(report.quality_notes)} message(s) with invalid scores")

    print(f"\nChannel alerts: {len(report.channel_alerts)}")
    for alert in report.channel_alerts:
        print(f"  [{alert.severity.value}] {alert.message}")
    print(f"Individual risks: {len(report.user_insights)}")
    for insight in report.user_insights:
        print(f"  [{insight.severity.value}] {insight.message}")

    if report.weekly_insight:
        print(f"\n{report.weekly_insight.executive_summary}")

    if args.out:
        export_to_json(prepare_export(report), args.out)
        print(f"\nResults exported to {args.out}")


def cmd_alerts(args):
    """Alerts command: print alerts with recommended actions."""
    engine = SentimentEngine(_build_store(args), settings)
    report = engine.run(channel_ids=args.channel, now=_now(args))

    if not report.alerts:
        print("No alerts. Team morale appears stable.")
        return

    for alert in report.alerts:
        print(f"[{alert.severity.value.upper()}] {alert.alert_type.value}: {alert.message}")
        print(f"  Impact: {alert.business_impact}")
        for action in alert.manager_actions:
            print(f"  - {action}")
        print()


def cmd_trends(args):
    """Trends command: print the daily or weekly mood series."""
    store = _build_store(args)
    now = _now(args)
    tz = settings.reference_timezone
    messages = store.fetch_messages(channel_id=args.channel, since=now - timedelta(days=args.days))

    if args.weekly:
        weeks = max(1, args.days // 7)
        for b in bucket_weekly(messages, weeks, channel_id=args.channel, now=now, tz=tz):
            print(f"week of {b.week_start}: {b.mean_sentiment:.2f}/10  {b.message_count} msgs  "
                  f"{b.negative_pct:.1f}% negative  {b.active_users} users")
    else:
        for b in bucket_daily(messages, args.days, channel_id=args.channel, now=now, tz=tz):
            print(f"{b.date}: {b.mean_sentiment:.2f}/10  {b.message_count} msgs  "
                  f"+{b.positive_pct:.1f}% ~{b.neutral_pct:.1f}% -{b.negative_pct:.1f}%")


def cmd_evidence(args):
    """Evidence command: show the messages behind a sentiment reading."""
    store = _build_store(args)
    now = _now(args)
    messages = store.fetch_messages(channel_id=args.channel, since=now - timedelta(days=args.days))
    report = collect_evidence(messages, channel_id=args.channel, sentiment=args.sentiment,
                              window_days=args.days, now=now)

    print(f"{report.total_messages} messages, average {report.avg_sentiment:.2f}/10")
    print(f"Distribution: {report.sentiment_distribution}")
    if report.word_cloud:
        print("Top words: " + ", ".join(f"{w} ({c})" for w, c in report.word_cloud[:10]))
    for insight in report.insights:
        print(f"\n{insight.title}: {insight.description}")
        print(f"  -> {insight.recommendation}")

    if args.out:
        export_to_json(report.to_dict(), args.out)
        print(f"\nEvidence exported to {args.out}")


def build_parser():
    parser = argparse.ArgumentParser(description="moodwatch - Team Sentiment & Burnout Analytics")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    def add_source(p):
        p.add_argument('--source', help='JSON or CSV message snapshot (overrides the configured store)')
        p.add_argument('--now', help='Reference time (ISO-8601), defaults to the current time')

    # Analyze command
    analyze_parser = subparsers.add_parser('analyze', help='Run the full analysis')
    add_source(analyze_parser)
    analyze_parser.add_argument('--channel', action='append', help='Restrict to a channel id (repeatable)')
    analyze_parser.add_argument('--out', help='Output JSON file')

    # Alerts command
    alerts_parser = subparsers.add_parser('alerts', help='Show alerts and recommended actions')
    add_source(alerts_parser)
    alerts_parser.add_argument('--channel', action='append', help='Restrict to a channel id (repeatable)')

    # Trends command
    trends_parser = subparsers.add_parser('trends', help='Show the mood series')
    add_source(trends_parser)
    trends_parser.add_argument('--channel', help='Channel id (default: all channels)')
    trends_parser.add_argument('--days', type=int, default=settings.daily_trend_days, help='Lookback in days')
    trends_parser.add_argument('--weekly', action='store_true', help='Bucket by week instead of day')

    # Evidence command
    evidence_parser = subparsers.add_parser('evidence', help='Show messages behind a sentiment reading')
    add_source(evidence_parser)
    evidence_parser.add_argument('--channel', help='Channel id (default: all channels)')
    evidence_parser.add_argument('--sentiment', choices=['positive', 'neutral', 'negative'], help='Label filter')
    evidence_parser.add_argument('--days', type=int, default=7, help='Lookback in days')
    evidence_parser.add_argument('--out', help='Output JSON file')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    setup_logging()

    commands = {
        'analyze': cmd_analyze,
        'alerts': cmd_alerts,
        'trends': cmd_trends,
        'evidence': cmd_evidence,
    }
    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
    except MessageStoreError as e:
        logger.error(f"Message store unavailable: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
