"""Tests for the command-line interface."""

import json

import pytest

from moodwatch.cli import build_parser, main

NOW = "2024-06-15T18:00:00Z"


@pytest.fixture
def snapshot(tmp_path):
    messages = []
    for day in range(11, 16):
        messages.append({
            "channel_id": "C1",
            "user_id": "U1",
            "text": "deadline stress again",
            "timestamp": f"2024-06-{day}T12:00:00Z",
            "sentiment_score": 2,
        })
        messages.append({
            "channel_id": "C2",
            "user_id": "U2",
            "text": "great launch",
            "timestamp": f"2024-06-{day}T13:00:00Z",
            "sentiment_score": 8,
        })
    messages.append({"channel_id": "C2", "user_id": "U3", "timestamp": "2024-06-15T09:00:00Z",
                     "sentiment_score": 15})
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps({"messages": messages, "channels": [{"id": "C1", "name": "eng"}]}))
    return str(path)


def test_parser_commands():
    parser = build_parser()
    args = parser.parse_args(["trends", "--channel", "C1", "--weekly"])
    assert args.command == "trends"
    assert args.weekly is True


def test_only_analysis_commands():
    """Reports are written with --out; there is no separate export command."""
    parser = build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["export", "--in", "report.json"])


def test_analyze_exports_report(snapshot, tmp_path, capsys):
    out = tmp_path / "report.json"
    main(["analyze", "--source", snapshot, "--now", NOW, "--out", str(out)])

    printed = capsys.readouterr().out
    assert "Analyzed 10 messages across 2 channel(s)" in printed
    assert "Excluded 1 message(s)" in printed
    assert "CRITICAL: #eng has 5 consecutive days" in printed

    data = json.loads(out.read_text())
    assert data["summary"]["critical_alerts"] == 1
    assert data["metadata"]["version"] == "1.0.0"
    assert data["metadata"]["export_timestamp"]


def test_alerts_lists_actions(snapshot, capsys):
    main(["alerts", "--source", snapshot, "--now", NOW])
    printed = capsys.readouterr().out
    assert "[CRITICAL] burnout_critical" in printed
    assert "IMMEDIATE: Schedule urgent team meeting within 24 hours" in printed


def test_trends_daily(snapshot, capsys):
    main(["trends", "--source", snapshot, "--now", NOW, "--channel", "C1", "--days", "7"])
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 5
    assert lines[0].startswith("2024-06-11: 2.00/10")


def test_evidence(snapshot, capsys):
    main(["evidence", "--source", snapshot, "--now", NOW, "--channel", "C1", "--sentiment", "negative"])
    printed = capsys.readouterr().out
    assert "5 messages, average 2.00/10" in printed
    assert "Stress Indicators Detected" in printed


def test_missing_source_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["analyze", "--source", str(tmp_path / "absent.json"), "--now", NOW])
    assert exc.value.code == 1


