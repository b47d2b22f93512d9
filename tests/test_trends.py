"""Tests for trend slope computation."""

from datetime import datetime, timezone

import pytest

from moodwatch.core.trends import analyze_trends, compute_trend, least_squares_slope
from conftest import make_buckets


def test_slope_of_linear_series():
    """A perfectly linear rise of 1/day has slope 1."""
    assert least_squares_slope([2, 3, 4, 5, 6]) == pytest.approx(1.0)


def test_slope_of_constant_series():
    assert least_squares_slope([5, 5, 5]) == 0.0


def test_slope_needs_two_points():
    assert least_squares_slope([5]) is None
    assert least_squares_slope([]) is None


class TestComputeTrend:
    """Decline detection over the trailing window."""

    def test_declining_low_channel(self):
        """Falling slope with a low mean is a decline."""
        trend = compute_trend(make_buckets([6, 5, 4, 3, 2]))

        assert trend.slope == pytest.approx(-1.0)
        assert trend.mean_sentiment == pytest.approx(4.0)
        assert trend.points_used == 5
        assert trend.declining is True

    def test_high_baseline_dip_is_not_decline(self):
        """Falling slope but mean >= 6 is not flagged."""
        trend = compute_trend(make_buckets([9, 8, 7, 6, 5]))
        assert trend.slope == pytest.approx(-1.0)
        assert trend.declining is False

    def test_gentle_slope_is_not_decline(self):
        """Slope must be strictly below -0.3."""
        trend = compute_trend(make_buckets([5.0, 4.9, 4.8, 4.7, 4.6]))
        assert trend.declining is False

    def test_too_few_points(self):
        assert compute_trend(make_buckets([5, 4])) is None
        assert compute_trend([]) is None

    def test_window_keeps_only_recent_days(self):
        """Only the last window_days dates are fitted."""
        trend = compute_trend(make_buckets([1, 1, 1, 9, 8, 7, 6, 5]), window_days=5)
        assert trend.points_used == 5
        assert trend.max_sentiment == 9

    def test_window_anchored_on_now(self):
        """With now far past the data, the window is empty."""
        now = datetime(2024, 7, 1, tzinfo=timezone.utc)
        assert compute_trend(make_buckets([6, 5, 4, 3, 2]), now=now) is None

    def test_sparse_days_use_bucket_order(self):
        """Missing days shrink the point count rather than filling in values."""
        trend = compute_trend(make_buckets([6, 4, 2], skip=(1, 3)), window_days=5)
        assert trend.points_used == 3
        assert trend.slope == pytest.approx(-2.0)


def test_analyze_trends_per_channel():
    """Channels without enough points are left out."""
    buckets = make_buckets([6, 5, 4, 3, 2], channel_id="C1") + make_buckets([5], channel_id="C2")
    trends = analyze_trends(buckets)

    assert [t.channel_id for t in trends] == ["C1"]
    assert trends[0].declining
