"""
Tests for shared statistics helpers and cancellation.
"""

import numpy as np
import pytest

from process_mining.cancellation import CancellationToken, check_cancelled
from process_mining.errors import InvalidInputError, OperationCancelledError
from process_mining.stats import (
    MS_PER_DAY,
    confidence_interval,
    convert_for_json,
    describe,
    format_duration,
    linear_slope,
    percentile,
    round_pct,
    to_ms,
)


class TestDescribe:
    """Tests for the statistics block."""

    def test_empty(self):
        """Empty input gives an all-zero block."""
        block = describe([])
        assert block["count"] == 0
        assert all(v == 0 for v in block.values())

    def test_values(self):
        """True median, sample stddev and nearest-rank percentiles."""
        block = describe([4, 1, 3, 2])
        assert block["count"] == 4
        assert block["median"] == 2  # 2.5 rounds half to even
        assert block["min"] == 1
        assert block["max"] == 4
        assert block["stddev"] == 1
        assert block["p75"] == 4
        assert block["p99"] == 4

    def test_ordering(self):
        """min <= median <= p75 <= p90 <= p95 <= p99 <= max."""
        block = describe(list(range(1, 101)))
        assert block["min"] <= block["median"] <= block["p75"] <= block["p90"]
        assert block["p90"] <= block["p95"] <= block["p99"] <= block["max"]
        assert block["p90"] == 91

    def test_single_value(self):
        """One observation has zero stddev."""
        assert describe([7])["stddev"] == 0


class TestHelpers:
    """Tests for small helpers."""

    def test_percentile_clamps(self):
        """Index is clamped to the last element."""
        assert percentile([1, 2, 3], 0.99) == 3
        assert percentile([], 0.5) == 0

    def test_round_pct(self):
        """Two decimals, default on zero denominator."""
        assert round_pct(1, 3) == 33.33
        assert round_pct(1, 0) == 0.0
        assert round_pct(1, 0, default=None) is None

    def test_to_ms(self):
        """Units normalize to milliseconds; unknown units pass through."""
        assert to_ms(2, "days") == 2 * MS_PER_DAY
        assert to_ms(3, "hours") == 3 * 3600 * 1000
        assert to_ms(5, "fortnights") == 5

    def test_format_duration(self):
        """Durations pick the largest fitting unit."""
        assert format_duration(None) == "N/A"
        assert format_duration(250) == "250ms"
        assert format_duration(1500) == "1.5s"
        assert format_duration(90 * 60 * 1000) == "1.5h"
        assert format_duration(3 * MS_PER_DAY) == "3.0d"

    def test_linear_slope(self):
        """Slope of a straight line."""
        assert linear_slope([1, 3, 5, 7]) == pytest.approx(2.0)
        assert linear_slope([5]) == 0.0

    def test_convert_for_json(self):
        """numpy scalars and arrays become builtins."""
        converted = convert_for_json({"a": np.int64(3), "b": np.float64(1.5), "c": np.array([1, 2])})
        assert converted == {"a": 3, "b": 1.5, "c": [1, 2]}
        assert type(converted["a"]) is int


class TestConfidenceInterval:
    """Tests for confidence intervals."""

    def test_empty(self):
        """Empty samples have no interval."""
        assert confidence_interval([]) is None

    def test_contains_mean(self):
        """The interval brackets the mean."""
        ci = confidence_interval([10, 12, 14, 16, 18])
        assert ci["lower"] < 14 < ci["upper"]
        assert ci["marginOfError"] == pytest.approx(ci["upper"] - 14, abs=0.01)

    def test_small_sample_uses_t(self):
        """Small samples are wider than the normal approximation would give."""
        ci = confidence_interval([1, 2, 3])
        # t(0.975, 2) = 4.303, s = 1, n = 3
        assert ci["marginOfError"] == pytest.approx(4.303 / 3 ** 0.5, abs=0.01)

    def test_invalid_level(self):
        """Level must lie strictly between 0 and 1."""
        with pytest.raises(InvalidInputError):
            confidence_interval([1, 2], level=1.0)


class TestCancellation:
    """Tests for the cancellation token."""

    def test_not_cancelled(self):
        """No error before cancel() or without a token."""
        check_cancelled(CancellationToken(), "test")
        check_cancelled(None)

    def test_cancelled(self):
        """Cancelled tokens raise."""
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled()
        with pytest.raises(OperationCancelledError, match="during test"):
            check_cancelled(token, "test")
