"""
Unit tests for utils.py module.
"""

import pandas as pd
import pytest

from fdsim.exceptions import ConfigurationError
from fdsim.utils import (
    check_non_negative,
    clamp,
    drawdown,
    format_money,
    format_pct,
    round_half_up,
)


class TestNumeric:
    def test_clamp(self):
        assert clamp(5, 0, 10) == 5
        assert clamp(-1, 0, 10) == 0
        assert clamp(11, 0, 10) == 10

    @pytest.mark.parametrize("x,expected", [
        (2.5, 3),
        (-2.5, -2),
        (2.4999, 2),
        (-0.5, 0),
        (10, 10),
    ])
    def test_round_half_up(self, x, expected):
        assert round_half_up(x) == expected

    def test_check_non_negative(self):
        check_non_negative("years", 0)
        with pytest.raises(ConfigurationError, match="years"):
            check_non_negative("years", -1)


class TestDrawdown:
    """Test drawdown series."""

    def test_basic(self):
        dd = drawdown(pd.Series([100.0, 50.0, 150.0, 75.0]))
        assert list(dd) == pytest.approx([0.0, -0.5, 0.0, -0.5])

    def test_non_positive_peak(self):
        dd = drawdown(pd.Series([-10.0, -5.0, -20.0]))
        assert list(dd) == [0.0, 0.0, 0.0]

    def test_empty(self):
        assert drawdown(pd.Series([], dtype=float)).empty


class TestFormatting:
    def test_format_money(self):
        assert format_money(1234) == "$1,234"
        assert format_money(-1234.6) == "-$1,235"
        assert format_money(0) == "$0"

    def test_format_pct(self):
        assert format_pct(0.115) == "11.5%"
        assert format_pct(-0.05, decimals=0) == "-5%"
