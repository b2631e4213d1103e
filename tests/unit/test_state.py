"""
Unit tests for state.py module.

Tests initial state construction, clamping, flags and net worth.
"""

from types import SimpleNamespace

import pydantic
import pytest

from fdsim.config import StateOverrides
from fdsim.state import (
    DEFAULT_STATE,
    add_log,
    clamp_bounded,
    create_initial_state,
    default_flags,
    get_flag,
    net_worth,
)


class TestInitialState:
    """Test create_initial_state defaults and overrides."""

    def test_defaults(self):
        s = create_initial_state()
        assert s.year == 1
        assert s.cash == 8000
        assert s.invested == 0
        assert s.debt == 12000
        assert s.income == 52000
        assert s.expenses == 36000
        assert s.stress == 25
        assert s.risk == 0.45
        assert s.discipline == 0.50
        assert s.burnout == 0
        assert s.rental_units == 0
        assert s.side_hustle_level == 0
        assert s.run_meta is None
        assert s.history == []
        assert s.log == []

    def test_default_flags(self):
        s = create_initial_state()
        assert s.flags == default_flags()
        assert s.flags["laid_off"] is False

    def test_flags_not_shared_between_states(self):
        a = create_initial_state()
        b = create_initial_state()
        a.flags["auto_invest"] = 3
        assert b.flags["auto_invest"] == 0

    def test_overrides_mapping(self):
        s = create_initial_state({"cash": 100, "debt": 0, "year": 4})
        assert s.cash == 100
        assert s.debt == 0
        assert s.year == 4
        assert s.income == DEFAULT_STATE["income"]

    def test_camel_case_overrides(self):
        s = create_initial_state({"rentalUnits": 2, "sideHustleLevel": 1})
        assert s.rental_units == 2
        assert s.side_hustle_level == 1

    def test_overrides_model(self):
        s = create_initial_state(StateOverrides(income=0, expenses=0))
        assert s.income == 0
        assert s.expenses == 0

    def test_gauges_clamped(self):
        s = create_initial_state({"stress": 140, "burnout": -5, "risk": 1.7, "discipline": -0.2})
        assert s.stress == 100
        assert s.burnout == 0
        assert s.risk == 1
        assert s.discipline == 0

    def test_unknown_key_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            create_initial_state({"cahs": 100})

    def test_negative_counter_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            create_initial_state({"rental_units": -1})


class TestClamping:
    """Test clamp_bounded."""

    def test_clamp_bounded(self):
        s = create_initial_state()
        s.stress, s.burnout, s.risk, s.discipline = 250, -3, -1, 2
        clamp_bounded(s)
        assert (s.stress, s.burnout, s.risk, s.discipline) == (100, 0, 0, 1)


class TestFlags:
    """Test get_flag tolerance."""

    def test_existing_flag(self):
        s = create_initial_state()
        s.flags["refi_level"] = 2
        assert get_flag(s, "refi_level") == 2

    def test_missing_key_fallback(self):
        s = create_initial_state()
        assert get_flag(s, "nope") == 0
        assert get_flag(s, "nope", fallback=None) is None

    def test_missing_flags_object(self):
        assert get_flag(SimpleNamespace(flags=None), "medical_debt", 7) == 7
        assert get_flag(SimpleNamespace(), "medical_debt") == 0


class TestNetWorth:
    """Test the net worth formula."""

    def test_documented_example(self):
        s = create_initial_state({"cash": 100, "invested": 50, "debt": 30, "rental_units": 1})
        s.flags["medical_debt"] = 20
        assert net_worth(s) == 15100

    def test_formula(self):
        s = create_initial_state({"cash": 1234.5, "invested": 999, "debt": 40000, "rental_units": 3})
        s.flags["medical_debt"] = 321.25
        expected = 1234.5 + 999 + 3 * 15000 - 40000 - 321.25
        assert net_worth(s) == expected

    def test_missing_medical_debt(self):
        s = create_initial_state({"cash": 10, "debt": 0})
        del s.flags["medical_debt"]
        assert net_worth(s) == 10

    def test_pure(self):
        s = create_initial_state()
        before = (s.cash, s.invested, s.debt, dict(s.flags))
        net_worth(s)
        assert (s.cash, s.invested, s.debt, dict(s.flags)) == before


class TestLog:
    def test_add_log(self):
        s = create_initial_state()
        add_log(s, {"type": "system", "title": "T", "text": "x"})
        assert s.log == [{"type": "system", "title": "T", "text": "x"}]
