"""
Unit tests for economy.py module.

Tests the passive yearly stages: layoff, cashflow, auto-invest, debt
interest, market return and stress/burnout drift.
"""

import pytest

from fdsim.economy import (
    apply_auto_invest,
    apply_debt_interest,
    apply_market_return,
    apply_shock_buffer,
    apply_yearly_cashflow,
    debt_apr,
    resolve_layoff_flag,
    update_stress_and_burnout,
)


class TestShockBuffer:
    def test_no_buffer(self, state):
        assert apply_shock_buffer(state, 1000) == 1000

    def test_max_buffer(self, state):
        state.flags["emergency_fund_buff"] = 3
        assert 789 <= apply_shock_buffer(state, 1000) <= 790

    def test_never_negative(self, state):
        state.flags["emergency_fund_buff"] = 3
        assert apply_shock_buffer(state, 0) == 0


class TestLayoff:
    """Test resolve_layoff_flag."""

    def test_no_flag_no_change(self, state):
        resolve_layoff_flag(state)
        assert state.income == 52000
        assert state.log == []

    def test_cut_and_clear(self, make_state):
        s = make_state(income=20000)
        s.flags["laid_off"] = True
        resolve_layoff_flag(s)
        assert s.income == 11000
        assert s.flags["laid_off"] is False
        assert s.log[-1]["title"] == "Income Disruption"
        assert "45%" in s.log[-1]["text"]

    def test_cuts_compound(self, make_state):
        s = make_state(income=20000)
        for _ in range(2):
            s.flags["laid_off"] = True
            resolve_layoff_flag(s)
        assert s.income == 6050


class TestCashflow:
    """Test apply_yearly_cashflow."""

    def test_surplus(self, state):
        apply_yearly_cashflow(state)
        assert state.cash == 8000 + 52000 - 36000
        assert state.log == []

    def test_shortfall_into_debt(self, make_state):
        s = make_state(cash=0, debt=0, income=0, expenses=1000)
        stress_before = s.stress
        apply_yearly_cashflow(s)
        assert s.cash == 0
        assert s.debt == pytest.approx(1050)
        assert s.stress == stress_before + 10
        assert s.log[-1]["title"] == "Cash Shortfall"

    def test_shortfall_buffered(self, make_state):
        s = make_state(cash=0, debt=0, income=0, expenses=1000)
        s.flags["emergency_fund_buff"] = 1
        apply_yearly_cashflow(s)
        assert s.debt < 1050
        assert s.debt == pytest.approx(apply_shock_buffer(s, 1000) * 1.05)

    def test_stress_clamped(self, make_state):
        s = make_state(cash=0, income=0, expenses=1000, stress=95)
        apply_yearly_cashflow(s)
        assert s.stress == 100


class TestAutoInvest:
    """Test apply_auto_invest."""

    def test_disabled(self, state):
        apply_auto_invest(state)
        assert state.invested == 0

    def test_capped_at_2500(self, make_state):
        s = make_state(income=100000, cash=10000)
        s.flags["auto_invest"] = 5
        apply_auto_invest(s)
        assert s.invested == 2500
        assert s.cash == 7500
        assert s.discipline == pytest.approx(0.51)
        assert s.stress == 24
        assert s.log[-1]["title"] == "Auto-Invest"

    def test_floor_200(self, make_state):
        s = make_state(income=1000, cash=10000)
        s.flags["auto_invest"] = 1
        apply_auto_invest(s)
        assert s.invested == 200

    def test_limited_by_cash(self, make_state):
        s = make_state(income=100000, cash=100)
        s.flags["auto_invest"] = 5
        apply_auto_invest(s)
        assert s.invested == 100
        assert s.cash == 0

    def test_no_cash_no_log(self, make_state):
        s = make_state(cash=0)
        s.flags["auto_invest"] = 2
        apply_auto_invest(s)
        assert s.invested == 0
        assert s.log == []


class TestDebtInterest:
    """Test debt_apr and apply_debt_interest."""

    def test_base_apr(self, state):
        # 10% + 25/100 * 6%
        assert debt_apr(state) == pytest.approx(0.115)

    def test_low_cash_penalty(self, make_state):
        assert debt_apr(make_state(cash=1000)) == pytest.approx(0.145)

    def test_refi_discount(self, state):
        state.flags["refi_level"] = 1
        assert debt_apr(state) == pytest.approx(0.085)
        state.flags["refi_level"] = 2
        assert debt_apr(state) == pytest.approx(0.065)

    def test_interest_applied_and_logged(self, make_state):
        s = make_state(debt=10000)
        apply_debt_interest(s)
        assert s.debt == pytest.approx(11150)
        assert s.log[-1]["title"] == "Debt Interest"
        assert "11.5%" in s.log[-1]["text"]

    def test_zero_debt_still_logged(self, make_state):
        s = make_state(debt=0)
        apply_debt_interest(s)
        assert s.debt == 0
        assert len(s.log) == 1


class TestMarketReturn:
    """Test apply_market_return."""

    def test_neutral_noise(self, make_state, scripted_rng):
        s = make_state(invested=1000, stress=0)
        rng = scripted_rng(0.5)
        r = apply_market_return(s, rng)
        assert r == pytest.approx(0.07)
        assert s.invested == pytest.approx(1070)
        assert rng.calls == 4

    def test_worst_noise(self, make_state, scripted_rng):
        s = make_state(invested=1000, stress=0)
        r = apply_market_return(s, scripted_rng(0.0))
        assert r == pytest.approx(0.07 - 0.18)

    def test_drags(self, make_state, scripted_rng):
        s = make_state(invested=1000, stress=100)
        s.flags["regret_drag"] = 2
        r = apply_market_return(s, scripted_rng(0.5))
        assert r == pytest.approx(0.07 - 0.03 - 0.024)

    def test_logged_with_rate(self, make_state, scripted_rng):
        s = make_state(invested=1000, stress=0)
        r = apply_market_return(s, scripted_rng(0.5))
        entry = s.log[-1]
        assert entry["type"] == "market"
        assert entry["title"] == "Market Return"
        assert entry["meta"]["return_rate"] == r
        assert "grew" in entry["text"]

    def test_bounded(self, make_state):
        from fdsim.rng import create_rng

        rng = create_rng("market")
        s = make_state(invested=1000)
        for _ in range(500):
            assert -0.45 <= apply_market_return(s, rng) <= 0.45


class TestDrift:
    """Test update_stress_and_burnout."""

    def test_calm_year(self, make_state):
        s = make_state(stress=20, burnout=10)
        update_stress_and_burnout(s)
        # +1 base, -2 for low stress
        assert s.burnout == 9
        assert s.stress == 20

    def test_workload_and_fragility(self, make_state):
        s = make_state(
            stress=70, burnout=0, side_hustle_level=1, rental_units=1,
            cash=1000, debt=30000, discipline=0.7,
        )
        s.flags["medical_debt"] = 100
        update_stress_and_burnout(s)
        assert s.burnout == 4 + 2 + 2
        assert s.stress == 70 + 6 + 6 + 4 - 2

    def test_burnout_spiral(self, make_state):
        s = make_state(stress=50, burnout=85, expenses=36000, discipline=0.5)
        update_stress_and_burnout(s)
        assert s.burnout == 86
        assert 37439 <= s.expenses <= 37440
        assert s.discipline == pytest.approx(0.47)
        assert s.log[-1]["title"] == "Burnout Spiral"

    def test_clamped(self, make_state):
        s = make_state(stress=99, burnout=99, rental_units=5, cash=0, debt=50000)
        update_stress_and_burnout(s)
        assert s.burnout == 100
        assert s.stress == 100
