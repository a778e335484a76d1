"""상태머신 전이 / 교차 판정 / 손절 테스트."""

import pytest

from trend_system.core.signal_types import BarSignals, PositionDirection
from trend_system.strategies.trend_state_machine import (
    TRANSITION_TABLE,
    Condition,
    TrendState,
    TrendStateMachine,
    crosses_above,
    crosses_below,
    is_stop_loss_hit,
)


def sig(small=0.0, medium=0.0, large=0.0, slope=0.0):
    return BarSignals(ma_small=small, ma_medium=medium, ma_large=large, slope=slope)


@pytest.fixture
def machine():
    return TrendStateMachine(slope_minimum=0.1, stop_loss_fraction=0.2)


def step_flat_value(machine, state, previous, current):
    """손절이 걸리지 않는 자산 값으로 전이."""
    return machine.next_state(state, previous, current, prior_portfolio_value=1000, last_trade_investment=1000)


class TestCrossing:

    def test_crosses_above_from_equal(self):
        assert crosses_above(2, 1, 1, 1)

    def test_crosses_above_requires_prior_at_or_below(self):
        assert not crosses_above(2, 1, 2, 1)

    def test_crosses_above_requires_strictly_above_now(self):
        assert not crosses_above(1, 1, 0, 1)

    def test_crosses_below_from_equal(self):
        assert crosses_below(0, 1, 1, 1)

    def test_crosses_below_requires_prior_at_or_above(self):
        assert not crosses_below(0, 1, 0, 1)


class TestDirection:

    @pytest.mark.parametrize("state,expected", [
        (TrendState.FLAT, PositionDirection.FLAT),
        (TrendState.LONG_ARMED, PositionDirection.FLAT),
        (TrendState.LONG_CONFIRMED, PositionDirection.LONG),
        (TrendState.LONG_UNWINDING, PositionDirection.LONG),
        (TrendState.SHORT_ARMED, PositionDirection.FLAT),
        (TrendState.SHORT_CONFIRMED, PositionDirection.SHORT),
        (TrendState.SHORT_UNWINDING, PositionDirection.SHORT),
    ])
    def test_state_direction(self, state, expected):
        assert state.direction is expected

    def test_every_state_has_table_entry(self):
        assert set(TRANSITION_TABLE) == set(TrendState)


class TestTransitions:

    @pytest.mark.parametrize("state,previous,current,expected", [
        (TrendState.FLAT, sig(1, 1), sig(2, 1, slope=1), TrendState.LONG_ARMED),
        (TrendState.FLAT, sig(1, 1), sig(0, 1, slope=-1), TrendState.SHORT_ARMED),
        (TrendState.LONG_ARMED, sig(1, large=1), sig(2, large=1), TrendState.LONG_CONFIRMED),
        (TrendState.LONG_CONFIRMED, sig(2, 1), sig(0, 1), TrendState.LONG_UNWINDING),
        (TrendState.LONG_UNWINDING, sig(2, large=1), sig(0, large=1), TrendState.FLAT),
        (TrendState.SHORT_ARMED, sig(2, large=1), sig(0, large=1), TrendState.SHORT_CONFIRMED),
        (TrendState.SHORT_CONFIRMED, sig(0, 1), sig(2, 1), TrendState.SHORT_UNWINDING),
        (TrendState.SHORT_UNWINDING, sig(0, large=1), sig(2, large=1), TrendState.FLAT),
    ])
    def test_table_transition(self, machine, state, previous, current, expected):
        transition = step_flat_value(machine, state, previous, current)
        assert transition.state is expected
        assert transition.condition is not None
        assert not transition.stop_loss_triggered

    def test_flat_needs_slope_above_minimum(self, machine):
        transition = step_flat_value(machine, TrendState.FLAT, sig(1, 1), sig(2, 1, slope=0.1))
        assert transition.state is TrendState.FLAT

    def test_flat_short_needs_slope_below_negative_minimum(self, machine):
        transition = step_flat_value(machine, TrendState.FLAT, sig(1, 1), sig(0, 1, slope=-0.05))
        assert transition.state is TrendState.FLAT

    def test_long_armed_ignores_medium_cross(self, machine):
        # LONG_ARMED는 장기선 교차만 본다
        transition = step_flat_value(machine, TrendState.LONG_ARMED, sig(0, 1, large=5), sig(2, 1, large=5))
        assert transition.state is TrendState.LONG_ARMED

    def test_no_condition_keeps_state(self, machine):
        for state in TrendState:
            transition = step_flat_value(machine, state, sig(5, 5, 5), sig(5, 5, 5))
            assert transition.state is state
            assert transition.condition is None

    def test_condition_recorded(self, machine):
        transition = step_flat_value(machine, TrendState.FLAT, sig(1, 1), sig(2, 1, slope=1))
        assert transition.condition is Condition.UPTREND_SMALL_ABOVE_MEDIUM


class TestStopLoss:

    def test_loss_beyond_fraction(self):
        assert is_stop_loss_hit(TrendState.LONG_CONFIRMED, 790, 1000, 0.2)

    def test_loss_equal_to_fraction_does_not_trigger(self):
        assert not is_stop_loss_hit(TrendState.SHORT_UNWINDING, 800, 1000, 0.2)

    @pytest.mark.parametrize("state", [TrendState.FLAT, TrendState.LONG_ARMED, TrendState.SHORT_ARMED])
    def test_not_invested_never_triggers(self, state):
        assert not is_stop_loss_hit(state, 1, 1000, 0.2)

    def test_zero_investment_never_triggers(self):
        assert not is_stop_loss_hit(TrendState.LONG_CONFIRMED, 0, 0, 0.2)

    @pytest.mark.parametrize("state", [
        TrendState.LONG_CONFIRMED,
        TrendState.LONG_UNWINDING,
        TrendState.SHORT_CONFIRMED,
        TrendState.SHORT_UNWINDING,
    ])
    def test_preempts_table(self, machine, state):
        # 교차 조건이 성립해도 손절이 우선
        transition = machine.next_state(
            state, sig(0, 1, 1), sig(2, 1, 1),
            prior_portfolio_value=500, last_trade_investment=1000,
        )
        assert transition.state is TrendState.FLAT
        assert transition.stop_loss_triggered
        assert transition.condition is None
        assert transition.direction is PositionDirection.FLAT
