"""백테스트 엔진 테스트 (워밍업, 시나리오, 손절, 파라미터 오류)."""

import logging

import numpy as np
import pytest

from conftest import LONG_STOP_PRICES, SHORT_CYCLE_PRICES
from trend_system.backtest.engine import BacktestEngine, StepState, step
from trend_system.core.data_provider import PriceSeries
from trend_system.core.exceptions import InsufficientDataError
from trend_system.core.parameters import ParameterSet
from trend_system.core.signal_types import NEUTRAL_SIGNALS, BarSignals, PositionDirection
from trend_system.strategies.trend_state_machine import TrendState, TrendStateMachine

FLAT = PositionDirection.FLAT
LONG = PositionDirection.LONG
SHORT = PositionDirection.SHORT


def random_walk(seed, n=300, start=100.0):
    rng = np.random.default_rng(seed)
    return list(start * np.cumprod(1 + rng.normal(0, 0.02, n)))


class TestWarmup:

    def test_scenario_a_constant_prices(self, run):
        result = run([10, 10, 10, 10, 10])

        assert len(result) == 5
        for bar in result.bars[:4]:
            assert bar.signals == NEUTRAL_SIGNALS
            assert bar.order_signal is FLAT
            assert bar.portfolio_value == 1000
            assert not bar.stop_loss_triggered

        # 첫 매매 구간 봉: 평평한 가격 → 상태 유지
        assert result[4].signals.ma_small == pytest.approx(10)
        assert result[4].signals.slope == pytest.approx(0)
        assert result[4].order_signal is FLAT

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_warmup_on_random_series(self, seed):
        params = ParameterSet(3, 5, 8, 12, slope_minimum=0.0, stop_loss_fraction=0.1, initial_cash=500)
        result = BacktestEngine(params).run_backtest(PriceSeries.from_prices(random_walk(seed)))

        for bar in result.bars[:12]:
            assert bar.signals == NEUTRAL_SIGNALS
            assert bar.order_signal is FLAT
            assert bar.portfolio_value == 500
        assert result[12].signals != NEUTRAL_SIGNALS

    def test_exactly_warmup_length_is_all_warmup(self, run):
        result = run([10, 11, 12, 13])
        assert len(result) == 4
        assert all(bar.order_signal is FLAT for bar in result)


class TestScenarios:

    def test_scenario_b_long_armed(self, run):
        result = run([10, 10, 10, 10, 12, 14, 16])

        bar = result[4]
        assert bar.signals.ma_small == pytest.approx(12)
        assert bar.signals.ma_medium == pytest.approx(11)
        assert bar.signals.slope == pytest.approx(0.6)
        assert bar.state is TrendState.LONG_ARMED
        assert bar.order_signal is FLAT

        # 단기선이 이미 장기선 위에 있어 상향 교차가 다시 나오지 않는다
        assert result[5].state is TrendState.LONG_ARMED
        assert result[6].state is TrendState.LONG_ARMED

    def test_long_confirmation_and_valuation(self, run):
        result = run(LONG_STOP_PRICES)

        assert result[5].state is TrendState.LONG_ARMED
        assert result[6].state is TrendState.LONG_CONFIRMED
        assert result[6].order_signal is LONG
        assert result[6].portfolio_value == pytest.approx(1000)
        assert result[7].portfolio_value == pytest.approx(1000 / 13 * 15)
        assert result[8].state is TrendState.LONG_UNWINDING
        assert result[8].portfolio_value == pytest.approx(1000 / 13 * 9)

    def test_scenario_c_stop_loss(self, run):
        result = run(LONG_STOP_PRICES)

        # 봉 8 자산이 이미 -30%지만 손절은 다음 봉에서 판정 (1봉 지연)
        assert not result[8].stop_loss_triggered
        assert result[9].stop_loss_triggered
        assert result[9].state is TrendState.FLAT
        assert result[9].order_signal is FLAT
        assert result[9].portfolio_value == pytest.approx(1000 / 13 * 9)
        assert result[10].order_signal is FLAT
        assert result[10].portfolio_value == pytest.approx(1000 / 13 * 9)
        assert result.stop_loss_count == 1

    def test_stop_loss_trades_recorded(self, run):
        result = run(LONG_STOP_PRICES)

        assert [t.action for t in result.trades] == ["open_long", "close_long"]
        assert result.trades[0].price == 13
        assert result.trades[0].reason == "signal"
        assert result.trades[1].reason == "stop_loss"
        assert result.trades[1].cash_after == pytest.approx(1000 / 13 * 9)

    def test_short_cycle(self, run):
        result = run(SHORT_CYCLE_PRICES)

        assert result[4].state is TrendState.SHORT_ARMED
        assert result[6].state is TrendState.SHORT_CONFIRMED
        assert result[6].order_signal is SHORT
        assert result[7].portfolio_value == pytest.approx(2000 - 1000 / 7 * 5)
        assert result[8].state is TrendState.SHORT_UNWINDING
        assert result[9].state is TrendState.FLAT
        assert result[9].order_signal is FLAT
        assert result[9].portfolio_value == pytest.approx(6000 / 7)
        assert [t.action for t in result.trades] == ["open_short", "close_short"]
        assert result.stop_loss_count == 0


class TestProperties:

    @pytest.mark.parametrize("seed", range(5))
    def test_order_signal_follows_state(self, seed):
        params = ParameterSet(2, 4, 7, 10, slope_minimum=0.0, stop_loss_fraction=0.03, initial_cash=1000)
        result = BacktestEngine(params).run_backtest(PriceSeries.from_prices(random_walk(seed)))

        for bar in result:
            assert bar.order_signal in (LONG, SHORT, FLAT)
            assert bar.order_signal is bar.state.direction

    @pytest.mark.parametrize("seed", range(5))
    def test_flat_after_stop_loss(self, seed):
        params = ParameterSet(2, 4, 7, 10, slope_minimum=0.0, stop_loss_fraction=0.02, initial_cash=1000)
        result = BacktestEngine(params).run_backtest(PriceSeries.from_prices(random_walk(seed)))

        for t in range(len(result) - 1):
            if result[t].stop_loss_triggered:
                assert result[t].order_signal is FLAT
                assert result[t + 1].order_signal is FLAT

    def test_result_aligned_with_series(self, run):
        series = PriceSeries.from_rows((f"2024-01-{d:02d}", p) for d, p in enumerate(LONG_STOP_PRICES, 1))
        result = BacktestEngine(ParameterSet(1, 2, 3, 4, 0.1, 0.2, 1000)).run_backtest(series)

        assert len(result) == len(series)
        assert [b.date for b in result] == series.dates
        assert result.prices == list(series.prices)

    def test_unwritten_index_raises(self, run):
        result = run([10, 10, 10, 10, 10])
        with pytest.raises(IndexError):
            result[5]


class TestStep:

    def test_step_is_pure(self):
        machine = TrendStateMachine(slope_minimum=0.1, stop_loss_fraction=0.2)
        prior = StepState.initial(1000)
        signals = BarSignals(ma_small=12, ma_medium=11, ma_large=10.5, slope=0.6)

        first = step(prior, signals, 12, machine)
        second = step(prior, signals, 12, machine)

        assert first == second
        assert prior == StepState.initial(1000)
        assert first[0].trend_state is TrendState.LONG_ARMED
        assert first[0].signals == signals

    def test_step_uses_prior_value_for_stop_loss(self):
        machine = TrendStateMachine(slope_minimum=0.1, stop_loss_fraction=0.2)
        invested = StepState.initial(1000)
        invested = StepState(
            trend_state=TrendState.LONG_CONFIRMED,
            portfolio=invested.portfolio.open_position(10),
            signals=NEUTRAL_SIGNALS,
            direction=LONG,
            portfolio_value=1000,
        )

        # 현재 가격은 폭락했지만 이전 봉 자산은 손실 없음 → 손절 없음
        new_state, transition = step(invested, NEUTRAL_SIGNALS, 5, machine)
        assert not transition.stop_loss_triggered
        assert new_state.portfolio_value == pytest.approx(500)

        # 다음 봉에서 손절
        _, transition = step(new_state, NEUTRAL_SIGNALS, 5, machine)
        assert transition.stop_loss_triggered


class TestErrors:

    @pytest.mark.parametrize("windows", [
        (2, 2, 3, 4),
        (1, 3, 2, 4),
        (1, 2, 4, 4),
        (0, 2, 3, 4),
    ])
    def test_parameter_order_aborts(self, windows, caplog):
        params = ParameterSet(*windows, slope_minimum=0.1, stop_loss_fraction=0.2, initial_cash=1000)
        engine = BacktestEngine(params)

        with caplog.at_level(logging.WARNING, logger="trend_system.backtest"):
            result = engine.run_backtest(PriceSeries.from_prices(LONG_STOP_PRICES))

        assert len(result) == 0
        assert result.aborted
        assert "윈도우 순서 위반" in result.aborted_reason
        assert "전략 실행 불가" in caplog.text

    def test_insufficient_data(self, run):
        with pytest.raises(InsufficientDataError):
            run([10, 10, 10])

    def test_empty_series(self, run):
        with pytest.raises(InsufficientDataError):
            run([])

    def test_report_before_run(self, small_params):
        assert "error" in BacktestEngine(small_params).generate_report()

    def test_report_after_run(self, small_params):
        engine = BacktestEngine(small_params)
        engine.run_backtest(PriceSeries.from_prices(LONG_STOP_PRICES))
        report = engine.generate_report()

        assert report["trade_count"] == 2
        assert report["metrics"]["stop_loss_count"] == 1
        assert report["parameters"]["slope_window"] == 4
