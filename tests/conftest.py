"""공용 fixture 및 가격 시나리오."""

import pytest

from trend_system.backtest.engine import BacktestEngine
from trend_system.core.data_provider import PriceSeries
from trend_system.core.parameters import ParameterSet

# 롱 진입 → 하락 → 손절 (윈도우 1/2/3/4)
#   봉 4: FLAT → LONG_ARMED, 봉 6: → LONG_CONFIRMED (진입 @13)
#   봉 8: → LONG_UNWINDING, 봉 9: 손절 (이전 봉 자산 692.3 < 800)
LONG_STOP_PRICES = [10, 10, 10, 10, 12, 10, 13, 15, 9, 9, 9]

# 숏 진입 → 정상 청산
#   봉 4: FLAT → SHORT_ARMED, 봉 6: → SHORT_CONFIRMED (진입 @7)
#   봉 8: → SHORT_UNWINDING, 봉 9: → FLAT (청산 @8)
SHORT_CYCLE_PRICES = [10, 10, 10, 10, 8, 10, 7, 5, 6, 8]


@pytest.fixture
def small_params():
    return ParameterSet(
        small_window=1,
        medium_window=2,
        large_window=3,
        slope_window=4,
        slope_minimum=0.1,
        stop_loss_fraction=0.2,
        initial_cash=1000.0,
    )


@pytest.fixture
def run(small_params):
    """가격 리스트로 백테스트 실행."""
    def _run(prices, params=None):
        engine = BacktestEngine(params or small_params)
        return engine.run_backtest(PriceSeries.from_prices(prices))
    return _run
