"""
추세 시그널 생성 모듈.

[ 역할 ]
    최근 가격 구간(window)에서 이동평균 3개(단기/중기/장기)와
    최소제곱 회귀 기울기를 계산하여 BarSignals로 반환.

[ 계산 ]
    moving_average: 구간 가격의 산술평균
    moving_slope:   x = 0..N-1 에 대한 가격 회귀 기울기
                    (N·Σxy − Σx·Σy) / (N·Σxx − (Σx)²)

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine.run_backtest()에서 매 봉마다
      최근 slope_window개 가격으로 generate_signals() 호출
"""

from typing import Sequence

import numpy as np

from trend_system.core.exceptions import DegenerateWindowError, InsufficientDataError
from trend_system.core.parameters import ParameterSet
from trend_system.core.signal_types import BarSignals


def moving_average(window: Sequence[float]) -> float:
    """구간 가격의 산술평균. 빈 구간이면 0."""
    values = np.asarray(window, dtype=float)
    if values.size == 0:
        return 0.0
    return float(values.mean())


def moving_slope(window: Sequence[float]) -> float:
    """가격 vs 봉 번호(0..N-1) 최소제곱 회귀 기울기.

    Raises:
        DegenerateWindowError: 점이 2개 미만이라 분모가 0
    """
    y = np.asarray(window, dtype=float)
    n = y.size
    if n < 2:
        raise DegenerateWindowError(f"기울기 계산에는 최소 2개 가격 필요 (현재 {n}개)")

    x = np.arange(n, dtype=float)
    s_x = x.sum()
    s_y = y.sum()
    s_xx = np.dot(x, x)
    s_xy = np.dot(x, y)
    return float((n * s_xy - s_x * s_y) / (n * s_xx - s_x * s_x))


def generate_signals(window: Sequence[float], params: ParameterSet) -> BarSignals:
    """최근 가격 구간으로 BarSignals 계산.

    각 지표는 같은 구간의 끝부분(suffix)을 사용한다.

    Args:
        window: 현재 봉까지의 최근 가격 (최소 slope_window개)
        params: 윈도우 크기

    Raises:
        InsufficientDataError: 구간 길이 < slope_window
    """
    prices = np.asarray(window, dtype=float)
    if prices.size < params.slope_window:
        raise InsufficientDataError(
            f"시그널 계산에 최소 {params.slope_window}개 가격 필요 (현재 {prices.size}개)"
        )

    return BarSignals(
        ma_small=moving_average(prices[-params.small_window:]),
        ma_medium=moving_average(prices[-params.medium_window:]),
        ma_large=moving_average(prices[-params.large_window:]),
        slope=moving_slope(prices[-params.slope_window:]),
    )
