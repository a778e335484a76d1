"""
백테스트 성과 지표 계산 모듈.

[ 역할 ]
    백테스트 결과(봉 단위 가격 + 평가 자산 + 거래기록)를 받아 성과 지표를 계산.
    calculate_metrics() 함수가 핵심.

[ 계산하는 지표 ]
    - 지수(가격) 수익률 / 포트폴리오 수익률
    - 연환산 수익률
    - 샤프 비율 (위험 대비 수익)
    - MDD (최대 낙폭)
    - 진입 횟수, 손절 횟수

[ 호출하는 곳 ]
    - run_backtest.py에서 결과 출력 / 요약 로그 기록 전 호출
    - backtest/engine.py::BacktestEngine.generate_report()

[ 0 기준값 ]
    초기 가격 또는 초기 자산이 0이면 수익률이 정의되지 않으므로
    percent_return()이 DivisionByZeroError를 발생시킨다.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np

from trend_system.backtest.result import BacktestResult
from trend_system.core.exceptions import DivisionByZeroError

TRADING_DAYS_PER_YEAR = 252
RISK_FREE_RATE = 0.03


@dataclass
class BacktestMetrics:
    """백테스트 성과 지표. summary()로 포맷된 리포트 출력 가능."""
    initial_index: float = 0.0        # 첫 봉 가격
    final_index: float = 0.0          # 마지막 봉 가격
    index_return: float = 0.0         # 가격 수익률 (%)
    initial_portfolio: float = 0.0    # 첫 봉 평가 자산
    final_portfolio: float = 0.0      # 마지막 봉 평가 자산
    portfolio_return: float = 0.0     # 포트폴리오 수익률 (%)
    annual_return: float = 0.0        # 연환산 수익률 (%)
    sharpe_ratio: float = 0.0         # 샤프 비율
    max_drawdown: float = 0.0         # 최대 낙폭 MDD (%)
    total_trades: int = 0             # 진입 횟수 (롱 + 숏)
    stop_loss_count: int = 0          # 손절 발생 횟수
    bar_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환."""
        from dataclasses import asdict
        return asdict(self)

    def summary(self) -> str:
        """성과 요약 문자열."""
        lines = [
            "=" * 50,
            "백테스트 성과 리포트",
            "=" * 50,
            f"초기 지수:       {self.initial_index:>14,.2f}",
            f"최종 지수:       {self.final_index:>14,.2f}",
            f"지수 수익률:     {self.index_return:>13.2f}%",
            "-" * 50,
            f"초기 자산:       {self.initial_portfolio:>14,.2f}",
            f"최종 자산:       {self.final_portfolio:>14,.2f}",
            f"포트폴리오 수익률: {self.portfolio_return:>11.2f}%",
            f"연환산 수익률:    {self.annual_return:>12.2f}%",
            f"샤프 비율:       {self.sharpe_ratio:>14.2f}",
            f"최대 낙폭(MDD):  {self.max_drawdown:>13.2f}%",
            "-" * 50,
            f"봉 수:           {self.bar_count:>14d}",
            f"진입 횟수:       {self.total_trades:>14d}",
            f"손절 횟수:       {self.stop_loss_count:>14d}",
            "=" * 50,
        ]
        return "\n".join(lines)


def percent_return(first: float, last: float) -> float:
    """(last - first) / first * 100.

    Raises:
        DivisionByZeroError: first == 0
    """
    if first == 0:
        raise DivisionByZeroError("수익률 기준값이 0이라 수익률을 계산할 수 없음")
    return (last - first) / first * 100


def max_drawdown(values: list[float]) -> float:
    """고점 대비 최대 하락폭 (%)."""
    peak = values[0]
    max_dd = 0.0
    for value in values:
        if value > peak:
            peak = value
        if peak > 0:
            dd = (peak - value) / peak * 100
            if dd > max_dd:
                max_dd = dd
    return max_dd


def sharpe_ratio(values: list[float]) -> float:
    """봉 단위 수익률로 계산한 연환산 샤프 비율. 변동이 없으면 0."""
    daily_returns = [
        (values[i] - values[i - 1]) / values[i - 1]
        for i in range(1, len(values))
        if values[i - 1] > 0
    ]
    if not daily_returns:
        return 0.0

    excess_returns = np.array(daily_returns) - RISK_FREE_RATE / TRADING_DAYS_PER_YEAR
    std = np.std(excess_returns)
    if std == 0:
        return 0.0
    return float(np.mean(excess_returns) / std * np.sqrt(TRADING_DAYS_PER_YEAR))


def calculate_metrics(result: BacktestResult) -> BacktestMetrics:
    """성과 지표 계산.

    Args:
        result: BacktestEngine.run_backtest()의 결과

    Raises:
        DivisionByZeroError: 초기 가격 또는 초기 자산이 0
    """
    metrics = BacktestMetrics()

    if len(result) == 0:
        return metrics

    prices = result.prices
    values = result.portfolio_values

    # ─── 수익률 ──────────────────────────────────────────────────────────
    metrics.initial_index = prices[0]
    metrics.final_index = prices[-1]
    metrics.index_return = percent_return(prices[0], prices[-1])

    metrics.initial_portfolio = values[0]
    metrics.final_portfolio = values[-1]
    metrics.portfolio_return = percent_return(values[0], values[-1])

    # 연환산: (최종/초기)^(1/년수) - 1, 비율이 양수일 때만
    years = len(values) / TRADING_DAYS_PER_YEAR
    total_ratio = values[-1] / values[0]
    if total_ratio > 0:
        metrics.annual_return = (total_ratio ** (1 / years) - 1) * 100

    # ─── 위험 지표 ────────────────────────────────────────────────────────
    metrics.sharpe_ratio = sharpe_ratio(values)
    metrics.max_drawdown = max_drawdown(values)

    # ─── 거래 ─────────────────────────────────────────────────────────────
    metrics.total_trades = sum(1 for t in result.trades if t.action.startswith("open_"))
    metrics.stop_loss_count = result.stop_loss_count
    metrics.bar_count = len(result)

    return metrics
