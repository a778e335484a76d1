"""
백테스팅 엔진 모듈.

[ 역할 ]
    가격 시계열을 봉 단위로 재생하며 시그널 생성 → 상태 전이 → 포트폴리오 평가를 수행.
    시스템의 핵심 실행 루프를 담당.

[ 실행 흐름 ]
    run_backtest() 호출 시:
        1. 파라미터 순서 검사 (위반 시 빈 결과 + 중단 사유 반환)
        2. 가격 데이터 길이 검사 (slope_window 미만이면 InsufficientDataError)
        3. 워밍업: 처음 slope_window개 봉은 시그널 0, FLAT, 초기 자금으로 기록
        4. 이후 각 봉에 대해:
           → 최근 slope_window개 가격으로 generate_signals()
           → step(): 상태머신 전이 + value_portfolio()
           → BacktestResult에 BarRecord 추가 (진입/청산은 TradeRecord도 추가)

[ 봉 단위 상태 ]
    StepState = (상태머신 상태, 포트폴리오 상태, 이전 봉 시그널, 이전 봉 주문 시그널, 이전 봉 평가 자산)
    step()은 (이전 StepState, 현재 시그널, 현재 가격) → (새 StepState, Transition) 순수 함수.

[ 의존성 ]
    - strategies/signals.py::generate_signals()
    - strategies/trend_state_machine.py::TrendStateMachine
    - data/portfolio.py::value_portfolio()
    - backtest/result.py::BacktestResult

[ 호출하는 곳 ]
    - run_backtest.py (진입점)에서 생성 및 실행
"""

import logging
from dataclasses import dataclass
from typing import Any

from trend_system.backtest.metrics import calculate_metrics
from trend_system.backtest.result import BacktestResult, BarRecord, TradeRecord
from trend_system.core.data_provider import PriceSeries
from trend_system.core.exceptions import InsufficientDataError, ParameterOrderError
from trend_system.core.parameters import ParameterSet
from trend_system.core.signal_types import NEUTRAL_SIGNALS, BarSignals, PositionDirection
from trend_system.data.portfolio import PortfolioState, value_portfolio
from trend_system.strategies.signals import generate_signals
from trend_system.strategies.trend_state_machine import Transition, TrendState, TrendStateMachine

logger = logging.getLogger("trend_system.backtest")


@dataclass(frozen=True)
class StepState:
    """봉과 봉 사이에 넘겨지는 상태."""
    trend_state: TrendState
    portfolio: PortfolioState
    signals: BarSignals                # 이전 봉 시그널
    direction: PositionDirection       # 이전 봉 주문 시그널
    portfolio_value: float             # 이전 봉 평가 자산 (손절 체크 기준)

    @classmethod
    def initial(cls, initial_cash: float) -> "StepState":
        return cls(
            trend_state=TrendState.FLAT,
            portfolio=PortfolioState(cash=initial_cash),
            signals=NEUTRAL_SIGNALS,
            direction=PositionDirection.FLAT,
            portfolio_value=initial_cash,
        )


def step(
    prior: StepState,
    signals: BarSignals,
    price: float,
    machine: TrendStateMachine,
) -> tuple[StepState, Transition]:
    """한 봉 처리. 손절 체크는 prior의 평가 자산/진입 금액을 사용."""
    transition = machine.next_state(
        state=prior.trend_state,
        previous=prior.signals,
        current=signals,
        prior_portfolio_value=prior.portfolio_value,
        last_trade_investment=prior.portfolio.last_trade_investment,
    )
    portfolio, value = value_portfolio(prior.portfolio, prior.direction, transition.direction, price)
    new_state = StepState(
        trend_state=transition.state,
        portfolio=portfolio,
        signals=signals,
        direction=transition.direction,
        portfolio_value=value,
    )
    return new_state, transition


class BacktestEngine:
    """백테스팅 엔진. run_backtest()로 시뮬레이션 실행."""

    def __init__(self, params: ParameterSet):
        self.params = params
        self.machine = TrendStateMachine(
            slope_minimum=params.slope_minimum,
            stop_loss_fraction=params.stop_loss_fraction,
        )

        # 백테스트 실행 후 채워지는 결과
        self.result: BacktestResult | None = None

    def run_backtest(self, series: PriceSeries) -> BacktestResult:
        """백테스트 실행.

        Args:
            series: 가격 시계열 (price > 0 필터링 완료)

        Returns:
            BacktestResult: 봉 단위 결과. 파라미터 순서 위반 시 빈 결과 (aborted_reason 설정)

        Raises:
            InsufficientDataError: 가격 봉 수 < slope_window
        """
        result = BacktestResult()
        self.result = result

        try:
            self.params.validate()
        except ParameterOrderError as e:
            logger.warning(f"전략 실행 불가: {e}")
            result.aborted_reason = str(e)
            return result

        warmup = self.params.slope_window
        if len(series) < warmup:
            raise InsufficientDataError(
                f"가격 데이터 부족: 최소 {warmup}개 봉 필요 (현재 {len(series)}개)"
            )

        dates = series.dates
        prices = series.prices
        logger.info(f"백테스트 시작: {dates[0]} ~ {dates[-1]} ({len(series)}봉, 워밍업 {warmup}봉)")

        # 워밍업 구간: 상태머신 미호출
        for i in range(warmup):
            result.append(BarRecord(
                date=dates[i],
                price=float(prices[i]),
                signals=NEUTRAL_SIGNALS,
                order_signal=PositionDirection.FLAT,
                portfolio_value=self.params.initial_cash,
            ))

        # 매매 구간
        state = StepState.initial(self.params.initial_cash)
        for i in range(warmup, len(series)):
            price = float(prices[i])
            window = prices[i - warmup + 1:i + 1]
            signals = generate_signals(window, self.params)

            new_state, transition = step(state, signals, price, self.machine)
            self._record_trades(result, state, new_state, transition, dates[i], price)

            result.append(BarRecord(
                date=dates[i],
                price=price,
                signals=signals,
                order_signal=new_state.direction,
                portfolio_value=new_state.portfolio_value,
                stop_loss_triggered=transition.stop_loss_triggered,
                state=new_state.trend_state,
            ))
            state = new_state

        logger.info(
            f"백테스트 완료. 최종 자산: {result[-1].portfolio_value:,.2f} "
            f"(거래 {len(result.trades)}건, 손절 {result.stop_loss_count}회)"
        )
        return result

    def _record_trades(
        self,
        result: BacktestResult,
        prior: StepState,
        current: StepState,
        transition: Transition,
        date: str,
        price: float,
    ) -> None:
        """주문 시그널이 바뀐 봉의 청산/진입 기록."""
        if prior.direction is current.direction:
            return

        reason = "stop_loss" if transition.stop_loss_triggered else "signal"

        if prior.direction is not PositionDirection.FLAT:
            # 청산 직후 현금: 곧바로 재진입했다면 그 진입 금액
            if current.direction is PositionDirection.FLAT:
                cash_after = current.portfolio.cash
            else:
                cash_after = current.portfolio.last_trade_investment
            result.record_trade(TradeRecord(
                date=date,
                action=f"close_{prior.direction.name.lower()}",
                price=price,
                units=prior.portfolio.position_units,
                cash_after=cash_after,
                reason=reason,
            ))
            logger.debug(f"[{date}] {prior.direction.name} 청산 @ {price:,.2f} → 현금 {cash_after:,.2f} ({reason})")

        if current.direction is not PositionDirection.FLAT:
            result.record_trade(TradeRecord(
                date=date,
                action=f"open_{current.direction.name.lower()}",
                price=price,
                units=current.portfolio.position_units,
                cash_after=current.portfolio.cash,
                reason=reason,
            ))
            logger.debug(
                f"[{date}] {current.direction.name} 진입: {current.portfolio.position_units:,.4f}단위 @ {price:,.2f}"
            )

    def generate_report(self) -> dict[str, Any]:
        """백테스트 리포트 생성."""
        if self.result is None:
            return {"error": "백테스트를 먼저 실행하세요."}
        if self.result.aborted:
            return {"error": self.result.aborted_reason}

        return {
            "metrics": calculate_metrics(self.result).to_dict(),
            "parameters": self.params.to_dict(),
            "bar_count": len(self.result),
            "trade_count": len(self.result.trades),
            "trades": [
                {
                    "date": t.date,
                    "action": t.action,
                    "price": t.price,
                    "units": t.units,
                    "cash_after": t.cash_after,
                    "reason": t.reason,
                }
                for t in self.result.trades
            ],
        }
