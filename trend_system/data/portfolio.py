"""
CFD 방식 포트폴리오 평가 모듈.

[ 역할 ]
    현금, 보유 단위(CFD units), 마지막 진입 금액을 관리하고
    주문 시그널 변화(이전 봉 → 현재 봉)에 따라 진입/청산 후 평가 자산을 계산.

[ 진입/청산 규칙 ]
    FLAT  → LONG   진입 금액 = 현금, 단위 = 현금 / 가격, 현금 = 0
    LONG  → FLAT   현금 = 단위 × 가격
    FLAT  → SHORT  진입 금액 = 현금, 단위 = 현금 / 가격, 현금 = 0
    SHORT → FLAT   현금 = 2 × 진입 금액 − 단위 × 가격 (진입 금액 기준 손익 반전)
    변화 없음       상태 변경 없음

[ 평가 ]
    LONG   현금 + 단위 × 가격
    SHORT  현금 + 2 × 진입 금액 − 단위 × 가격
    FLAT   현금

[ 호출하는 곳 ]
    - backtest/engine.py::step()에서 매 봉마다 value_portfolio() 호출
    - 평가 자산은 다음 봉의 손절 체크에 사용됨
"""

from dataclasses import dataclass, replace

from trend_system.core.signal_types import PositionDirection


@dataclass(frozen=True)
class PortfolioState:
    """포트폴리오 상태. 봉마다 새 객체로 교체된다."""
    cash: float
    position_units: float = 0.0         # 보유 CFD 단위
    last_trade_investment: float = 0.0  # 마지막 진입 시 투입 금액 (손절 기준)

    def open_position(self, price: float) -> "PortfolioState":
        """보유 현금 전액으로 진입 (롱/숏 공통)."""
        return PortfolioState(
            cash=0.0,
            position_units=self.cash / price,
            last_trade_investment=self.cash,
        )

    def close_long(self, price: float) -> "PortfolioState":
        return replace(self, cash=self.cash + self.position_units * price, position_units=0.0)

    def close_short(self, price: float) -> "PortfolioState":
        proceeds = 2 * self.last_trade_investment - self.position_units * price
        return replace(self, cash=self.cash + proceeds, position_units=0.0)


def rebalance(
    state: PortfolioState,
    previous: PositionDirection,
    current: PositionDirection,
    price: float,
) -> PortfolioState:
    """주문 시그널 변화에 따른 진입/청산."""
    if previous is current:
        return state

    # 롱 ↔ 숏 직접 전환은 청산 후 진입으로 처리
    if previous is PositionDirection.LONG:
        state = state.close_long(price)
    elif previous is PositionDirection.SHORT:
        state = state.close_short(price)

    if current is not PositionDirection.FLAT:
        state = state.open_position(price)
    return state


def mark_to_market(state: PortfolioState, direction: PositionDirection, price: float) -> float:
    """현재 가격 기준 평가 자산."""
    if direction is PositionDirection.LONG:
        return state.cash + state.position_units * price
    if direction is PositionDirection.SHORT:
        return state.cash + 2 * state.last_trade_investment - state.position_units * price
    return state.cash


def value_portfolio(
    state: PortfolioState,
    previous: PositionDirection,
    current: PositionDirection,
    price: float,
) -> tuple[PortfolioState, float]:
    """진입/청산 반영 후 (새 상태, 평가 자산) 반환."""
    new_state = rebalance(state, previous, current, price)
    return new_state, mark_to_market(new_state, current, price)
