"""
추세 추종 상태머신 구현.

[ 역할 ]
    이전 봉/현재 봉 BarSignals 쌍으로 이동평균 교차를 감지하여
    7개 상태 사이를 전이하고, 새 상태의 포지션 방향(주문 시그널)을 결정.

[ 상태 ]
    1 FLAT              미보유
    2 LONG_ARMED        단기 > 중기 상향 교차 (장기 교차 대기)
    3 LONG_CONFIRMED    단기 > 장기 상향 교차 → 롱 보유
    4 LONG_UNWINDING    롱 보유 중 단기 < 중기 하향 교차
    5 SHORT_ARMED       단기 < 중기 하향 교차 (장기 교차 대기)
    6 SHORT_CONFIRMED   단기 < 장기 하향 교차 → 숏 보유
    7 SHORT_UNWINDING   숏 보유 중 단기 > 중기 상향 교차

[ 전이 순서 (매 봉) ]
    1. 손절 체크: 보유 상태(3,4,6,7)에서
       (이전 봉 자산 - 진입 금액) / 진입 금액 < -stop_loss_fraction → FLAT (다른 전이 무시)
    2. TRANSITION_TABLE에서 현재 상태의 조건을 순서대로 확인, 첫 번째 충족 조건으로 전이
    3. 조건 미충족 시 상태 유지

    손절 체크는 현재 봉 평가 전의 자산(이전 봉 값)을 사용한다 (1봉 지연).

[ 호출하는 곳 ]
    - backtest/engine.py::step()에서 매 봉마다 next_state() 호출
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from trend_system.core.signal_types import BarSignals, PositionDirection


class TrendState(Enum):
    """상태머신 상태. 값은 기존 상태 번호와 동일."""
    FLAT = 1
    LONG_ARMED = 2
    LONG_CONFIRMED = 3
    LONG_UNWINDING = 4
    SHORT_ARMED = 5
    SHORT_CONFIRMED = 6
    SHORT_UNWINDING = 7

    @property
    def direction(self) -> PositionDirection:
        """상태 → 포지션 방향."""
        return STATE_DIRECTION[self]

    @property
    def is_invested(self) -> bool:
        return self.direction is not PositionDirection.FLAT


STATE_DIRECTION: dict[TrendState, PositionDirection] = {
    TrendState.FLAT: PositionDirection.FLAT,
    TrendState.LONG_ARMED: PositionDirection.FLAT,
    TrendState.LONG_CONFIRMED: PositionDirection.LONG,
    TrendState.LONG_UNWINDING: PositionDirection.LONG,
    TrendState.SHORT_ARMED: PositionDirection.FLAT,
    TrendState.SHORT_CONFIRMED: PositionDirection.SHORT,
    TrendState.SHORT_UNWINDING: PositionDirection.SHORT,
}


# ─── 교차 판정 ────────────────────────────────────────────────────────────

def crosses_above(now_a: float, now_b: float, prev_a: float, prev_b: float) -> bool:
    """a가 b를 상향 돌파 (이전 a <= b, 현재 a > b)."""
    return now_a > now_b and prev_a <= prev_b


def crosses_below(now_a: float, now_b: float, prev_a: float, prev_b: float) -> bool:
    """a가 b를 하향 돌파 (이전 a >= b, 현재 a < b)."""
    return now_a < now_b and prev_a >= prev_b


class Condition(Enum):
    """전이 조건."""
    UPTREND_SMALL_ABOVE_MEDIUM = "uptrend_small_above_medium"
    DOWNTREND_SMALL_BELOW_MEDIUM = "downtrend_small_below_medium"
    SMALL_ABOVE_MEDIUM = "small_above_medium"
    SMALL_BELOW_MEDIUM = "small_below_medium"
    SMALL_ABOVE_LARGE = "small_above_large"
    SMALL_BELOW_LARGE = "small_below_large"


# (이전 시그널, 현재 시그널, slope_minimum) → 충족 여부
ConditionPredicate = Callable[[BarSignals, BarSignals, float], bool]

CONDITION_PREDICATES: dict[Condition, ConditionPredicate] = {
    Condition.UPTREND_SMALL_ABOVE_MEDIUM: lambda prev, cur, slope_min: (
        cur.slope > slope_min
        and crosses_above(cur.ma_small, cur.ma_medium, prev.ma_small, prev.ma_medium)
    ),
    Condition.DOWNTREND_SMALL_BELOW_MEDIUM: lambda prev, cur, slope_min: (
        cur.slope < -slope_min
        and crosses_below(cur.ma_small, cur.ma_medium, prev.ma_small, prev.ma_medium)
    ),
    Condition.SMALL_ABOVE_MEDIUM: lambda prev, cur, _: crosses_above(
        cur.ma_small, cur.ma_medium, prev.ma_small, prev.ma_medium
    ),
    Condition.SMALL_BELOW_MEDIUM: lambda prev, cur, _: crosses_below(
        cur.ma_small, cur.ma_medium, prev.ma_small, prev.ma_medium
    ),
    Condition.SMALL_ABOVE_LARGE: lambda prev, cur, _: crosses_above(
        cur.ma_small, cur.ma_large, prev.ma_small, prev.ma_large
    ),
    Condition.SMALL_BELOW_LARGE: lambda prev, cur, _: crosses_below(
        cur.ma_small, cur.ma_large, prev.ma_small, prev.ma_large
    ),
}


# 상태 → [(조건, 다음 상태), ...] (앞에서부터 확인)
TRANSITION_TABLE: dict[TrendState, list[tuple[Condition, TrendState]]] = {
    TrendState.FLAT: [
        (Condition.UPTREND_SMALL_ABOVE_MEDIUM, TrendState.LONG_ARMED),
        (Condition.DOWNTREND_SMALL_BELOW_MEDIUM, TrendState.SHORT_ARMED),
    ],
    TrendState.LONG_ARMED: [(Condition.SMALL_ABOVE_LARGE, TrendState.LONG_CONFIRMED)],
    TrendState.LONG_CONFIRMED: [(Condition.SMALL_BELOW_MEDIUM, TrendState.LONG_UNWINDING)],
    TrendState.LONG_UNWINDING: [(Condition.SMALL_BELOW_LARGE, TrendState.FLAT)],
    TrendState.SHORT_ARMED: [(Condition.SMALL_BELOW_LARGE, TrendState.SHORT_CONFIRMED)],
    TrendState.SHORT_CONFIRMED: [(Condition.SMALL_ABOVE_MEDIUM, TrendState.SHORT_UNWINDING)],
    TrendState.SHORT_UNWINDING: [(Condition.SMALL_ABOVE_LARGE, TrendState.FLAT)],
}


def is_stop_loss_hit(
    state: TrendState,
    prior_portfolio_value: float,
    last_trade_investment: float,
    stop_loss_fraction: float,
) -> bool:
    """보유 상태에서 진입 금액 대비 손실이 손절 비율을 넘었는지."""
    if not state.is_invested or last_trade_investment <= 0:
        return False
    trade_return = (prior_portfolio_value - last_trade_investment) / last_trade_investment
    return trade_return < -stop_loss_fraction


@dataclass(frozen=True)
class Transition:
    """next_state()의 결과."""
    state: TrendState
    stop_loss_triggered: bool = False
    condition: Optional[Condition] = None  # 전이를 일으킨 조건 (유지/손절이면 None)

    @property
    def direction(self) -> PositionDirection:
        return self.state.direction


class TrendStateMachine:
    """추세 추종 상태머신. 상태는 보관하지 않고 호출부(엔진)가 넘겨준다."""

    def __init__(self, slope_minimum: float, stop_loss_fraction: float):
        self.slope_minimum = slope_minimum
        self.stop_loss_fraction = stop_loss_fraction

    def next_state(
        self,
        state: TrendState,
        previous: BarSignals,
        current: BarSignals,
        prior_portfolio_value: float,
        last_trade_investment: float,
    ) -> Transition:
        """한 봉 전이.

        Args:
            state: 현재 상태
            previous: 이전 봉 시그널
            current: 현재 봉 시그널
            prior_portfolio_value: 이전 봉 평가 자산
            last_trade_investment: 마지막 진입 시 투입 금액

        Returns:
            Transition: 다음 상태 + 손절 여부
        """
        if is_stop_loss_hit(state, prior_portfolio_value, last_trade_investment, self.stop_loss_fraction):
            return Transition(state=TrendState.FLAT, stop_loss_triggered=True)

        for condition, target in TRANSITION_TABLE[state]:
            if CONDITION_PREDICATES[condition](previous, current, self.slope_minimum):
                return Transition(state=target, condition=condition)

        return Transition(state=state)
