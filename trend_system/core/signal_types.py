"""
시그널 관련 공용 타입 정의.

[ 역할 ]
    봉 단위 추세 시그널(BarSignals)과 포지션 방향(PositionDirection)을 정의.
    전략(시그널 생성, 상태머신), 포트폴리오, 엔진이 공통으로 사용.

[ 데이터 흐름 ]
    strategies/signals.py → BarSignals 생성
    strategies/trend_state_machine.py → BarSignals 쌍(이전/현재)으로 상태 전이 → PositionDirection
    data/portfolio.py → PositionDirection 변화로 진입/청산 실행
"""

from dataclasses import dataclass
from enum import Enum


class PositionDirection(Enum):
    """주문 시그널 (= 보유 포지션 방향). 값은 CSV 출력에 그대로 쓰인다."""
    LONG = 1
    SHORT = -1
    FLAT = 0


@dataclass(frozen=True)
class BarSignals:
    """한 봉의 추세 시그널. 워밍업 구간에서는 모두 0."""
    ma_small: float = 0.0   # 단기 이동평균
    ma_medium: float = 0.0  # 중기 이동평균
    ma_large: float = 0.0   # 장기 이동평균
    slope: float = 0.0      # 회귀 기울기


NEUTRAL_SIGNALS = BarSignals()
