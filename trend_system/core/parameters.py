"""
전략 파라미터 정의.

[ 역할 ]
    이동평균/기울기 윈도우, 기울기 임계값, 손절 비율, 초기 자금을 묶은 ParameterSet.
    config.yaml의 strategy 섹션 + backtest.initial_cash에서 생성된다.

[ 불변 조건 ]
    slope_window > large_window > medium_window > small_window > 0
    → validate()가 검사하고, 위반 시 ParameterOrderError 발생.

[ 호출하는 곳 ]
    - utils/config.py::Config.parameter_set()에서 생성
    - backtest/engine.py::BacktestEngine이 실행 전 validate() 호출
    - backtest/report.py에서 요약 로그 기록 시 파라미터 값 사용
"""

from dataclasses import asdict, dataclass
from typing import Any

from trend_system.core.exceptions import ParameterOrderError


@dataclass(frozen=True)
class ParameterSet:
    """단일 실행에 쓰이는 전략 파라미터 묶음."""
    small_window: int = 14          # 단기 이동평균 기간
    medium_window: int = 21         # 중기 이동평균 기간
    large_window: int = 40          # 장기 이동평균 기간
    slope_window: int = 50          # 회귀 기울기 기간 (= 워밍업 봉 수)
    slope_minimum: float = 0.0      # 추세 판정 최소 기울기 (절대값)
    stop_loss_fraction: float = 0.1  # 손절 비율 (0.1 = 진입 금액 대비 -10%)
    initial_cash: float = 10_000.0

    @property
    def is_ordered(self) -> bool:
        return self.slope_window > self.large_window > self.medium_window > self.small_window > 0

    def validate(self) -> None:
        """윈도우 순서 검사. 위반 시 ParameterOrderError."""
        if not self.is_ordered:
            raise ParameterOrderError(
                "윈도우 순서 위반: slope > large > medium > small > 0 이어야 함 "
                f"(small={self.small_window}, medium={self.medium_window}, "
                f"large={self.large_window}, slope={self.slope_window})"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
