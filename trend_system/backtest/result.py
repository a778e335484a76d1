"""
백테스트 결과 저장 모듈.

[ 역할 ]
    봉 단위 결과(BarRecord)를 입력 가격 시계열과 같은 순서/길이로 쌓는 저장소.
    엔진만 append()로 추가하고, 한 번 추가된 기록은 바뀌지 않는다.

[ 주요 클래스 ]
    BarRecord      - 한 봉의 결과 (가격, 시그널, 주문 시그널, 평가 자산, 손절 여부)
    TradeRecord    - 진입/청산 기록 (리포트용)
    BacktestResult - BarRecord 목록 + TradeRecord 목록 + 중단 사유

[ 호출하는 곳 ]
    - backtest/engine.py에서 생성 및 append
    - backtest/metrics.py, backtest/report.py에서 조회
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional

import pandas as pd

from trend_system.core.signal_types import BarSignals, PositionDirection
from trend_system.strategies.trend_state_machine import TrendState

SIMULATION_COLUMNS = [
    "date",
    "price",
    "ma_small",
    "ma_medium",
    "ma_large",
    "ma_slope",
    "order_signal",
    "portfolio_value",
    "stop_loss",
]


@dataclass(frozen=True)
class BarRecord:
    """한 봉의 백테스트 결과."""
    date: str
    price: float
    signals: BarSignals
    order_signal: PositionDirection
    portfolio_value: float
    stop_loss_triggered: bool = False
    state: TrendState = TrendState.FLAT  # 봉 처리 후 상태머신 상태 (CSV에는 미포함)

    def to_row(self) -> dict:
        return {
            "date": self.date,
            "price": self.price,
            "ma_small": self.signals.ma_small,
            "ma_medium": self.signals.ma_medium,
            "ma_large": self.signals.ma_large,
            "ma_slope": self.signals.slope,
            "order_signal": self.order_signal.value,
            "portfolio_value": self.portfolio_value,
            "stop_loss": int(self.stop_loss_triggered),
        }


@dataclass(frozen=True)
class TradeRecord:
    """진입/청산 기록."""
    date: str
    action: str         # "open_long" / "close_long" / "open_short" / "close_short"
    price: float
    units: float        # 진입 시 매수 단위, 청산 시 청산 단위
    cash_after: float
    reason: str = "signal"  # "signal" or "stop_loss"


@dataclass
class BacktestResult:
    """봉 단위 결과 저장소. 입력 가격 시계열과 인덱스가 1:1로 대응."""
    bars: list[BarRecord] = field(default_factory=list)
    trades: list[TradeRecord] = field(default_factory=list)
    aborted_reason: Optional[str] = None  # 파라미터 오류로 중단된 경우 사유

    @property
    def aborted(self) -> bool:
        return self.aborted_reason is not None

    def append(self, record: BarRecord) -> None:
        self.bars.append(record)

    def record_trade(self, trade: TradeRecord) -> None:
        self.trades.append(trade)

    def __len__(self) -> int:
        return len(self.bars)

    def __iter__(self) -> Iterator[BarRecord]:
        return iter(self.bars)

    def __getitem__(self, index: int) -> BarRecord:
        """아직 기록되지 않은 봉 인덱스는 IndexError."""
        if not -len(self.bars) <= index < len(self.bars):
            raise IndexError(f"봉 {index}은(는) 아직 기록되지 않음 (기록된 봉: {len(self.bars)}개)")
        return self.bars[index]

    @property
    def prices(self) -> list[float]:
        return [b.price for b in self.bars]

    @property
    def portfolio_values(self) -> list[float]:
        return [b.portfolio_value for b in self.bars]

    @property
    def order_signals(self) -> list[PositionDirection]:
        return [b.order_signal for b in self.bars]

    @property
    def stop_loss_count(self) -> int:
        return sum(1 for b in self.bars if b.stop_loss_triggered)

    def to_frame(self) -> pd.DataFrame:
        """리포트용 DataFrame (SIMULATION_COLUMNS 순서)."""
        return pd.DataFrame([b.to_row() for b in self.bars], columns=SIMULATION_COLUMNS)
