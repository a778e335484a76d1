"""
가격 데이터 제공 추상 클래스 정의.

[ 역할 ]
    백테스트 입력인 가격 시계열(PriceSeries)과, 이를 공급하는 인터페이스(PriceProvider).
    데이터 소스(CSV, 샘플 생성 등)에 독립적으로 엔진에 데이터 공급.

[ 구현체 ]
    - data/csv_provider.py::CsvPriceProvider (CSV 파일, 백테스트 기본)
    - run_backtest.py::generate_sample_data() → PriceSeries.from_frame()

[ 불변 조건 ]
    - 입력 순서 = 시간 순서
    - price > 0 인 봉만 저장 (0 이하 가격은 생성 시 버림)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class PricePoint:
    """단일 봉 (날짜 + 가격)."""
    date: str
    price: float


class PriceSeries:
    """시간 순서대로 정렬된 가격 시계열.

    사용 예:
        series = PriceSeries.from_rows([("2024-01-02", 100.0), ("2024-01-03", 101.5)])
        series.prices  # numpy 배열
    """

    def __init__(self, points: Iterable[PricePoint] = ()):
        self._points: list[PricePoint] = [p for p in points if p.price > 0]

    @classmethod
    def from_rows(cls, rows: Iterable[tuple[str, float]]) -> "PriceSeries":
        """(date, price) 튜플 목록에서 생성."""
        return cls(PricePoint(date=str(d), price=float(p)) for d, p in rows)

    @classmethod
    def from_prices(cls, prices: Iterable[float]) -> "PriceSeries":
        """가격만 있을 때. 날짜는 봉 번호 문자열로 채운다."""
        return cls.from_rows((str(i), p) for i, p in enumerate(prices))

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        date_column: str = "date",
        price_column: str = "price",
    ) -> "PriceSeries":
        """DataFrame에서 생성. 가격이 비었거나 0 이하인 행은 제외."""
        prices = pd.to_numeric(df[price_column], errors="coerce")
        mask = prices > 0
        return cls.from_rows(zip(df.loc[mask, date_column].astype(str), prices[mask]))

    @property
    def dates(self) -> list[str]:
        return [p.date for p in self._points]

    @property
    def prices(self) -> np.ndarray:
        return np.array([p.price for p in self._points], dtype=float)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self._points)

    def __getitem__(self, index: int) -> PricePoint:
        return self._points[index]


class PriceProvider(ABC):
    """가격 데이터 제공 추상 클래스.

    모든 데이터 제공자 구현체는 이 클래스를 상속받아 get_price_series()를 구현해야 한다.
    """

    @abstractmethod
    def get_price_series(self) -> PriceSeries:
        """가격 시계열 조회 (price > 0 필터링 완료 상태)."""
        ...
