"""
CSV 파일 기반 PriceProvider 구현.

[ 역할 ]
    헤더가 있는 CSV(날짜, 가격)를 읽어 PriceSeries로 변환.
    가격이 비었거나 0 이하인 행은 버린다.

[ 파일 형식 ]
    date,price
    2020-01-02,3257.85
    ...
    컬럼 이름이 없으면 첫 번째 컬럼을 날짜, 두 번째 컬럼을 가격으로 사용.

[ 의존성 ]
    - core/data_provider.py::PriceProvider (추상 클래스)

[ 호출하는 곳 ]
    - run_backtest.py::load_data() (기본 데이터 소스)
"""

import logging
from pathlib import Path

import pandas as pd

from trend_system.core.data_provider import PriceProvider, PriceSeries

logger = logging.getLogger("trend_system.data")


class CsvPriceProvider(PriceProvider):
    """CSV 기반 가격 데이터 제공자.

    사용 예:
        provider = CsvPriceProvider("data/prices.csv")
        series = provider.get_price_series()
    """

    def __init__(
        self,
        path: str | Path,
        date_column: str = "date",
        price_column: str = "price",
    ):
        self.path = Path(path)
        self.date_column = date_column
        self.price_column = price_column

    def read_frame(self) -> pd.DataFrame:
        """CSV를 읽어 [date, price] 두 컬럼 DataFrame으로 반환."""
        df = pd.read_csv(self.path)
        if self.date_column in df.columns and self.price_column in df.columns:
            frame = df[[self.date_column, self.price_column]].copy()
        else:
            # 헤더 이름이 다르면 위치 기준 (0: 날짜, 1: 가격)
            frame = df.iloc[:, :2].copy()
        frame.columns = ["date", "price"]
        frame["date"] = frame["date"].astype(str)
        frame["price"] = pd.to_numeric(frame["price"], errors="coerce")
        return frame

    def get_price_series(self) -> PriceSeries:
        frame = self.read_frame()
        series = PriceSeries.from_frame(frame)

        dropped = len(frame) - len(series)
        if dropped:
            logger.info(f"{self.path}: 가격 0 이하/누락 {dropped}행 제외")
        logger.info(f"{self.path}: {len(series)}개 봉 로드")
        return series
