"""
백테스트 실행 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml의 데이터/파라미터 사용)
    python run_backtest.py

    # 가격 CSV 지정
    python run_backtest.py --data data/sp500.csv

    # 파라미터 오버라이드
    python run_backtest.py -p small_window=10 -p stop_loss_fraction=0.05

    # 샘플 데이터로 테스트
    python run_backtest.py --sample

    # 결과 파일 저장 없이 콘솔 출력만
    python run_backtest.py --sample --no-save
"""

import argparse
import logging
from pathlib import Path

import numpy as np
import pandas as pd

from trend_system.backtest.engine import BacktestEngine
from trend_system.backtest.metrics import BacktestMetrics, calculate_metrics
from trend_system.backtest.report import append_simulation_summary, save_simulation_data
from trend_system.backtest.result import BacktestResult
from trend_system.core.data_provider import PriceSeries
from trend_system.core.exceptions import DivisionByZeroError, InsufficientDataError
from trend_system.data.csv_provider import CsvPriceProvider
from trend_system.utils.config import Config
from trend_system.utils.logger import setup_logger

logger = logging.getLogger("trend_system")


def generate_sample_data(
    n_bars: int = 750,
    initial_price: float = 3000.0,
    volatility: float = 0.012,
    seed: int = 42,
) -> pd.DataFrame:
    """백테스트용 샘플 지수 데이터 생성 (영업일 기준)."""
    rng = np.random.default_rng(seed)

    dates = pd.bdate_range(start="2020-01-01", periods=n_bars)
    returns = rng.normal(0.0003, volatility, n_bars)
    prices = initial_price * np.cumprod(1 + returns)

    return pd.DataFrame({
        "date": dates.strftime("%Y-%m-%d"),
        "price": np.round(prices, 2),
    })


def parse_param(param_str: str) -> tuple[str, object]:
    """'key=value' 문자열을 파싱하여 (key, value) 반환. 숫자면 자동 변환."""
    key, _, value = param_str.partition("=")
    key = key.strip()
    value = value.strip()

    try:
        if "." in value or "e" in value.lower():
            return key, float(value)
        return key, int(value)
    except ValueError:
        return key, value


def load_data(config: Config, sample: bool) -> PriceSeries | None:
    """가격 시계열 로드. 파일이 없으면 None."""
    if sample:
        print("샘플 데이터 생성 중...")
        return PriceSeries.from_frame(generate_sample_data())

    if not Path(config.backtest.data_path).exists():
        print(f"\n오류: 가격 파일 없음: {config.backtest.data_path}")
        print("  1. --data 옵션 또는 config.yaml의 backtest.data_path로 CSV 지정")
        print("  2. --sample 옵션으로 샘플 데이터 사용")
        return None

    provider = CsvPriceProvider(
        config.backtest.data_path,
        date_column=config.backtest.date_column,
        price_column=config.backtest.price_column,
    )
    return provider.get_price_series()


def print_result(metrics: BacktestMetrics, result: BacktestResult) -> None:
    """실행 결과 출력."""
    print()
    print(metrics.summary())

    if result.trades:
        print("\n최근 거래 (최대 5건):")
        for t in result.trades[-5:]:
            print(f"  [{t.date}] {t.action:<12} @ {t.price:,.2f}  현금: {t.cash_after:,.2f} ({t.reason})")


def print_parameters(config: Config) -> None:
    s = config.strategy
    print(f"\n단기 이동평균: {s.small_window}")
    print(f"중기 이동평균: {s.medium_window}")
    print(f"장기 이동평균: {s.large_window}")
    print(f"기울기 구간:   {s.slope_window}")
    print(f"최소 기울기:   {s.slope_minimum}")
    print(f"손절 비율:     {s.stop_loss_fraction}")


def main():
    parser = argparse.ArgumentParser(description="추세 추종 전략 백테스트 실행")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--data", type=str, default=None, help="가격 CSV 경로 (config.yaml 대신 지정)")
    parser.add_argument("-p", "--param", action="append", default=[], help="파라미터 오버라이드 (예: -p small_window=10)")
    parser.add_argument("--sample", action="store_true", help="샘플 데이터로 테스트")
    parser.add_argument("--no-save", action="store_true", help="결과 CSV 저장 생략")
    args = parser.parse_args()

    # 설정 로드
    config_path = Path(args.config)
    if config_path.exists():
        config = Config.from_yaml(config_path)
    else:
        print(f"설정 파일 없음: {config_path}, 기본값 사용")
        config = Config()

    if args.data:
        config.backtest.data_path = args.data

    # CLI 파라미터 오버라이드
    if args.param:
        overrides = dict(parse_param(p) for p in args.param)
        config = config.with_strategy_overrides(overrides)
        print(f"파라미터 오버라이드: {overrides}")

    setup_logger(level=config.log_level, log_dir=config.log_dir)
    print_parameters(config)

    series = load_data(config, args.sample)
    if series is None:
        return

    params = config.parameter_set()
    engine = BacktestEngine(params)

    try:
        result = engine.run_backtest(series)
    except InsufficientDataError as e:
        logger.error(str(e))
        return

    if result.aborted:
        print(f"\n전략 실행 불가: {result.aborted_reason}")
        return

    if not args.no_save:
        save_simulation_data(result, config.report.simulation_data_path)

    try:
        metrics = calculate_metrics(result)
    except DivisionByZeroError as e:
        logger.error(f"수익률 계산 불가, 요약 생략: {e}")
        return

    print_result(metrics, result)

    if not args.no_save:
        append_simulation_summary(config.report.summary_path, metrics, params)


if __name__ == "__main__":
    main()
