"""
백테스트 결과 저장 모듈.

[ 역할 ]
    1. save_simulation_data(): 봉 단위 결과 전체를 CSV로 저장 (실행마다 덮어씀)
    2. append_simulation_summary(): 실행 요약 1행을 요약 로그 CSV에 추가 (누적)

[ 요약 로그 컬럼 ]
    date, initial_index, final_index, index_return, initial_portfolio,
    final_portfolio, portfolio_return, small_ma, medium_ma, large_ma,
    slope_points, min_slope, stop_loss, mode_up, mode_down

    mode_up / mode_down은 상태머신 롱/숏 모드 플래그 (항상 1).

[ 호출하는 곳 ]
    - run_backtest.py에서 백테스트 완료 후 호출
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from trend_system.backtest.metrics import BacktestMetrics
from trend_system.backtest.result import BacktestResult
from trend_system.core.parameters import ParameterSet

logger = logging.getLogger("trend_system.report")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

SUMMARY_COLUMNS = [
    "date",
    "initial_index",
    "final_index",
    "index_return",
    "initial_portfolio",
    "final_portfolio",
    "portfolio_return",
    "small_ma",
    "medium_ma",
    "large_ma",
    "slope_points",
    "min_slope",
    "stop_loss",
    "mode_up",
    "mode_down",
]

MODE_UP = 1
MODE_DOWN = 1


def save_simulation_data(result: BacktestResult, path: str | Path) -> Path:
    """봉 단위 결과를 CSV로 저장."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    result.to_frame().to_csv(path, index=False)
    logger.info(f"봉 단위 결과 저장: {path} ({len(result)}행)")
    return path


def summary_row(
    metrics: BacktestMetrics,
    params: ParameterSet,
    run_time: Optional[datetime] = None,
) -> dict:
    """요약 로그 1행 구성."""
    run_time = run_time or datetime.now()
    return {
        "date": run_time.strftime(TIMESTAMP_FORMAT),
        "initial_index": metrics.initial_index,
        "final_index": metrics.final_index,
        "index_return": round(metrics.index_return, 4),
        "initial_portfolio": metrics.initial_portfolio,
        "final_portfolio": metrics.final_portfolio,
        "portfolio_return": round(metrics.portfolio_return, 4),
        "small_ma": params.small_window,
        "medium_ma": params.medium_window,
        "large_ma": params.large_window,
        "slope_points": params.slope_window,
        "min_slope": params.slope_minimum,
        "stop_loss": params.stop_loss_fraction,
        "mode_up": MODE_UP,
        "mode_down": MODE_DOWN,
    }


def append_simulation_summary(
    path: str | Path,
    metrics: BacktestMetrics,
    params: ParameterSet,
    run_time: Optional[datetime] = None,
) -> Path:
    """요약 로그 CSV에 1행 추가. 파일이 없을 때만 헤더 기록."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    row = pd.DataFrame([summary_row(metrics, params, run_time)], columns=SUMMARY_COLUMNS)
    write_header = not path.exists() or path.stat().st_size == 0
    row.to_csv(path, mode="a", header=write_header, index=False)

    logger.info(f"실행 요약 추가: {path}")
    return path
