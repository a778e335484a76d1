"""
로깅 모듈.

[ 역할 ]
    "trend_system" 루트 로거에 파일 + 콘솔 핸들러를 붙인다.
    엔진(진입/청산/손절), 데이터 로드, 결과 저장 로그가 모두 여기로 모인다.

[ 로그 파일 위치 ]
    {log_dir}/{name}_{YYYYMMDD}.log (예: logs/trend_system_20240601.log)
    log_dir=None 이면 파일 로그 없이 콘솔만 사용.

[ 하위 로거 ]
    trend_system.backtest  - backtest/engine.py
    trend_system.data      - data/csv_provider.py
    trend_system.report    - backtest/report.py

[ 호출하는 곳 ]
    - run_backtest.py에서 setup_logger() 호출
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _daily_file_handler(log_dir: str, name: str) -> logging.FileHandler:
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y%m%d")
    return logging.FileHandler(log_path / f"{name}_{today}.log", encoding="utf-8")


def setup_logger(
    name: str = "trend_system",
    level: str = "INFO",
    log_dir: Optional[str] = "logs",
    console: bool = True,
) -> logging.Logger:
    """로거 설정. 이미 핸들러가 있으면 레벨만 갱신."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = []
    if log_dir:
        handlers.append(_daily_file_handler(log_dir, name))
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
