"""
백테스트 예외 정의.

[ 역할 ]
    시그널 계산 / 엔진 실행 / 성과 계산 중 발생하는 오류 종류를 구분.
    모두 BacktestError를 상속하므로 호출부에서 한 번에 잡을 수 있다.

[ 예외 목록 ]
    ParameterOrderError   - 윈도우 크기 순서 위반 (엔진이 잡아서 실행 중단, 비치명적)
    InsufficientDataError - 가격 데이터가 slope_window보다 짧음
    DegenerateWindowError - 회귀 기울기 계산 구간이 2개 미만
    DivisionByZeroError   - 수익률 계산 기준값(초기 가격/초기 자산)이 0

[ 호출하는 곳 ]
    - core/parameters.py::ParameterSet.validate()
    - strategies/signals.py (기울기, 윈도우 길이 검사)
    - backtest/engine.py::BacktestEngine.run_backtest()
    - backtest/metrics.py::percent_return()
"""


class BacktestError(Exception):
    """백테스트 관련 예외의 최상위 클래스."""


class ParameterOrderError(BacktestError, ValueError):
    """slope_window > large_window > medium_window > small_window > 0 조건 위반."""


class InsufficientDataError(BacktestError):
    """필요한 윈도우 길이보다 가격 데이터가 적음."""


class DegenerateWindowError(BacktestError):
    """회귀 기울기를 계산할 수 없는 구간 (점 2개 미만)."""


class DivisionByZeroError(BacktestError, ZeroDivisionError):
    """수익률 계산 기준값이 0."""
