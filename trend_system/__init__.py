"""
=============================================================================
추세 추종 백테스트 시스템 (Trend System)
=============================================================================

[ 시스템 전체 구조 ]

    run_backtest.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드
         ├── utils/logger.py        ← 로깅
         ├── data/csv_provider.py   ← 가격 CSV → PriceSeries
         │
         └── backtest/engine.py     ← 백테스트 실행 엔진 (봉 단위 루프)
               │
               ├── strategies/signals.py              ← 이동평균 3개 + 회귀 기울기
               ├── strategies/trend_state_machine.py  ← 7상태 매매 상태머신 + 손절
               ├── data/portfolio.py                  ← CFD 방식 진입/청산/평가
               ├── backtest/result.py                 ← 봉 단위 결과 저장소
               ├── backtest/metrics.py                ← 성과 지표 계산
               └── backtest/report.py                 ← 결과 CSV / 요약 로그 저장


[ 공용 정의 (core/) ]

    core/data_provider.py   → PriceSeries, PriceProvider (데이터 소스 추상화)
    core/parameters.py      → ParameterSet (윈도우 순서 검증)
    core/signal_types.py    → BarSignals, PositionDirection
    core/exceptions.py      → BacktestError 계열 예외


[ 데이터 흐름 ]

    1. config.yaml에서 전략 파라미터 로드 → ParameterSet
    2. CsvPriceProvider가 가격 시계열 제공 (가격 0 이하 행 제외)
    3. 워밍업(slope_window봉) 이후 매 봉:
         generate_signals() → TrendStateMachine.next_state() → value_portfolio()
    4. BacktestResult에 봉 단위 기록 추가
    5. metrics.py가 성과 지표 계산, report.py가 CSV 저장
"""

__version__ = "0.1.0"
