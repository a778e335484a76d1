"""
설정 관리 모듈.

[ 역할 ]
    config.yaml (또는 .json) 파일을 파싱하여 Config 객체로 변환.
    전략 파라미터, 백테스트 입력, 결과 저장 경로, 로깅 설정 등을 통합 관리.

[ 설정 파일 구조 (config.yaml) ]
    strategy:         → StrategyConfig (윈도우, 기울기 임계값, 손절 비율)
    backtest:         → BacktestConfig (가격 CSV 경로, 초기 자금)
    report:           → ReportConfig (결과 CSV 저장 경로)
    log_level:        → "INFO" / "DEBUG"
    log_dir:          → 로그 디렉토리 경로

[ 호출하는 곳 ]
    - run_backtest.py에서 Config.from_yaml()로 로드
    - 엔진 생성 시 config.parameter_set()으로 ParameterSet 생성
"""

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from trend_system.core.parameters import ParameterSet


@dataclass
class StrategyConfig:
    """전략 설정. config.yaml의 strategy 섹션에 대응."""
    small_window: int = 14
    medium_window: int = 21
    large_window: int = 40
    slope_window: int = 50
    slope_minimum: float = 0.0
    stop_loss_fraction: float = 0.1


@dataclass
class BacktestConfig:
    """백테스트 설정. config.yaml의 backtest 섹션에 대응."""
    data_path: str = "data/prices.csv"
    date_column: str = "date"
    price_column: str = "price"
    initial_cash: float = 10_000


@dataclass
class ReportConfig:
    """결과 저장 설정. config.yaml의 report 섹션에 대응."""
    output_dir: str = "results"
    simulation_data_file: str = "simulation_data.csv"  # 봉 단위 결과 (덮어씀)
    summary_file: str = "simulations.csv"              # 실행 요약 (누적)

    @property
    def simulation_data_path(self) -> Path:
        return Path(self.output_dir) / self.simulation_data_file

    @property
    def summary_path(self) -> Path:
        return Path(self.output_dir) / self.summary_file


def _section(cls, data: dict[str, Any] | None):
    """dataclass 필드에 해당하는 키만 골라 생성. 모르는 키는 무시."""
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in (data or {}).items() if k in names})


@dataclass
class Config:
    """전체 설정. from_yaml() 또는 from_json()으로 파일에서 로드."""
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """YAML 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls._from_dict(data or {})

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        """JSON 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """딕셔너리에서 Config 생성."""
        return cls(
            strategy=_section(StrategyConfig, data.get("strategy")),
            backtest=_section(BacktestConfig, data.get("backtest")),
            report=_section(ReportConfig, data.get("report")),
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
        )

    def with_strategy_overrides(self, overrides: dict[str, Any]) -> "Config":
        """CLI -p key=value 오버라이드 적용. strategy 필드가 아닌 키는 ValueError."""
        names = {f.name for f in fields(StrategyConfig)}
        unknown = sorted(set(overrides) - names)
        if unknown:
            raise ValueError(f"알 수 없는 전략 파라미터: {unknown}. 사용 가능: {sorted(names)}")
        return replace(self, strategy=replace(self.strategy, **overrides))

    def parameter_set(self) -> ParameterSet:
        """엔진에 전달할 ParameterSet 생성."""
        s = self.strategy
        return ParameterSet(
            small_window=int(s.small_window),
            medium_window=int(s.medium_window),
            large_window=int(s.large_window),
            slope_window=int(s.slope_window),
            slope_minimum=float(s.slope_minimum),
            stop_loss_fraction=float(s.stop_loss_fraction),
            initial_cash=float(self.backtest.initial_cash),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환."""
        from dataclasses import asdict
        return asdict(self)

    def save_yaml(self, path: str | Path) -> None:
        """YAML 파일로 저장."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True, default_flow_style=False)
