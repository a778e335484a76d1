"""진입점 스크립트 테스트."""

import logging
import sys

import pandas as pd
import pytest
import yaml

import run_backtest


@pytest.fixture
def clean_logger():
    yield
    logger = logging.getLogger("trend_system")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.mark.parametrize("text,expected", [
    ("small_window=10", ("small_window", 10)),
    ("stop_loss_fraction = 0.05", ("stop_loss_fraction", 0.05)),
    ("slope_minimum=1e-3", ("slope_minimum", 0.001)),
    ("name=abc", ("name", "abc")),
])
def test_parse_param(text, expected):
    assert run_backtest.parse_param(text) == expected


def test_sample_data():
    df = run_backtest.generate_sample_data(n_bars=100)
    assert len(df) == 100
    assert (df["price"] > 0).all()
    assert list(df.columns) == ["date", "price"]


def test_main_with_sample_data(tmp_path, monkeypatch, clean_logger):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump({
            "strategy": {"small_window": 5, "medium_window": 10, "large_window": 20, "slope_window": 30},
            "report": {"output_dir": str(tmp_path / "results")},
            "log_dir": str(tmp_path / "logs"),
        }),
        encoding="utf-8",
    )
    monkeypatch.setattr(sys, "argv", ["run_backtest.py", "--config", str(config_path), "--sample"])

    run_backtest.main()

    bars = pd.read_csv(tmp_path / "results" / "simulation_data.csv")
    summary = pd.read_csv(tmp_path / "results" / "simulations.csv")
    assert len(bars) == 750
    assert len(summary) == 1
    assert summary.loc[0, "slope_points"] == 30


def test_main_aborts_on_bad_windows(tmp_path, monkeypatch, capsys, clean_logger):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump({
            "strategy": {"small_window": 30, "medium_window": 10, "large_window": 20, "slope_window": 40},
            "report": {"output_dir": str(tmp_path / "results")},
            "log_dir": str(tmp_path / "logs"),
        }),
        encoding="utf-8",
    )
    monkeypatch.setattr(sys, "argv", ["run_backtest.py", "--config", str(config_path), "--sample"])

    run_backtest.main()

    assert "전략 실행 불가" in capsys.readouterr().out
    assert not (tmp_path / "results").exists()
