from __future__ import annotations

from pathlib import Path

import pytest

from stockanalysis import cli
from stockanalysis.cli import apply_cli_overrides, build_parser
from stockanalysis.config import Settings


def test_cli_overrides_produce_expected_settings() -> None:
    parser = build_parser()
    args = parser.parse_args(
        [
            "--symbols",
            "aapl,MSFT",
            "--data-source",
            "yfinance",
            "--historical-dir",
            "data/prices",
            "--events-dir",
            "runs/test",
            "--max-workers",
            "4",
            "--job-delay",
            "1.5",
            "--log-level",
            "DEBUG",
        ]
    )
    settings = apply_cli_overrides(Settings(), args)

    assert settings.symbols == ["AAPL", "MSFT"]
    assert settings.data_source == "yfinance"
    assert settings.historical_data_dir == "data/prices"
    assert settings.events_dir == "runs/test"
    assert settings.max_workers == 4
    assert settings.job_delay_seconds == 1.5
    assert settings.log_level == "DEBUG"


def test_cli_without_flags_keeps_environment_settings() -> None:
    base = Settings(symbols=["IBM"], max_workers=3)
    args = build_parser().parse_args([])

    assert apply_cli_overrides(base, args) == base


def test_cli_rejects_non_positive_workers() -> None:
    args = build_parser().parse_args(["--max-workers", "0"])

    with pytest.raises(ValueError, match="max_workers must be positive"):
        apply_cli_overrides(Settings(), args)


def test_cli_rejects_unknown_data_source() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--data-source", "bloomberg"])


def test_main_reports_configuration_errors(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(cli.Settings, "from_env", classmethod(lambda cls: cls()))

    exit_code = cli.main(["--job-delay", "-1"])

    assert exit_code == 2
    assert "Configuration error: job_delay_seconds must not be negative" in capsys.readouterr().out


def test_main_reports_missing_api_key(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    monkeypatch.setattr(cli.Settings, "from_env", classmethod(lambda cls: cls()))

    exit_code = cli.main(["--events-dir", str(tmp_path)])

    assert exit_code == 2
    assert "LLM_API_KEY" in capsys.readouterr().out


def test_main_dispatches_regime(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Settings] = {}
    monkeypatch.setattr(cli.Settings, "from_env", classmethod(lambda cls: cls()))

    def fake_show_regime(settings: Settings) -> int:
        captured["settings"] = settings
        return 0

    monkeypatch.setattr(cli, "show_regime", fake_show_regime)
    monkeypatch.setattr(cli, "run", lambda _settings: pytest.fail("run should not be called"))

    assert cli.main(["--regime", "--symbols", "SPY,QQQ"]) == 0
    assert captured["settings"].symbols == ["SPY", "QQQ"]
