from __future__ import annotations

from portfolio_ledger.config.paths import DB_FILENAME, data_dir, default_db_path
from portfolio_ledger.config.settings import DEFAULT_ACCOUNT_LABEL, HEADER_SCAN_ROWS, get_settings
from portfolio_ledger.utils.money import format_percent, format_won, round_money


def test_data_dir_honors_env_override(tmp_path, monkeypatch):
    target = tmp_path / "ledger-data"
    monkeypatch.setenv("PORTFOLIO_LEDGER_DATA_DIR", str(target))

    assert data_dir() == target
    assert target.is_dir()
    assert default_db_path() == target / DB_FILENAME


def test_settings_defaults(monkeypatch):
    for name in ("APP_ENV", "DATABASE_URL", "LEDGER_DEFAULT_ACCOUNT", "LEDGER_HEADER_SCAN_ROWS"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.app_env == "development"
    assert settings.database_url.startswith("sqlite:///")
    assert settings.database_url.endswith(DB_FILENAME)
    assert settings.default_account_label == DEFAULT_ACCOUNT_LABEL
    assert settings.header_scan_rows == HEADER_SCAN_ROWS


def test_settings_env_overrides_and_bad_values(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("LEDGER_DEFAULT_ACCOUNT", "  ")
    monkeypatch.setenv("LEDGER_HEADER_SCAN_ROWS", "abc")

    settings = get_settings()
    assert settings.database_url == "sqlite:///:memory:"
    assert settings.default_account_label == DEFAULT_ACCOUNT_LABEL
    assert settings.header_scan_rows == HEADER_SCAN_ROWS

    monkeypatch.setenv("LEDGER_HEADER_SCAN_ROWS", "25")
    assert get_settings().header_scan_rows == 25


def test_money_helpers_format_values():
    assert round_money(1.005) == 1.01
    assert round_money(None) == 0.0
    assert format_won(150_000) == "15만"
    assert format_won(-250_000_000) == "-2.5억"
    assert format_percent(0.1234) == "+12.34%"
    assert format_percent(-0.05) == "-5.00%"
