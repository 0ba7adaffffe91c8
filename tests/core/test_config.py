"""Configuration parsing tests."""

from pathlib import Path

from milpay.core.config import DEFAULT_RULESET_PATH, Settings


def test_defaults_point_at_bundled_ruleset(monkeypatch) -> None:
    """Without overrides the bundled YAML and in-memory store are used."""
    monkeypatch.delenv("MILPAY_RULESET_PATH", raising=False)
    monkeypatch.delenv("MILPAY_STORAGE_URL", raising=False)
    cfg = Settings(_env_file=None)
    assert cfg.ruleset_path == DEFAULT_RULESET_PATH
    assert DEFAULT_RULESET_PATH.exists()
    assert cfg.storage_url == "memory://milpay"


def test_env_prefix_overrides(monkeypatch, tmp_path: Path) -> None:
    """MILPAY_* variables override defaults, case-insensitively."""
    ruleset = tmp_path / "rules.yaml"
    monkeypatch.setenv("MILPAY_RULESET_PATH", str(ruleset))
    monkeypatch.setenv("milpay_default_tax_year", "2024")
    cfg = Settings(_env_file=None)
    assert cfg.ruleset_path == ruleset
    assert cfg.default_tax_year == 2024


def test_log_format_normalized(monkeypatch) -> None:
    """Log format accepts any case and blank means automatic."""
    monkeypatch.setenv("MILPAY_LOG_FORMAT", "JSON")
    assert Settings(_env_file=None).log_format == "json"

    monkeypatch.setenv("MILPAY_LOG_FORMAT", "  ")
    assert Settings(_env_file=None).log_format is None


def test_log_format_rejects_unknown(monkeypatch) -> None:
    """Invalid values fail with a clear validation error."""
    monkeypatch.setenv("MILPAY_LOG_FORMAT", "xml")
    try:
        Settings(_env_file=None)
    except Exception as exc:
        assert "MILPAY_LOG_FORMAT" in str(exc)
    else:
        raise AssertionError("Expected invalid MILPAY_LOG_FORMAT to fail")


def test_default_tax_year_range(monkeypatch) -> None:
    """Tax years outside 2000-2100 are rejected."""
    monkeypatch.setenv("MILPAY_DEFAULT_TAX_YEAR", "1999")
    try:
        Settings(_env_file=None)
    except Exception as exc:
        assert "default_tax_year" in str(exc)
    else:
        raise AssertionError("Expected out-of-range tax year to fail")
