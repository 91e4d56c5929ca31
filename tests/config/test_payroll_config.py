"""
Tests for payroll configuration loading and validation.

Configuration sets are written to a temporary directory so each test
controls its own YAML.
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from payroll_config import get_active_config
from payroll_config.loader import compute_checksum, load_configuration, parse_decimal
from payroll_config.schema import PayrollConfiguration
from payroll_config.validator import validate_configuration


def _write_set(config_dir: Path, config_id: str, data: dict) -> Path:
    set_dir = config_dir / config_id
    set_dir.mkdir(parents=True)
    root = set_dir / "root.yaml"
    root.write_text(yaml.safe_dump(data))
    return root


@pytest.fixture
def valid_data() -> dict:
    return {
        "config_id": "test",
        "version": 2,
        "description": "test set",
        "currency": {"base_currency": "PKR", "foreign_currency": "USD", "usd_to_pkr_rate": "280"},
        "compensation": {
            "pm_commission_percentage": "12",
            "team_lead_bonus_amount": 8000,
            "bidder_bonus_amount": 4000,
        },
        "database": {"url": "sqlite:///:memory:", "pool_size": 3},
        "logging": {"level": "debug"},
    }


class TestDefaultConfigurationSet:

    def test_shipped_default_loads(self):
        config = get_active_config()

        assert config.config_id == "default"
        assert config.currency.usd_to_pkr_rate == Decimal("278.50")
        assert config.compensation.pm_commission_percentage == Decimal("10")
        assert config.compensation.team_lead_bonus_amount == Decimal("10000")
        assert config.compensation.bidder_bonus_amount == Decimal("5000")
        assert len(config.checksum) == 64

    def test_settings_defaults(self):
        defaults = get_active_config().settings_defaults()
        assert defaults.usd_to_pkr_rate == Decimal("278.50")
        assert defaults.fallbacks.bidder_bonus_amount == Decimal("5000")

    def test_trace_logged(self, captured_logs):
        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_CONFIG_TRACE"]
        assert traces
        assert traces[-1]["config_set_id"] == "default"
        assert traces[-1]["checksum"] == config.checksum
        assert traces[-1]["logger"] == "payroll_kernel.config"


class TestLoadConfiguration:

    def test_parses_all_sections(self, tmp_path, valid_data):
        root = _write_set(tmp_path, "test", valid_data)

        config = load_configuration(root)

        assert isinstance(config, PayrollConfiguration)
        assert config.version == 2
        assert config.currency.usd_to_pkr_rate == Decimal("280")
        assert config.compensation.team_lead_bonus_amount == Decimal("8000")
        assert config.database.pool_size == 3
        assert config.logging.level == "DEBUG"

    def test_missing_sections_use_defaults(self, tmp_path):
        root = _write_set(tmp_path, "bare", {"config_id": "bare"})

        config = load_configuration(root)

        assert config.version == 1
        assert config.currency.usd_to_pkr_rate == Decimal("278.50")
        assert config.database.url == "sqlite:///payroll.db"

    def test_float_rate_goes_through_str(self):
        assert parse_decimal(278.5, "rate") == Decimal("278.5")

    @pytest.mark.parametrize("value", [True, "abc", None])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ValueError):
            parse_decimal(value, "rate")

    def test_checksum_is_deterministic(self, valid_data):
        reordered = dict(reversed(list(valid_data.items())))
        assert compute_checksum(valid_data) == compute_checksum(reordered)
        assert compute_checksum(valid_data) != compute_checksum({**valid_data, "version": 3})


class TestValidation:

    def _validate(self, tmp_path, data):
        return validate_configuration(load_configuration(_write_set(tmp_path, data["config_id"], data)))

    def test_valid(self, tmp_path, valid_data):
        result = self._validate(tmp_path, valid_data)
        assert result.is_valid
        assert result.warnings == []

    @pytest.mark.parametrize(
        "section, key, value",
        [
            ("currency", "usd_to_pkr_rate", "0"),
            ("currency", "usd_to_pkr_rate", "-1"),
            ("currency", "base_currency", "INR"),
            ("compensation", "pm_commission_percentage", "101"),
            ("compensation", "team_lead_bonus_amount", "-5"),
            ("database", "pool_size", 0),
            ("logging", "level", "LOUD"),
        ],
    )
    def test_errors(self, tmp_path, valid_data, section, key, value):
        valid_data[section][key] = value
        result = self._validate(tmp_path, valid_data)
        assert not result.is_valid
        assert any(key in error for error in result.errors)

    def test_zero_bonus_is_a_warning(self, tmp_path, valid_data):
        valid_data["compensation"]["bidder_bonus_amount"] = 0
        result = self._validate(tmp_path, valid_data)
        assert result.is_valid
        assert any("bidder_bonus_amount" in w for w in result.warnings)


class TestGetActiveConfig:

    def test_custom_directory(self, tmp_path, valid_data):
        _write_set(tmp_path, "test", valid_data)
        config = get_active_config("test", config_dir=tmp_path)
        assert config.config_id == "test"

    def test_unknown_set(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config("missing", config_dir=tmp_path)

    def test_invalid_set_raises(self, tmp_path, valid_data):
        valid_data["currency"]["usd_to_pkr_rate"] = "-3"
        _write_set(tmp_path, "test", valid_data)
        with pytest.raises(ValueError, match="usd_to_pkr_rate"):
            get_active_config("test", config_dir=tmp_path)

    def test_warnings_logged(self, tmp_path, valid_data, captured_logs):
        valid_data["compensation"]["team_lead_bonus_amount"] = 0
        _write_set(tmp_path, "test", valid_data)

        get_active_config("test", config_dir=tmp_path)

        warnings = [r for r in captured_logs() if r["message"] == "payroll_config_warning"]
        assert "team_lead_bonus_amount" in warnings[0]["detail"]
