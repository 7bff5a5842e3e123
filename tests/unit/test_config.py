"""
Unit tests for configuration loading and logging setup.
"""

import logging
from pathlib import Path

import pytest

from multiauction.core.config import (
    ACCEPTANCE_PERIOD,
    FEE_RATE_BPS,
    PENNY_TIMER_DURATION,
    ProtocolConfig,
    load_config,
)
from multiauction.utils.logger import AuctionLogger, get_logger, setup_logging

SETTINGS = (
    "FEE_RATE_BPS",
    "ACCEPTANCE_PERIOD",
    "PENNY_TIMER_DURATION",
    "MAX_ITEMS",
    "DATA_DIR",
    "DB_NAME",
    "LOG_DIR",
    "LOG_LEVEL",
    "LOG_TO_FILE",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Start without MULTIAUCTION_* variables; anything set during the test is undone."""
    for name in SETTINGS:
        # setenv first so teardown also removes values a .env file adds
        monkeypatch.setenv("MULTIAUCTION_" + name, "")
        monkeypatch.delenv("MULTIAUCTION_" + name)
    return monkeypatch


# =============================================================================
# ProtocolConfig Tests
# =============================================================================


class TestProtocolConfig:
    """Tests for configuration defaults and validation."""

    def test_defaults(self):
        """Defaults match the deployed program."""
        config = ProtocolConfig()
        assert config.fee_rate_bps == FEE_RATE_BPS == 50
        assert config.acceptance_period == ACCEPTANCE_PERIOD == 86400
        assert config.penny_timer_duration == PENNY_TIMER_DURATION == 300
        assert config.max_items == 255
        assert config.db_path == Path("data") / "auctions.db"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("fee_rate_bps", -1),
            ("fee_rate_bps", 1001),
            ("acceptance_period", -5),
            ("penny_timer_duration", 0),
            ("max_items", 0),
            ("max_items", 256),
        ],
    )
    def test_out_of_range(self, field, value):
        """Invalid values are rejected at construction."""
        with pytest.raises(ValueError):
            ProtocolConfig(**{field: value})

    def test_ensure_directories(self, tmp_path):
        """Data and log directories are created on demand."""
        config = ProtocolConfig(data_dir=tmp_path / "data", log_dir=tmp_path / "logs", log_to_file=True)
        config.ensure_directories()
        assert (tmp_path / "data").is_dir()
        assert (tmp_path / "logs").is_dir()


# =============================================================================
# load_config Tests
# =============================================================================


class TestLoadConfig:
    """Tests for environment-driven configuration."""

    def test_no_environment(self, clean_env, tmp_path):
        """Without variables the defaults apply."""
        assert load_config(str(tmp_path / "missing.env")) == ProtocolConfig()

    def test_environment_overrides(self, clean_env, tmp_path):
        """MULTIAUCTION_* variables override defaults."""
        clean_env.setenv("MULTIAUCTION_FEE_RATE_BPS", "100")
        clean_env.setenv("MULTIAUCTION_DATA_DIR", str(tmp_path))
        clean_env.setenv("MULTIAUCTION_LOG_TO_FILE", "yes")

        config = load_config(str(tmp_path / "missing.env"))
        assert config.fee_rate_bps == 100
        assert config.data_dir == tmp_path
        assert config.log_to_file is True

    def test_env_file(self, clean_env, tmp_path):
        """Values come from a .env file unless already set."""
        env_file = tmp_path / ".env"
        env_file.write_text("MULTIAUCTION_MAX_ITEMS=10\nMULTIAUCTION_PENNY_TIMER_DURATION=60\n")
        clean_env.setenv("MULTIAUCTION_PENNY_TIMER_DURATION", "120")

        config = load_config(str(env_file))
        assert config.max_items == 10
        assert config.penny_timer_duration == 120

    def test_invalid_value(self, clean_env, tmp_path):
        """Out-of-range environment values fail like constructor arguments."""
        clean_env.setenv("MULTIAUCTION_FEE_RATE_BPS", "5000")
        with pytest.raises(ValueError):
            load_config(str(tmp_path / "missing.env"))


# =============================================================================
# Logger Tests
# =============================================================================


class TestLogger:
    """Tests for the logging setup."""

    def test_logger_namespace(self):
        """Subsystem loggers live under multiauction."""
        assert get_logger("controller").name == "multiauction.controller"

    def test_setup_reconfigures(self, tmp_path):
        """setup_logging applies even after loggers were requested."""
        get_logger("runtime")
        setup_logging(level="DEBUG", log_dir=str(tmp_path), log_to_file=True)
        root = logging.getLogger("multiauction")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        get_logger("runtime").info("hello")
        for handler in root.handlers:
            handler.flush()
        assert "hello" in (tmp_path / "multiauction.log").read_text()

        setup_logging(level="INFO")
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_falls_back(self):
        """Unknown level names fall back to INFO."""
        AuctionLogger.setup(level="chatty", force=True)
        assert logging.getLogger("multiauction").level == logging.INFO
