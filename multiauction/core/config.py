"""
Protocol configuration parameters.

Defines the economic constants, timing windows and operational limits of
the settlement engine. Every executor replaying the same operations must
run with the same values, so the defaults match the deployed program.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Fee rate in basis points (0.5%)
FEE_RATE_BPS = 50

# Basis point denominator
FEE_DENOMINATOR = 10_000

# Upper bound for a configured fee rate (10%)
MAX_FEE_RATE_BPS = 1_000

# Dealer acceptance window after a Traditional deadline (24h)
ACCEPTANCE_PERIOD = 24 * 60 * 60

# Default Penny timer (5 minutes)
PENNY_TIMER_DURATION = 5 * 60

# Items per auction (index is a single byte)
MAX_ITEMS = 255

# Version byte mixed into storage keys
KEY_VERSION = 1

# Leading schema-version byte of every persisted record
SCHEMA_VERSION = 1

ENV_PREFIX = "MULTIAUCTION_"


@dataclass
class ProtocolConfig:
    """Engine-wide configuration parameters"""

    # Economics
    fee_rate_bps: int = FEE_RATE_BPS

    # Timing
    acceptance_period: int = ACCEPTANCE_PERIOD  # seconds after deadline
    penny_timer_duration: int = PENNY_TIMER_DURATION  # default for new Penny auctions

    # Limits
    max_items: int = MAX_ITEMS

    # Storage
    data_dir: Path = field(default_factory=lambda: Path("data"))
    db_name: str = "auctions.db"

    # Logging
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_level: str = "INFO"
    log_to_file: bool = False

    def __post_init__(self):
        """Validate parameter ranges"""
        if not (0 <= self.fee_rate_bps <= MAX_FEE_RATE_BPS):
            raise ValueError(
                f"fee_rate_bps must be 0-{MAX_FEE_RATE_BPS}, got {self.fee_rate_bps}"
            )
        if self.acceptance_period < 0:
            raise ValueError(f"acceptance_period must be >= 0, got {self.acceptance_period}")
        if self.penny_timer_duration <= 0:
            raise ValueError(
                f"penny_timer_duration must be > 0, got {self.penny_timer_duration}"
            )
        if not (1 <= self.max_items <= MAX_ITEMS):
            raise ValueError(f"max_items must be 1-{MAX_ITEMS}, got {self.max_items}")
        self.data_dir = Path(self.data_dir)
        self.log_dir = Path(self.log_dir)

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    def ensure_directories(self) -> None:
        """Create data and log directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        if self.log_to_file:
            self.log_dir.mkdir(exist_ok=True, parents=True)


def _env(name: str) -> Optional[str]:
    return os.environ.get(ENV_PREFIX + name)


def load_config(env_file: Optional[str] = None) -> ProtocolConfig:
    """
    Load configuration from the environment.

    Reads MULTIAUCTION_* variables, after loading an optional .env file
    (variables already set in the environment take precedence).

    Args:
        env_file: Optional path to a .env file

    Returns:
        ProtocolConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)

    kwargs = {}
    for name, attr, cast in (
        ("FEE_RATE_BPS", "fee_rate_bps", int),
        ("ACCEPTANCE_PERIOD", "acceptance_period", int),
        ("PENNY_TIMER_DURATION", "penny_timer_duration", int),
        ("MAX_ITEMS", "max_items", int),
        ("DATA_DIR", "data_dir", Path),
        ("DB_NAME", "db_name", str),
        ("LOG_DIR", "log_dir", Path),
        ("LOG_LEVEL", "log_level", str),
    ):
        raw = _env(name)
        if raw is not None:
            kwargs[attr] = cast(raw)

    raw = _env("LOG_TO_FILE")
    if raw is not None:
        kwargs["log_to_file"] = raw.strip().lower() in ("1", "true", "yes", "on")

    return ProtocolConfig(**kwargs)
