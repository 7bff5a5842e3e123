"""
Logging for the settlement engine.

Every module logs through a child of the "multiauction" logger:

    multiauction.controller        operation outcomes (bids, settlements)
    multiauction.runtime           commits, rejections and rollbacks
    multiauction.storage.*         fee vault creation, transfers (debug)

Console output is colored by level. Embedders that run the engine as a
service can add a plain-text log file via MULTIAUCTION_LOG_TO_FILE.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import colorlog

ROOT_LOGGER = "multiauction"
LOG_FILE = "multiauction.log"

_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Rejections are WARNING, failed transfers ERROR
_LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s",
            datefmt=_DATEFMT,
            log_colors=_LEVEL_COLORS,
        )
    )
    return handler


def _file_handler(log_dir: Path, level: int) -> logging.Handler:
    log_dir.mkdir(exist_ok=True, parents=True)
    handler = logging.FileHandler(log_dir / LOG_FILE)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    return handler


class AuctionLogger:
    """Configures the engine's logger tree once per process."""

    _initialized = False

    @classmethod
    def setup(
        cls,
        level: Union[int, str] = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
        force: bool = False,
    ):
        """
        Install handlers on the "multiauction" logger.

        Args:
            level: Level as int or name; unknown names mean INFO
            log_dir: Where multiauction.log goes (default ./logs)
            log_to_file: Also write to the log file
            force: Replace handlers installed by an earlier call
        """
        if cls._initialized and not force:
            return

        level = _resolve_level(level)
        root_logger = logging.getLogger(ROOT_LOGGER)
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        root_logger.addHandler(_console_handler(level))
        if log_to_file:
            root_logger.addHandler(_file_handler(Path(log_dir) if log_dir else Path("logs"), level))

        cls._initialized = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._initialized:
            cls.setup()
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def get_logger(name: str) -> logging.Logger:
    """Logger for one engine module, e.g. get_logger("controller")."""
    return AuctionLogger.get_logger(name)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
):
    """(Re)configure engine logging; called by create_runtime from config."""
    AuctionLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file, force=True)
