"""
Logging for the auction engine.

Every module logs under the `curveauction` namespace through one of a
fixed set of subsystem loggers:

    chain    transactions, reverts, deployments
    token    mints and transfers of the reference ERC20
    auction  funding, purchases, claims and withdrawals of an instance
    factory  auction creation and template updates
    pricing  curve selection

State transitions log at INFO and reverts at WARNING. The console output
is colored; an optional plain-text file receives the same records.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import colorlog

ROOT = "curveauction"

SUBSYSTEMS = ("chain", "token", "auction", "factory", "pricing")

LOG_FILE = "curveauction.log"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s",
            datefmt=DATE_FORMAT,
            log_colors=LOG_COLORS,
        )
    )
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(path)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(name)s] %(levelname)-8s %(message)s", datefmt=DATE_FORMAT)
    )
    return handler


class AuctionLogger:
    """Owns the handlers of the `curveauction` logger tree"""

    _initialized = False
    _log_dir: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
    ) -> logging.Logger:
        """
        Attach handlers to the engine's root logger.

        Runs once; later calls return the configured logger unchanged
        until reset() is called.

        Args:
            level: Threshold for the root logger and its handlers
            log_dir: Directory for curveauction.log (default ./logs)
            log_to_file: Also write records to the log file
        """
        root = logging.getLogger(ROOT)
        if cls._initialized:
            return root

        root.setLevel(level)
        root.handlers.clear()
        root.addHandler(_console_handler(level))

        if log_to_file:
            cls._log_dir = Path(log_dir) if log_dir else Path("logs")
            cls._log_dir.mkdir(exist_ok=True, parents=True)
            root.addHandler(_file_handler(cls._log_dir / LOG_FILE, level))

        cls._initialized = True
        return root

    @classmethod
    def reset(cls) -> None:
        """Drop handlers so the next setup() call reconfigures logging."""
        root = logging.getLogger(ROOT)
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()
        cls._initialized = False
        cls._log_dir = None

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Logger for one engine subsystem, configuring defaults on first use.

        Raises:
            ValueError: `name` is not one of SUBSYSTEMS
        """
        if name not in SUBSYSTEMS:
            raise ValueError(f"Unknown subsystem: {name}")
        if not cls._initialized:
            cls.setup()
        return logging.getLogger(f"{ROOT}.{name}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific subsystem"""
    return AuctionLogger.get_logger(name)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
) -> logging.Logger:
    """Configure logging from scratch, replacing any earlier setup"""
    AuctionLogger.reset()
    return AuctionLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file)
