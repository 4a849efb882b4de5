"""
QVote TOML Configuration Loader

Loads qvote.toml with environment variable overrides.

Environment variable mapping:
    [ledger] operator         → QVOTE_OPERATOR
    [ledger] initial_balance  → QVOTE_INITIAL_BALANCE
    [ledger] voting_period    → QVOTE_VOTING_PERIOD
    [logging] level           → QVOTE_LOG_LEVEL
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import DEFAULT_OPERATOR, INITIAL_BALANCE, VOTING_PERIOD
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str) -> Optional[int]:
    v = os.environ.get(name)
    if not v:
        return None
    try:
        return int(v)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {v!r}") from None


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass
class LedgerSectionConfig:
    """[ledger] section."""
    operator: str = DEFAULT_OPERATOR
    initial_balance: int = INITIAL_BALANCE
    voting_period: int = VOTING_PERIOD

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerSectionConfig":
        return cls(
            operator=data.get("operator", DEFAULT_OPERATOR),
            initial_balance=data.get("initial_balance", INITIAL_BALANCE),
            voting_period=data.get("voting_period", VOTING_PERIOD),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("QVOTE_OPERATOR"):
            self.operator = v
        if (v := _env_int("QVOTE_INITIAL_BALANCE")) is not None:
            self.initial_balance = v
        if (v := _env_int("QVOTE_VOTING_PERIOD")) is not None:
            self.voting_period = v


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(level=str(data.get("level", "INFO")).upper())

    def apply_env(self) -> None:
        if v := os.environ.get("QVOTE_LOG_LEVEL"):
            self.level = v.upper()


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass
class LedgerConfig:
    """Complete ledger configuration."""
    ledger: LedgerSectionConfig = field(default_factory=LedgerSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    @property
    def operator(self) -> str:
        return self.ledger.operator

    @property
    def initial_balance(self) -> int:
        return self.ledger.initial_balance

    @property
    def voting_period(self) -> int:
        return self.ledger.voting_period

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerConfig":
        return cls(
            ledger=LedgerSectionConfig.from_dict(data.get("ledger", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "LedgerConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults (plus env overrides) are used.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.ledger.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Raises:
            ConfigurationError: on invalid config
        """
        if not self.ledger.operator:
            raise ConfigurationError("operator must not be empty")
        for name in ("initial_balance", "voting_period"):
            value = getattr(self.ledger, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        if self.logging.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ledger": {
                "operator": self.ledger.operator,
                "initial_balance": self.ledger.initial_balance,
                "voting_period": self.ledger.voting_period,
            },
            "logging": {
                "level": self.logging.level,
            },
        }


def load_config(path: Optional[str] = None) -> LedgerConfig:
    """
    Load and validate the ledger configuration.

    Resolution order:
        1. Explicit *path* argument
        2. QVOTE_CONFIG env var
        3. ./qvote.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("QVOTE_CONFIG", "qvote.toml")

    cfg = LedgerConfig.from_file(path)
    cfg.validate()
    return cfg
