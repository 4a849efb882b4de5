"""
QVote Configuration

Loads qvote.toml at startup. Environment variables override TOML values.
"""

from .loader import (
    LedgerConfig,
    LedgerSectionConfig,
    LoggingSectionConfig,
    load_config,
)

__all__ = [
    "LedgerConfig",
    "LedgerSectionConfig",
    "LoggingSectionConfig",
    "load_config",
]
