"""Configuration for a payments ledger run."""

import os
from dataclasses import dataclass

from exceptions import ConfigurationError

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no", ""}


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be true or false, got {value!r}")


@dataclass
class EngineConfig:
    """Runtime options for PaymentsEngine and the CLI."""

    log_level: str = "WARNING"
    # Malformed rows abort the run unless this is set.
    skip_malformed: bool = False

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables."""
        return cls(
            log_level=os.getenv("PAYMENTS_LOG_LEVEL", "WARNING").upper(),
            skip_malformed=_parse_bool("PAYMENTS_SKIP_MALFORMED", os.getenv("PAYMENTS_SKIP_MALFORMED", "false")),
        )
