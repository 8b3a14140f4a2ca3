"""Runtime settings read from the environment.

All configuration keys are defined here. Command-line options override
these values; the CLI is the only place that combines the two.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ledgerline.domain.duplicates import DEFAULT_FUZZY_WINDOW_DAYS


class ConfigValidationError(ValueError):
    """Raised when an environment setting has an invalid value."""


@dataclass(frozen=True)
class Settings:
    db_path: Optional[str] = None
    fuzzy_window_days: int = DEFAULT_FUZZY_WINDOW_DAYS
    log_level: str = "WARNING"
    user: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from LEDGERLINE_* environment variables.

        Raises:
            ConfigValidationError: If a numeric setting is not a
                non-negative integer
        """
        env = os.environ if environ is None else environ

        window_env = env.get("LEDGERLINE_FUZZY_WINDOW_DAYS", "").strip()
        fuzzy_window_days = DEFAULT_FUZZY_WINDOW_DAYS
        if window_env:
            try:
                fuzzy_window_days = int(window_env)
            except ValueError:
                raise ConfigValidationError(
                    f"LEDGERLINE_FUZZY_WINDOW_DAYS must be an integer, got '{window_env}'"
                )
            if fuzzy_window_days < 0:
                raise ConfigValidationError("LEDGERLINE_FUZZY_WINDOW_DAYS must not be negative")

        return cls(
            db_path=env.get("LEDGERLINE_DB_PATH") or None,
            fuzzy_window_days=fuzzy_window_days,
            log_level=env.get("LEDGERLINE_LOG_LEVEL", "WARNING").strip().upper() or "WARNING",
            user=env.get("LEDGERLINE_USER") or None,
        )
