"""
Configuration from environment variables.

LEDGER_DB_PATH          SQLite file; unset means an in-memory ledger.
LEDGER_INITIAL_BALANCE  Starting cash for a new account (default 100000.00).
LEDGER_PAGE_LIMIT       Default transactions page size (default 20).
LEDGER_LOG_LEVEL        Logging level for configure_logging (default INFO).
LEDGER_AUTO_INITIALIZE  Seed catalog and account on startup (default true).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from ledger_core.ledger import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ledger_core.money import INITIAL_BALANCE, to_decimal

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class LedgerConfig:
    db_path: str | None = None
    initial_balance: Decimal = INITIAL_BALANCE
    page_limit: int = DEFAULT_PAGE_LIMIT
    log_level: str = "INFO"
    auto_initialize: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LedgerConfig:
        """Read LEDGER_* variables. Raises ValueError on malformed values."""
        env = os.environ if environ is None else environ

        db_path = env.get("LEDGER_DB_PATH", "").strip() or None

        raw_balance = env.get("LEDGER_INITIAL_BALANCE")
        initial_balance = INITIAL_BALANCE
        if raw_balance is not None:
            initial_balance = to_decimal(raw_balance)
            if initial_balance < 0:
                raise ValueError(f"LEDGER_INITIAL_BALANCE must not be negative, got {raw_balance!r}")

        raw_limit = env.get("LEDGER_PAGE_LIMIT")
        page_limit = DEFAULT_PAGE_LIMIT
        if raw_limit is not None:
            try:
                page_limit = int(raw_limit)
            except ValueError:
                raise ValueError(f"LEDGER_PAGE_LIMIT must be an integer, got {raw_limit!r}") from None
            if not 1 <= page_limit <= MAX_PAGE_LIMIT:
                raise ValueError(f"LEDGER_PAGE_LIMIT must be between 1 and {MAX_PAGE_LIMIT}")

        log_level = env.get("LEDGER_LOG_LEVEL", "INFO").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"LEDGER_LOG_LEVEL is not a logging level: {log_level!r}")

        raw_auto = env.get("LEDGER_AUTO_INITIALIZE")
        auto_initialize = True if raw_auto is None else _parse_bool("LEDGER_AUTO_INITIALIZE", raw_auto)

        return cls(
            db_path=db_path,
            initial_balance=initial_balance,
            page_limit=page_limit,
            log_level=log_level,
            auto_initialize=auto_initialize,
        )


def configure_logging(level: str = "INFO") -> None:
    """Process-level logging setup for scripts. Library modules only get loggers."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
