# app/config.py
# Role: Runtime configuration for the ledger API.
#       Reads settings from the environment (and a local .env file, if present)
#       and exposes them as a single frozen Settings object.

"""
Configuration for the ledger API.

All values come from environment variables; a `.env` file in the working
directory is loaded first. Defaults are suitable for local development.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


# -------------------------------------------------------------------
# Report defaults (used when a request omits a parameter)
# -------------------------------------------------------------------

DEFAULT_REQUESTED_DAYS = 90
DEFAULT_SEGMENT_TOTAL_DAYS = 90
DEFAULT_SEGMENT_FIRST_DAYS = 30
DEFAULT_SEGMENT_LAST_DAYS = 30
DEFAULT_LAST_N_DAYS = 30

# Category excluded from income sums by default (transfers between own accounts)
DEFAULT_EXCLUDED_CATEGORY_ID = 18020004

DEFAULT_INCOME_THRESHOLD = Decimal("15")

# Accepted values of SEGMENT_PAIRING (see SegmentPairing in balance_engine.py)
SEGMENT_PAIRINGS = ("legacy", "corrected")


def _env_truthy(name: str, default: str = "0") -> bool:
    v = os.getenv(name, default)
    return str(v).strip().lower() in ("1", "true", "yes", "y", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str
    segment_pairing: str
    serialize_ledger_writes: bool


@lru_cache
def get_settings() -> Settings:
    """
    Build settings from the environment. Cached; call `get_settings.cache_clear()`
    after changing environment variables (tests do this).
    """
    segment_pairing = os.getenv("SEGMENT_PAIRING", "legacy").strip().lower()
    if segment_pairing not in SEGMENT_PAIRINGS:
        raise ValueError(
            f"SEGMENT_PAIRING must be one of {', '.join(SEGMENT_PAIRINGS)}, got {segment_pairing!r}"
        )

    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./database/ledger.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        segment_pairing=segment_pairing,
        serialize_ledger_writes=_env_truthy("SERIALIZE_LEDGER_WRITES"),
    )
