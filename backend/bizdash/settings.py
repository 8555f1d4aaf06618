"""Environment-driven settings for the financial engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

LOGGER = logging.getLogger(__name__)

HORIZON_MONTHS_ENV = "FINANCIAL_PROJECTION_HORIZON_MONTHS"
RANKING_LIMIT_ENV = "FINANCIAL_RANKING_LIMIT"
DEFAULT_PAYMENT_DAY_ENV = "FINANCIAL_DEFAULT_PAYMENT_DAY"

DEFAULT_HORIZON_MONTHS = 12
DEFAULT_RANKING_LIMIT = 5
DEFAULT_PAYMENT_DAY = 28


@dataclass(frozen=True)
class FinancialSettings:
    horizon_months: int = DEFAULT_HORIZON_MONTHS
    ranking_limit: int = DEFAULT_RANKING_LIMIT
    default_payment_day: int = DEFAULT_PAYMENT_DAY


def _read_positive_int_env(name: str, default: int, *, maximum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        LOGGER.warning("Invalid %s=%s; falling back to %s", name, raw, default)
        return default
    if value <= 0 or (maximum is not None and value > maximum):
        LOGGER.warning("%s out of range; using %s", name, default)
        return default
    return value


def get_financial_settings() -> FinancialSettings:
    """Read the engine settings from the environment on every call."""

    return FinancialSettings(
        horizon_months=_read_positive_int_env(HORIZON_MONTHS_ENV, DEFAULT_HORIZON_MONTHS),
        ranking_limit=_read_positive_int_env(RANKING_LIMIT_ENV, DEFAULT_RANKING_LIMIT),
        default_payment_day=_read_positive_int_env(
            DEFAULT_PAYMENT_DAY_ENV, DEFAULT_PAYMENT_DAY, maximum=31
        ),
    )
