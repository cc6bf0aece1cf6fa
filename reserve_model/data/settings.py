"""Harness configuration read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from reserve_model.data.constants import ULUNA

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ModelSettings:
    """Settings shared by the ledger and the scenario runner.

    Attributes:
        fee_denom: Currency transaction fees are paid in. Fees are taken
            from this wallet balance regardless of the operated asset.
        base_denom: Unit of account for the collateral check.
        solvency_margin: Distance from the borrow limit used by the
            over/under collateral probes.
        check_balances: Whether the runner asserts balance queries after
            each operation.
    """

    fee_denom: str = ULUNA
    base_denom: str = ULUNA
    solvency_margin: Decimal = Decimal(100)
    check_balances: bool = True


def _read_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    logger.warning("Ignoring %s=%r; expected a boolean, using %s", key, raw, default)
    return default


def _read_margin(env: Mapping[str, str], key: str, default: Decimal) -> Decimal:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        value = Decimal(raw.strip())
    except ArithmeticError:
        logger.warning("Ignoring %s=%r; not a number, using %s", key, raw, default)
        return default
    if not value.is_finite() or value < 0:
        logger.warning("Ignoring %s=%r; must be >= 0, using %s", key, raw, default)
        return default
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> ModelSettings:
    """Build settings from ``RESERVE_MODEL_*`` environment variables.

    Args:
        environ: Variables to read. Defaults to ``os.environ``.

    Returns:
        Settings, with defaults for anything unset or unparseable.
    """
    env = os.environ if environ is None else environ
    defaults = ModelSettings()

    fee_denom = env.get("RESERVE_MODEL_FEE_DENOM", "").strip() or defaults.fee_denom
    base_denom = env.get("RESERVE_MODEL_BASE_DENOM", "").strip() or defaults.base_denom

    return ModelSettings(
        fee_denom=fee_denom,
        base_denom=base_denom,
        solvency_margin=_read_margin(
            env, "RESERVE_MODEL_SOLVENCY_MARGIN", defaults.solvency_margin
        ),
        check_balances=_read_bool(
            env, "RESERVE_MODEL_CHECK_BALANCES", defaults.check_balances
        ),
    )
