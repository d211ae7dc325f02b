# src/keynescope/sync.py
"""
Parameter carry-over on regime switches.

When a regime flag flips, the parameters of the newly active regime are
usually unrelated to the old ones (the tax rate ``t`` was never touched while
lump-sum taxes were active). These helpers pick equivalent values from the
old equilibrium:

    proportional → lump-sum      T  = t · Y
    lump-sum → proportional      t  = T / Y
    exogenous → endogenous       b0 = I − b1 · Y + b2 · i
    endogenous → exogenous       I  = b0 + b1 · Y − b2 · i

Without clamping each substitution leaves the equilibrium output unchanged;
results are clamped to the configured bounds, in which case the output moves.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from keynescope.equilibrium import solve
from keynescope.logging import getLogger

if TYPE_CHECKING:
    from keynescope.config.schema import EngineConfig
    from keynescope.params import ParameterSet

__all__ = ["tax_changes", "investment_changes", "switch_regime"]

log = getLogger(__name__)


def _clamp(val: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, val))


def tax_changes(
    params: ParameterSet,
    to_lump_sum: bool,
    *,
    amount_bounds: tuple[float, float] = (0.0, 500.0),
    rate_bounds: tuple[float, float] = (0.05, 0.8),
    default_rate: float = 0.25,
) -> dict[str, float]:
    """
    Tax parameter that keeps the equilibrium when switching tax regime.

    Returns an empty dict when the regime does not actually change.
    """
    if bool(params.lump_sum_tax) == to_lump_sum:  # type: ignore[attr-defined]
        return {}

    y = solve(params).output
    if to_lump_sum:
        if not math.isfinite(y):
            return {}
        return {"T": _clamp(params.t * y, amount_bounds)}  # type: ignore[attr-defined]

    if math.isfinite(y) and y > 0.0:
        rate = params.T / y  # type: ignore[attr-defined]
    else:
        rate = default_rate
    return {"t": _clamp(rate, rate_bounds)}


def investment_changes(
    params: ParameterSet,
    to_exogenous: bool,
    *,
    bounds: tuple[float, float] = (0.0, 500.0),
) -> dict[str, float]:
    """
    Investment parameter that keeps the equilibrium when switching between
    a fixed investment level and the investment function.
    """
    if bool(params.exogenous_investment) == to_exogenous:  # type: ignore[attr-defined]
        return {}

    y = solve(params).output
    if not math.isfinite(y):
        return {}

    p: Any = params
    if to_exogenous:
        return {"I": _clamp(p.b0 + p.b1 * y - p.b2 * p.i, bounds)}
    return {"b0": _clamp(p.I - p.b1 * y + p.b2 * p.i, bounds)}


def switch_regime(
    params: ParameterSet,
    flag: str,
    value: bool,
    config: EngineConfig | None = None,
) -> ParameterSet:
    """
    Return *params* with regime *flag* set to *value*.

    When ``config.sync_regime_parameters`` is True the parameters of the newly
    active regime are carried over as described in the module docstring.

    Raises
    ------
    KeyError
        If *flag* is not a regime flag of the model.
    """
    if not params.is_flag(flag):
        raise KeyError(
            f"'{flag}' is not a regime flag of {params.model}. "
            f"Flags: {list(params.regime_flags)}"
        )

    changes: dict[str, Any] = {flag: bool(value)}
    if config is not None and config.sync_regime_parameters:
        if flag == "lump_sum_tax":
            changes.update(
                tax_changes(
                    params,
                    bool(value),
                    amount_bounds=config.tax_amount_bounds,
                    rate_bounds=config.tax_rate_bounds,
                    default_rate=config.default_tax_rate,
                )
            )
        elif flag == "exogenous_investment":
            changes.update(
                investment_changes(params, bool(value), bounds=config.investment_bounds)
            )
        log.debug("Regime switch %s=%s carries over %s", flag, value, changes)

    return params.replace(**changes)
