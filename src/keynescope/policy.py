# src/keynescope/policy.py
"""
Policy analysis helpers built on the solver.

These are comparative-statics utilities for teaching: multiplier breakdowns,
the effect of a single parameter change, and additive policy experiments
(fiscal shocks, tax shocks, a change of the pegged rate, or any mix of them).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Mapping

from keynescope.equilibrium import Equilibrium, solve

if TYPE_CHECKING:
    from keynescope.params import ParameterSet

__all__ = [
    "MultiplierInfo",
    "ParameterEffect",
    "PolicyOutcome",
    "multiplier_info",
    "parameter_effect",
    "analyze_policy",
    "monetary_stance",
]

Curve = Literal["IS", "LM", "ZZ"]


@dataclass(slots=True, frozen=True)
class MultiplierInfo:
    """
    Multiplier breakdown of one parameter set.

    ``tax_effect`` is ``c1·t`` under proportional taxes and 0 otherwise;
    ``is_slope`` (``di/dY`` along IS) is only defined for IS-LM.
    """

    multiplier: float
    marginal_rate: float
    marginal_propensity_to_consume: float
    marginal_propensity_to_save: float
    tax_effect: float
    is_slope: float | None
    description: str


@dataclass(slots=True, frozen=True)
class ParameterEffect:
    field: str
    delta_output: float
    delta_consumption: float
    delta_investment: float
    affected_curve: Curve


@dataclass(slots=True, frozen=True)
class PolicyOutcome:
    """
    Result of :func:`analyze_policy`.

    ``multiplier`` is the effective multiplier ``ΔY / Δx`` when exactly one
    non-zero shock was applied, None otherwise.
    """

    initial: Equilibrium
    final: Equilibrium
    shocks: Mapping[str, float] = field(default_factory=dict)
    multiplier: float | None = None

    @property
    def delta_output(self) -> float:
        return _change(self.initial.output, self.final.output)


def _change(old: float, new: float) -> float:
    # inf -> inf is "no change", not NaN
    return 0.0 if old == new else new - old


def multiplier_info(params: ParameterSet) -> MultiplierInfo:
    """
    Multiplier, marginal rates and tax effect of *params*.

    Examples
    --------
    >>> from keynescope.params import CrossParams
    >>> info = multiplier_info(CrossParams(c0=180, c1=0.8, I=160, G=160, T=120))
    >>> round(info.multiplier, 6), round(info.marginal_propensity_to_save, 6)
    (5.0, 0.2)
    """
    p = params
    variant = p.variant
    eq = variant.solve(p)
    lump_sum = bool(getattr(p, "lump_sum_tax", True))
    tax_effect = 0.0 if lump_sum else p.c1 * p.t  # type: ignore[attr-defined]

    is_slope: float | None = None
    if p.model == "is_lm":
        is_slope = -variant.gap(p) / p.d2  # type: ignore[attr-defined]

    if lump_sum:
        description = f"Multiplier with lump-sum taxes: 1/(1 - m) = {eq.multiplier:.2f}"
    else:
        description = (
            f"Multiplier with proportional taxes (t = {p.t:.2f}): "  # type: ignore[attr-defined]
            f"1/(1 - m) = {eq.multiplier:.2f}"
        )

    return MultiplierInfo(
        multiplier=eq.multiplier,
        marginal_rate=eq.marginal_rate,
        marginal_propensity_to_consume=p.c1,  # type: ignore[attr-defined]
        marginal_propensity_to_save=1.0 - p.c1,  # type: ignore[attr-defined]
        tax_effect=tax_effect,
        is_slope=is_slope,
        description=description,
    )


def parameter_effect(
    name: str,
    old: ParameterSet,
    new: ParameterSet,
) -> ParameterEffect:
    """
    Change in output, consumption and investment between two snapshots.

    Parameters
    ----------
    name : str
        Field held responsible for the change.
    old, new : ParameterSet
        Snapshots before and after.

    Raises
    ------
    KeyError
        If *name* is not a field of the model.
    """
    if name not in old.field_names():
        raise KeyError(f"'{name}' is not a {old.model} parameter")

    before, after = solve(old), solve(new)
    if old.model == "is_lm":
        curve: Curve = "LM" if name == "i_bar" else "IS"
    else:
        curve = "ZZ"

    return ParameterEffect(
        field=name,
        delta_output=_change(before.output, after.output),
        delta_consumption=_change(before.consumption, after.consumption),
        delta_investment=_change(before.investment, after.investment),
        affected_curve=curve,
    )


def analyze_policy(params: ParameterSet, **deltas: float) -> PolicyOutcome:
    """
    Apply additive shocks to *params* and compare equilibria.

    Parameters
    ----------
    params : ParameterSet
        Starting point.
    **deltas
        ``field=Δ`` pairs, e.g. ``G=20.0`` or ``G=20.0, i_bar=-1.0``.

    Returns
    -------
    PolicyOutcome
        Equilibria before and after the shocks.

    Raises
    ------
    KeyError
        If a shock names something other than a numeric parameter.

    Examples
    --------
    >>> from keynescope.params import ISLMParams
    >>> p = ISLMParams(c0=100, c1=0.6, I0=80, d1=0.1, d2=40, G=150, T=100)
    >>> out = analyze_policy(p, G=30.0)
    >>> round(out.multiplier, 6)
    3.333333
    """
    numeric = params.numeric_fields()
    unknown = sorted(set(deltas) - set(numeric))
    if unknown:
        raise KeyError(
            f"Cannot shock {unknown}: not numeric {params.model} parameters"
        )

    changes = {k: getattr(params, k) + float(v) for k, v in deltas.items()}
    initial = solve(params)
    final = solve(params.replace(**changes))

    multiplier = None
    nonzero = [v for v in deltas.values() if v != 0]
    if len(nonzero) == 1 and initial.bounded and final.bounded:
        multiplier = (final.output - initial.output) / float(nonzero[0])

    return PolicyOutcome(
        initial=initial,
        final=final,
        shocks={k: float(v) for k, v in deltas.items()},
        multiplier=multiplier,
    )


def monetary_stance(delta_i: float) -> str:
    """
    Classify a change of the pegged rate.

    A cut is expansionary, a hike contractionary.
    """
    if math.isnan(delta_i):
        raise ValueError("delta_i must be a number, got NaN")
    if delta_i < 0:
        return "expansionary"
    if delta_i > 0:
        return "contractionary"
    return "neutral"
