# src/keynescope/equilibrium.py
"""
Closed-form equilibrium solver.

Every supported model is a linear fixed point

    Y = A + m · Y   ⇒   Y = A / (1 − m)

where the autonomous spending ``A`` and the marginal spending rate ``m`` are
supplied by the regime variant selected by the parameter set. Consumption and
investment are recomputed from ``Y`` once it is known.

When ``1 − m == 0`` the solver does not raise: the result carries
``output = +inf`` and callers are expected to clamp chart bounds and avoid
dividing by the equilibrium.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from keynescope.params import ParameterSet

__all__ = ["Equilibrium", "solve"]


@dataclass(slots=True, frozen=True)
class Equilibrium:
    """
    Read-only result of :func:`solve`.

    Parameters
    ----------
    output : float
        Equilibrium output Y (``+inf`` at the singularity).
    interest_rate : float or None
        Pegged rate (IS-LM), the investment-function rate (cross model with
        endogenous investment) or None when no rate enters the model.
    consumption : float
        C evaluated at Y.
    investment : float
        I evaluated at Y (and the interest rate).
    autonomous_spending : float
        A, the demand component independent of output.
    marginal_rate : float
        m, the increase in demand per unit of output.
    multiplier : float
        ``1 / (1 - m)``; ``+inf`` at the singularity.
    """

    output: float
    interest_rate: float | None
    consumption: float
    investment: float
    autonomous_spending: float
    marginal_rate: float
    multiplier: float

    @property
    def bounded(self) -> bool:
        """False when the solver hit the ``1 - m == 0`` singularity."""
        return math.isfinite(self.output)


def solve(params: ParameterSet) -> Equilibrium:
    """
    Solve the model described by *params*.

    Pure and deterministic: identical input yields identical output.

    Parameters
    ----------
    params : ParameterSet
        Parameter snapshot; its regime flags select the formulas.

    Returns
    -------
    Equilibrium
        The equilibrium, with ``output = +inf`` at the singularity.

    Examples
    --------
    >>> from keynescope.params import CrossParams
    >>> eq = solve(CrossParams(c0=180, c1=0.8, I=160, G=160, T=120))
    >>> round(eq.output, 6)
    2020.0
    """
    return params.variant.solve(params)
