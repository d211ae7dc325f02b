# src/keynescope/regimes/cross.py
"""
Keynesian cross variants
Demand ``Z(Y) = A + m·Y``, read against the 45-degree line ``Z = Y``.

One class per (tax regime, investment regime) combination:

=========================  ==================================  ================
variant                    A                                   m
=========================  ==================================  ================
lump-sum, exogenous        c0 + I + G − c1·T                   c1
proportional, exogenous    c0 + I + G                          c1·(1 − t)
lump-sum, endogenous       c0 + b0 − b2·i + G − c1·T           c1 + b1
proportional, endogenous   c0 + b0 − b2·i + G                  c1·(1 − t) + b1
=========================  ==================================  ================
"""

from __future__ import annotations

import numpy as np

from keynescope.core.regime import Regime, scaled
from keynescope.params import CrossParams
from keynescope.typing import Float1D

_MODEL = CrossParams.model


class _Cross(Regime):
    """Shared curve and reference line of the cross variants."""

    def curve(self, p: CrossParams, x: Float1D) -> Float1D:
        return self.autonomous_spending(p) + self.marginal_rate(p) * x

    def reference(self, p: CrossParams, x: Float1D) -> Float1D:
        return np.array(x, dtype=np.float64, copy=True)


# ------------------------------------------------------------------ #
# 1.  Exogenous investment                                            #
# ------------------------------------------------------------------ #
class CrossLumpSumExogenous(_Cross):
    model = _MODEL
    regime = {"lump_sum_tax": True, "exogenous_investment": True}
    priority = ("c0", "c1", "I", "G", "T")

    def autonomous_spending(self, p: CrossParams) -> float:
        return p.c0 + p.I + p.G - p.c1 * p.T

    def marginal_rate(self, p: CrossParams) -> float:
        return p.c1

    def consumption(self, p: CrossParams, y: float) -> float:
        return p.c0 + scaled(p.c1, y) - p.c1 * p.T

    def investment(self, p: CrossParams, y: float) -> float:
        return p.I


class CrossProportionalExogenous(_Cross):
    model = _MODEL
    regime = {"lump_sum_tax": False, "exogenous_investment": True}
    priority = ("c0", "c1", "I", "G", "t")

    def autonomous_spending(self, p: CrossParams) -> float:
        return p.c0 + p.I + p.G

    def marginal_rate(self, p: CrossParams) -> float:
        return p.c1 * (1.0 - p.t)

    def consumption(self, p: CrossParams, y: float) -> float:
        return p.c0 + scaled(p.c1 * (1.0 - p.t), y)

    def investment(self, p: CrossParams, y: float) -> float:
        return p.I


# ------------------------------------------------------------------ #
# 2.  Endogenous investment  I = b0 + b1·Y − b2·i                     #
# ------------------------------------------------------------------ #
class CrossLumpSumEndogenous(_Cross):
    model = _MODEL
    regime = {"lump_sum_tax": True, "exogenous_investment": False}
    priority = ("c0", "c1", "b0", "b1", "b2", "i", "G", "T")

    def autonomous_spending(self, p: CrossParams) -> float:
        return p.c0 + (p.b0 - p.b2 * p.i) + p.G - p.c1 * p.T

    def marginal_rate(self, p: CrossParams) -> float:
        return p.c1 + p.b1

    def interest_rate(self, p: CrossParams) -> float | None:
        return p.i

    def consumption(self, p: CrossParams, y: float) -> float:
        return p.c0 + scaled(p.c1, y) - p.c1 * p.T

    def investment(self, p: CrossParams, y: float) -> float:
        return p.b0 + scaled(p.b1, y) - p.b2 * p.i


class CrossProportionalEndogenous(_Cross):
    model = _MODEL
    regime = {"lump_sum_tax": False, "exogenous_investment": False}
    priority = ("c0", "c1", "b0", "b1", "b2", "i", "G", "t")

    def autonomous_spending(self, p: CrossParams) -> float:
        return p.c0 + (p.b0 - p.b2 * p.i) + p.G

    def marginal_rate(self, p: CrossParams) -> float:
        return p.c1 * (1.0 - p.t) + p.b1

    def interest_rate(self, p: CrossParams) -> float | None:
        return p.i

    def consumption(self, p: CrossParams, y: float) -> float:
        return p.c0 + scaled(p.c1 * (1.0 - p.t), y)

    def investment(self, p: CrossParams, y: float) -> float:
        return p.b0 + scaled(p.b1, y) - p.b2 * p.i
