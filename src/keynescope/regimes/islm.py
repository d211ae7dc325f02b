# src/keynescope/regimes/islm.py
"""
IS-LM variants with a pegged interest rate ī (horizontal LM).

Output is read off the IS relation at ``i = ī``:

    Y = (A − d2·ī) / (1 − c1 − d1)            lump-sum taxes
    Y = (A − d2·ī) / (1 − c1·(1 − t) − d1)    proportional taxes

and the plotted IS curve is the same relation solved for ``i``:

    i(Y) = (A − Y·(1 − m)) / d2
"""

from __future__ import annotations

import numpy as np

from keynescope.core.regime import Regime, scaled
from keynescope.params import ISLMParams
from keynescope.typing import Float1D

_MODEL = ISLMParams.model


class _PeggedRate(Regime):
    """Pegged-rate monetary side shared by both tax regimes."""

    priority_head = ("c0", "c1", "I0", "d1", "d2", "G", "i_bar")

    def interest_rate(self, p: ISLMParams) -> float | None:
        return p.i_bar

    def effective_autonomous(self, p: ISLMParams) -> float:
        return self.autonomous_spending(p) - p.d2 * p.i_bar

    def investment(self, p: ISLMParams, y: float) -> float:
        return p.I0 + scaled(p.d1, y) - p.d2 * p.i_bar

    def curve(self, p: ISLMParams, x: Float1D) -> Float1D:
        with np.errstate(divide="ignore", invalid="ignore"):
            return (self.autonomous_spending(p) - x * self.gap(p)) / p.d2

    def reference(self, p: ISLMParams, x: Float1D) -> Float1D:
        return np.full_like(x, p.i_bar, dtype=np.float64)


class ISLMLumpSum(_PeggedRate):
    model = _MODEL
    regime = {"lump_sum_tax": True}
    priority = _PeggedRate.priority_head + ("T",)

    def autonomous_spending(self, p: ISLMParams) -> float:
        return p.c0 + p.I0 + p.G - p.c1 * p.T

    def marginal_rate(self, p: ISLMParams) -> float:
        return p.c1 + p.d1

    def gap(self, p: ISLMParams) -> float:
        return 1.0 - p.c1 - p.d1

    def consumption(self, p: ISLMParams, y: float) -> float:
        return p.c0 + scaled(p.c1, y) - p.c1 * p.T


class ISLMProportional(_PeggedRate):
    model = _MODEL
    regime = {"lump_sum_tax": False}
    priority = _PeggedRate.priority_head + ("t",)

    def autonomous_spending(self, p: ISLMParams) -> float:
        return p.c0 + p.I0 + p.G

    def marginal_rate(self, p: ISLMParams) -> float:
        return p.c1 * (1.0 - p.t) + p.d1

    def gap(self, p: ISLMParams) -> float:
        return 1.0 - p.c1 * (1.0 - p.t) - p.d1

    def consumption(self, p: ISLMParams, y: float) -> float:
        return p.c0 + scaled(p.c1 * (1.0 - p.t), y)
