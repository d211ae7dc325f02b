"""Regime variant base class definition."""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Mapping

from keynescope.equilibrium import Equilibrium

if TYPE_CHECKING:
    from keynescope.params import ParameterSet
    from keynescope.typing import Float1D


def _camel_to_snake(name: str) -> str:
    """Convert CamelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def scaled(coef: float, y: float) -> float:
    """``coef * y`` with ``0 * inf`` evaluating to 0 instead of NaN."""
    return 0.0 if coef == 0.0 else coef * y


class Regime(ABC):
    """
    Base class for one model/regime combination.

    A Regime holds no state: it is the set of formulas (autonomous spending,
    marginal spending rate, behavioural equations, plotted curve) that apply
    to a parameter set for one combination of regime flags. Exactly one
    variant is registered per combination, so a flag combination without an
    implementation fails loudly at lookup time.

    Design Guidelines
    -----------------
    - Set ``model`` to the ParameterSet model name
    - Set ``regime`` to the flag values this variant implements
    - Set ``priority`` to the numeric fields compared by change attribution,
      most important first
    - Implement the abstract formulas; ``solve`` is shared

    Notes
    -----
    Variants are registered automatically via the __init_subclass__ hook,
    keyed by ``(model, regime)``.
    """

    name: ClassVar[str] = ""
    model: ClassVar[str] = ""
    regime: ClassVar[Mapping[str, bool]] = {}
    priority: ClassVar[tuple[str, ...]] = ()
    # |1 - m| below this counts as m == 1
    singular_tol: ClassVar[float] = 1e-12

    def __init_subclass__(cls, name: str = "", **kwargs: Any) -> None:
        """
        Auto-register concrete Regime subclasses in the global registry.

        Parameters
        ----------
        name : str, optional
            Custom name for the variant. If not provided, uses the class
            name converted to snake_case.
        **kwargs
            Additional keyword arguments passed to parent __init_subclass__.
        """
        super().__init_subclass__(**kwargs)

        if name != "":
            cls.name = name
        elif "name" not in cls.__dict__:
            cls.name = _camel_to_snake(cls.__name__)

        # abstract intermediates declare no model
        if not cls.model:
            return

        from keynescope.core.registry import _REGIME_REGISTRY, regime_key

        _REGIME_REGISTRY[regime_key(cls.model, cls.regime)] = cls

    # --- formulas ----------------------------------------------------------

    @abstractmethod
    def autonomous_spending(self, p: Any) -> float:
        """A as reported in the equilibrium."""

    @abstractmethod
    def marginal_rate(self, p: Any) -> float:
        """m, the slope of demand in output."""

    @abstractmethod
    def consumption(self, p: Any, y: float) -> float:
        """Consumption at output *y*."""

    @abstractmethod
    def investment(self, p: Any, y: float) -> float:
        """Investment at output *y*."""

    @abstractmethod
    def curve(self, p: Any, x: Float1D) -> Float1D:
        """Demand (or IS) function evaluated at every *x*."""

    @abstractmethod
    def reference(self, p: Any, x: Float1D) -> Float1D:
        """The line the curve is read against (45-degree line or LM)."""

    def interest_rate(self, p: Any) -> float | None:
        return None

    def gap(self, p: Any) -> float:
        """Denominator ``1 - m`` of the closed-form solution."""
        return 1.0 - self.marginal_rate(p)

    def singular(self, p: Any) -> bool:
        """True when ``m`` equals 1 up to rounding."""
        return math.isclose(self.gap(p), 0.0, abs_tol=self.singular_tol)

    def effective_autonomous(self, p: Any) -> float:
        """Numerator of the closed-form solution."""
        return self.autonomous_spending(p)

    # --- shared solver -----------------------------------------------------

    def solve(self, p: ParameterSet) -> Equilibrium:
        """
        Closed-form equilibrium ``Y = A / (1 - m)``.

        Returns ``output = +inf`` when the denominator vanishes (see
        :meth:`singular`).
        """
        gap = self.gap(p)
        if self.singular(p):
            y = math.inf
            multiplier = math.inf
        else:
            y = self.effective_autonomous(p) / gap
            multiplier = 1.0 / gap

        return Equilibrium(
            output=y,
            interest_rate=self.interest_rate(p),
            consumption=self.consumption(p, y),
            investment=self.investment(p, y),
            autonomous_spending=self.autonomous_spending(p),
            marginal_rate=self.marginal_rate(p),
            multiplier=multiplier,
        )

    def __repr__(self) -> str:
        """Provide informative repr."""
        return f"{self.__class__.__name__}(name={self.name!r})"
