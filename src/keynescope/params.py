# src/keynescope/params.py
"""
Immutable parameter snapshots for the two models.

A ParameterSet is never mutated: every edit produces a new instance through
:meth:`ParameterSet.replace`. The boolean regime flags select, once per
instance, the regime variant that implements the model's formulas (see
:mod:`keynescope.regimes`).

Examples
--------
>>> from keynescope.params import CrossParams
>>> p = CrossParams(c0=180, c1=0.8, I=160, G=160, T=120)
>>> q = p.replace(G=200.0)
>>> p.G, q.G
(160, 200.0)
>>> q.variant.name
'cross_lump_sum_exogenous'
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Mapping

if TYPE_CHECKING:
    from keynescope.core.regime import Regime

__all__ = [
    "ParameterSet",
    "CrossParams",
    "ISLMParams",
    "MODELS",
    "params_class",
]


@dataclass(slots=True, frozen=True)
class ParameterSet:
    """
    Base class for model parameter snapshots.

    Subclasses declare the numeric fields of one model plus its regime flags.
    ``regime_flags`` is ordered: investment regime first, then tax regime.
    Change attribution checks the flags in exactly this order.
    """

    model: ClassVar[str] = ""
    regime_flags: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        """All field names, numeric fields and regime flags."""
        return tuple(f.name for f in dataclasses.fields(cls))

    @classmethod
    def numeric_fields(cls) -> tuple[str, ...]:
        """Field names that hold scalar coefficients."""
        return tuple(n for n in cls.field_names() if n not in cls.regime_flags)

    @classmethod
    def is_flag(cls, name: str) -> bool:
        return name in cls.regime_flags

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ParameterSet:
        """
        Build a parameter set from a plain mapping (e.g. a YAML section).

        Raises
        ------
        KeyError
            If *data* names a field the model does not have.
        """
        unknown = sorted(set(data) - set(cls.field_names()))
        if unknown:
            raise KeyError(
                f"Unknown {cls.model} parameter(s): {unknown}. "
                f"Available: {list(cls.field_names())}"
            )
        return cls(**dict(data))

    def replace(self, **changes: Any) -> ParameterSet:
        """
        Return a copy with *changes* applied.

        Raises
        ------
        KeyError
            If a change names a field the model does not have.
        """
        for name in changes:
            if name not in self.field_names():
                raise KeyError(
                    f"'{name}' is not a {self.model} parameter. "
                    f"Available: {list(self.field_names())}"
                )
        return dataclasses.replace(self, **changes)

    def as_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @property
    def variant(self) -> Regime:
        """Regime variant selected by this snapshot's flags."""
        from keynescope.core.registry import resolve_variant

        return resolve_variant(self)


@dataclass(slots=True, frozen=True)
class CrossParams(ParameterSet):
    """
    Keynesian cross (45-degree model) parameters.

    Parameters
    ----------
    c0 : float
        Autonomous consumption.
    c1 : float
        Marginal propensity to consume (0 < c1 < 1).
    I : float
        Investment, used when ``exogenous_investment`` is True.
    G : float
        Government spending.
    T : float
        Lump-sum taxes, used when ``lump_sum_tax`` is True.
    t : float
        Proportional tax rate, used when ``lump_sum_tax`` is False.
    b0 : float
        Autonomous investment of the investment function.
    b1 : float
        Investment sensitivity to income.
    b2 : float
        Investment sensitivity to the interest rate.
    i : float
        Interest rate entering the investment function.
    lump_sum_tax : bool
        True: ``Yd = Y - T``. False: ``Yd = Y (1 - t)``.
    exogenous_investment : bool
        True: investment is ``I``. False: ``I = b0 + b1 Y - b2 i``.
    """

    model: ClassVar[str] = "keynesian_cross"
    regime_flags: ClassVar[tuple[str, ...]] = ("exogenous_investment", "lump_sum_tax")

    c0: float
    c1: float
    I: float  # noqa: E741
    G: float
    T: float
    t: float = 0.25
    b0: float = 100.0
    b1: float = 0.05
    b2: float = 10.0
    i: float = 3.0
    lump_sum_tax: bool = True
    exogenous_investment: bool = True


@dataclass(slots=True, frozen=True)
class ISLMParams(ParameterSet):
    """
    IS-LM parameters with a pegged interest rate (horizontal LM).

    Parameters
    ----------
    c0 : float
        Autonomous consumption.
    c1 : float
        Marginal propensity to consume (0 < c1 < 1).
    I0 : float
        Autonomous investment.
    d1 : float
        Investment sensitivity to income.
    d2 : float
        Investment sensitivity to the interest rate (> 0).
    G : float
        Government spending.
    T : float
        Lump-sum taxes, used when ``lump_sum_tax`` is True.
    t : float
        Proportional tax rate, used when ``lump_sum_tax`` is False.
    i_bar : float
        Interest rate pegged by the central bank.
    lump_sum_tax : bool
        True: ``Yd = Y - T``. False: ``Yd = Y (1 - t)``.
    """

    model: ClassVar[str] = "is_lm"
    regime_flags: ClassVar[tuple[str, ...]] = ("lump_sum_tax",)

    c0: float
    c1: float
    I0: float
    d1: float
    d2: float
    G: float
    T: float
    t: float = 0.2
    i_bar: float = 3.0
    lump_sum_tax: bool = True


MODELS: dict[str, type[ParameterSet]] = {
    CrossParams.model: CrossParams,
    ISLMParams.model: ISLMParams,
}


def params_class(model: str) -> type[ParameterSet]:
    """
    Return the ParameterSet class for a model name.

    Raises
    ------
    ValueError
        If the model name is unknown.
    """
    try:
        return MODELS[model]
    except KeyError:
        raise ValueError(
            f"Unknown model '{model}'. Available models: {sorted(MODELS)}"
        ) from None
