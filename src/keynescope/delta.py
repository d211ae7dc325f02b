# src/keynescope/delta.py
"""Change attribution between two parameter snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING

from keynescope.typing import FieldId

if TYPE_CHECKING:
    from keynescope.params import ParameterSet

__all__ = ["diff", "priority"]


def priority(params: ParameterSet) -> tuple[FieldId, ...]:
    """Numeric fields compared by :func:`diff`, most important first."""
    return params.variant.priority


def diff(baseline: ParameterSet, current: ParameterSet) -> FieldId | None:
    """
    Identify the single field that differs between two snapshots.

    Regime flags are checked first, in the set's ``regime_flags`` order
    (investment regime, then tax regime). Otherwise the priority list of the
    *current* snapshot's variant is scanned and the first differing field is
    returned. When several fields differ only the first by priority is
    reported.

    Parameters
    ----------
    baseline : ParameterSet
        Snapshot before the change.
    current : ParameterSet
        Snapshot after the change.

    Returns
    -------
    str or None
        Field name, or None when no compared field differs.

    Raises
    ------
    TypeError
        If the snapshots belong to different models.

    Examples
    --------
    >>> from keynescope.params import ISLMParams
    >>> p = ISLMParams(c0=100, c1=0.6, I0=80, d1=0.1, d2=40, G=150, T=100)
    >>> diff(p, p.replace(G=180.0)) is None
    False
    >>> diff(p, p) is None
    True
    """
    if type(baseline) is not type(current):
        raise TypeError(
            f"Cannot compare {type(baseline).__name__} with "
            f"{type(current).__name__}: parameter schemas differ"
        )

    for flag in current.regime_flags:
        if getattr(baseline, flag) != getattr(current, flag):
            return flag

    for name in priority(current):
        if getattr(baseline, name) != getattr(current, name):
            return name

    return None
