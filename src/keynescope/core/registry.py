"""Registry of regime variants."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from keynescope.core.regime import Regime
    from keynescope.params import ParameterSet

RegimeKey = tuple[str, frozenset[tuple[str, bool]]]

# Global registry storage
_REGIME_REGISTRY: dict[RegimeKey, type[Regime]] = {}


def regime_key(model: str, flags: Mapping[str, bool]) -> RegimeKey:
    """Build the registry key for a model and a flag combination."""
    return model, frozenset((k, bool(v)) for k, v in flags.items())


def get_regime(model: str, **flags: bool) -> type[Regime]:
    """
    Retrieve a regime variant class from the registry.

    Parameters
    ----------
    model : str
        Model name (``"keynesian_cross"`` or ``"is_lm"``).
    **flags : bool
        Regime flag values, e.g. ``lump_sum_tax=True``.

    Returns
    -------
    type[Regime]
        The registered variant class.

    Raises
    ------
    KeyError
        If no variant implements the combination.
    """
    key = regime_key(model, flags)
    if key not in _REGIME_REGISTRY:
        available = ", ".join(sorted(cls.name for cls in _REGIME_REGISTRY.values()))
        raise KeyError(
            f"No regime variant for model '{model}' with flags {dict(flags)}. "
            f"Available variants: {available}"
        )
    return _REGIME_REGISTRY[key]


def resolve_variant(params: ParameterSet) -> Regime:
    """Return the variant instance selected by a parameter snapshot."""
    import keynescope.regimes  # noqa: F401 - registers the built-in variants

    flags = {flag: getattr(params, flag) for flag in params.regime_flags}
    return get_regime(params.model, **flags)()


def list_regimes(model: str | None = None) -> list[str]:
    """
    List registered variant names.

    Parameters
    ----------
    model : str, optional
        Restrict the listing to one model.

    Returns
    -------
    list[str]
        Sorted variant names.
    """
    return sorted(
        cls.name
        for cls in _REGIME_REGISTRY.values()
        if model is None or cls.model == model
    )


def clear_registry() -> None:
    """
    Clear the regime registry.

    Warning: This is primarily for testing. Clearing the registry in
    production code will break parameter sets that rely on built-in variants
    until :mod:`keynescope.regimes` is reloaded.
    """
    _REGIME_REGISTRY.clear()
