"""Regime variant infrastructure: base class and registry."""

from keynescope.core.regime import Regime
from keynescope.core.registry import (
    clear_registry,
    get_regime,
    list_regimes,
    resolve_variant,
)

__all__ = [
    "Regime",
    "get_regime",
    "list_regimes",
    "resolve_variant",
    "clear_registry",
]
