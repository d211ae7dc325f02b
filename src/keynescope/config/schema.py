"""
Configuration dataclasses for the engine.

This module defines EngineConfig, which groups the engine settings in one
immutable object, NarratorConfig for the explanation collaborator and
LoggingConfig for log levels.
Instances are created by Explorer.init() after merging defaults, user
config, and kwargs.

Design Notes
------------
- Immutable (frozen=True) to prevent accidental modification
- Memory-efficient (slots=True)
- Simple dataclasses, no methods - validation happens in ConfigValidator

See Also
--------
ConfigValidator : Centralized validation for configuration parameters
keynescope.explorer.Explorer.init : Creates EngineConfig from merged parameters
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from keynescope.logging import level_value


@dataclass(slots=True, frozen=True)
class NarratorConfig:
    """
    Settings for the explanation collaborator.

    Parameters
    ----------
    provider : str
        ``"local"`` (deterministic summary), ``"chat"`` (OpenAI-compatible
        chat-completions endpoint) or ``"none"`` (no explanations).
    endpoint : str
        Chat-completions URL used by the ``"chat"`` provider.
    model : str
        Model name sent to the endpoint.
    api_key_env : str
        Environment variable holding the API key.
    temperature : float
        Sampling temperature.
    max_tokens : int
        Completion length limit.
    timeout : float
        HTTP timeout in seconds.
    """

    provider: str = "local"
    endpoint: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-4o-mini"
    api_key_env: str = "KEYNESCOPE_API_KEY"
    temperature: float = 0.8
    max_tokens: int = 3000
    timeout: float = 60.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> NarratorConfig:
        return cls(**dict(data or {}))


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    """
    Log levels for the package.

    Parameters
    ----------
    default_level : str
        Level of the ``keynescope`` logger.
    modules : dict[str, str]
        Per-module overrides keyed by module name relative to the package
        (``{"session": "DEEP_DEBUG"}``).

    Examples
    --------
    >>> LoggingConfig("WARNING", {"session": "deep_debug"}).levels("keynescope")
    {'keynescope': 30, 'keynescope.session': 5}
    """

    default_level: str = "INFO"
    modules: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> LoggingConfig:
        data = dict(data or {})
        return cls(
            default_level=data.get("default_level", "INFO"),
            modules=dict(data.get("modules") or {}),
        )

    def levels(self, root: str) -> dict[str, int]:
        """Numeric level per logger name, package logger first."""
        out = {root: level_value(self.default_level)}
        for module_name, level in self.modules.items():
            out[f"{root}.{module_name}"] = level_value(level)
        return out


@dataclass(slots=True, frozen=True)
class EngineConfig:
    """
    Immutable engine configuration.

    Parameters
    ----------
    quiescence_delay : float
        Seconds without edits after which a burst settles.
    curve_points : int
        Samples per plotted curve (>= 2).
    chart_bound_factor : float
        Upper chart bound as a multiple of the larger equilibrium output.
    chart_bound_cap : float
        Upper chart bound used when the derived bound is not finite or not
        positive.
    sync_regime_parameters : bool
        Whether a regime switch carries T/t and I/b0 over (see
        :mod:`keynescope.sync`).
    tax_amount_bounds : tuple[float, float]
        Clamp for a lump-sum tax derived from a tax rate.
    tax_rate_bounds : tuple[float, float]
        Clamp for a tax rate derived from a lump-sum tax.
    default_tax_rate : float
        Tax rate used when it cannot be derived (non-positive output).
    investment_bounds : tuple[float, float]
        Clamp for investment levels derived on an investment regime switch.
    narrator : NarratorConfig
        Explanation collaborator settings.
    logging : LoggingConfig
        Package log levels.

    Examples
    --------
    >>> cfg = EngineConfig(quiescence_delay=0.25)
    >>> cfg.curve_points
    100
    >>> cfg.quiescence_delay = 1.0  # doctest: +SKIP
    FrozenInstanceError: cannot assign to field 'quiescence_delay'
    """

    quiescence_delay: float = 0.5
    curve_points: int = 100
    chart_bound_factor: float = 1.5
    chart_bound_cap: float = 100_000.0
    sync_regime_parameters: bool = False
    tax_amount_bounds: tuple[float, float] = (0.0, 500.0)
    tax_rate_bounds: tuple[float, float] = (0.05, 0.8)
    default_tax_rate: float = 0.25
    investment_bounds: tuple[float, float] = (0.0, 500.0)
    narrator: NarratorConfig = field(default_factory=NarratorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
