"""Centralized configuration and parameter validation for keynescope."""

from __future__ import annotations

import math
import warnings
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from keynescope.params import ParameterSet


class ConfigValidator:
    """
    Centralized validation for engine configuration and model parameters.

    Engine settings are validated once at Explorer.init(); parameter sets
    are validated at every edit, before they reach the change session. The
    solver itself never validates.
    """

    # Valid log levels for logging configuration
    VALID_LOG_LEVELS = {"DEEP_DEBUG", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

    VALID_PROVIDERS = {"local", "chat", "none"}

    # Parameter domains as (min, max); None means unbounded.
    PARAM_CONSTRAINTS: dict[str, tuple[float | None, float | None]] = {
        # Consumption
        "c0": (0.0, None),
        "c1": (0.0, 1.0),
        # Investment
        "I": (0.0, None),
        "I0": (0.0, None),
        "b0": (0.0, None),
        "b1": (0.0, 1.0),
        "b2": (0.0, None),
        "d1": (0.0, 1.0),
        "d2": (0.0, None),
        # Fiscal policy
        "G": (0.0, None),
        "T": (0.0, None),
        "t": (0.0, 1.0),
        # Monetary policy
        "i": (0.0, None),
        "i_bar": (0.0, None),
    }

    # Bounds that are exclusive: name -> (min exclusive, max exclusive)
    OPEN_BOUNDS: dict[str, tuple[bool, bool]] = {
        "c1": (True, True),
        "b1": (False, True),
        "d1": (False, True),
        "d2": (True, False),
        "t": (False, True),
    }

    @staticmethod
    def validate_config(cfg: dict[str, Any]) -> None:
        """
        Validate all engine configuration settings.

        Parameters
        ----------
        cfg : dict
            Configuration dictionary to validate.

        Raises
        ------
        ValueError
            If any validation check fails.
        """
        # Type checking
        ConfigValidator._validate_types(cfg)

        # Range validation
        ConfigValidator._validate_ranges(cfg)

        # Relationship constraints
        ConfigValidator._validate_relationships(cfg)

        # Logging configuration
        if "logging" in cfg:
            ConfigValidator._validate_logging(cfg["logging"])

        # Narrator configuration
        if "narrator" in cfg:
            ConfigValidator._validate_narrator(cfg["narrator"])

    @staticmethod
    def _validate_types(cfg: dict[str, Any]) -> None:
        """
        Ensure correct types for configuration settings.

        Raises
        ------
        ValueError
            If any setting has incorrect type.
        """
        int_params = ["curve_points"]
        float_params = [
            "quiescence_delay",
            "chart_bound_factor",
            "chart_bound_cap",
            "default_tax_rate",
        ]
        bool_params = ["sync_regime_parameters"]
        pair_params = ["tax_amount_bounds", "tax_rate_bounds", "investment_bounds"]

        for key in int_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if isinstance(val, bool) or not isinstance(val, int):
                raise ValueError(
                    f"Config parameter '{key}' must be int, got {type(val).__name__}"
                )

        # Check floats (accept int or float)
        for key in float_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if isinstance(val, bool) or not isinstance(val, (int, float)):
                raise ValueError(
                    f"Config parameter '{key}' must be float, got {type(val).__name__}"
                )

        for key in bool_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if not isinstance(val, bool):
                raise ValueError(
                    f"Config parameter '{key}' must be bool, got {type(val).__name__}"
                )

        for key in pair_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if (
                not isinstance(val, (list, tuple))
                or len(val) != 2
                or not all(isinstance(v, (int, float)) for v in val)
            ):
                raise ValueError(
                    f"Config parameter '{key}' must be a [low, high] pair of "
                    f"numbers, got {val!r}"
                )

    @staticmethod
    def _validate_ranges(cfg: dict[str, Any]) -> None:
        """
        Ensure settings are in valid ranges.

        Raises
        ------
        ValueError
            If any setting is out of valid range.
        """
        constraints = {
            # Debounce window (seconds)
            "quiescence_delay": (0.0, None),
            # Plot resolution (first and last sample are always drawn)
            "curve_points": (2, None),
            # Chart range
            "chart_bound_factor": (0.0, None),
            "chart_bound_cap": (0.0, None),
            # Fallback tax rate
            "default_tax_rate": (0.0, 1.0),
        }

        for key, (min_val, max_val) in constraints.items():
            if key not in cfg:
                continue

            val = cfg[key]

            if min_val is not None and val < min_val:
                raise ValueError(
                    f"Config parameter '{key}' must be >= {min_val}, got {val}"
                )

            if max_val is not None and val > max_val:
                raise ValueError(
                    f"Config parameter '{key}' must be <= {max_val}, got {val}"
                )

        for key in ("tax_amount_bounds", "tax_rate_bounds", "investment_bounds"):
            if key not in cfg:
                continue
            low, high = cfg[key]
            if low > high:
                raise ValueError(
                    f"Config parameter '{key}' must satisfy low <= high, "
                    f"got [{low}, {high}]"
                )

    @staticmethod
    def _validate_relationships(cfg: dict[str, Any]) -> None:
        """
        Validate cross-setting constraints.

        Parameters
        ----------
        cfg : dict
            Configuration dictionary to validate.
        """
        rate = cfg.get("default_tax_rate")
        bounds = cfg.get("tax_rate_bounds")
        if rate is not None and bounds is not None:
            low, high = bounds
            if not low <= rate <= high:
                warnings.warn(
                    f"default_tax_rate ({rate}) lies outside tax_rate_bounds "
                    f"[{low}, {high}] and will be clamped on regime switches.",
                    UserWarning,
                    stacklevel=3,
                )

        if cfg.get("quiescence_delay") == 0:
            warnings.warn(
                "quiescence_delay is 0: every edit settles on the next loop "
                "iteration and bursts are no longer coalesced.",
                UserWarning,
                stacklevel=3,
            )

    @staticmethod
    def _validate_logging(log_config: dict[str, Any]) -> None:
        """
        Validate logging configuration.

        Parameters
        ----------
        log_config : dict
            Logging configuration dictionary with keys:
            - default_level: str (e.g., 'INFO', 'DEBUG')
            - modules: dict[str, str] (per-module overrides)

        Raises
        ------
        ValueError
            If logging configuration is invalid.
        """
        if not isinstance(log_config, dict):
            raise ValueError(
                f"Logging config must be dict, got {type(log_config).__name__}"
            )

        if "default_level" in log_config:
            level = log_config["default_level"]
            if not isinstance(level, str):
                raise ValueError(
                    f"Logging default_level must be str, got {type(level).__name__}"
                )

            if level.upper() not in ConfigValidator.VALID_LOG_LEVELS:
                raise ValueError(
                    f"Invalid log level '{level}'. "
                    f"Must be one of {ConfigValidator.VALID_LOG_LEVELS}"
                )

        modules = log_config.get("modules") or {}
        if not isinstance(modules, dict):
            raise ValueError(
                f"Logging modules must be dict, got {type(modules).__name__}"
            )

        for module_name, level in modules.items():
            if not isinstance(module_name, str):
                raise ValueError(
                    f"Module name must be str, got {type(module_name).__name__}"
                )

            if not isinstance(level, str):
                raise ValueError(
                    f"Log level for module '{module_name}' must be str, "
                    f"got {type(level).__name__}"
                )

            if level.upper() not in ConfigValidator.VALID_LOG_LEVELS:
                raise ValueError(
                    f"Invalid log level '{level}' for module '{module_name}'. "
                    f"Must be one of {ConfigValidator.VALID_LOG_LEVELS}"
                )

    @staticmethod
    def _validate_narrator(narrator: Mapping[str, Any]) -> None:
        """
        Validate the narrator section.

        Raises
        ------
        ValueError
            If the provider is unknown or a numeric setting is invalid.
        """
        if not isinstance(narrator, Mapping):
            raise ValueError(
                f"Narrator config must be dict, got {type(narrator).__name__}"
            )

        from keynescope.config.schema import NarratorConfig

        known = set(NarratorConfig.__dataclass_fields__)
        unknown = sorted(set(narrator) - known)
        if unknown:
            raise ValueError(
                f"Unknown narrator setting(s): {unknown}. Known: {sorted(known)}"
            )

        provider = narrator.get("provider", "local")
        if provider not in ConfigValidator.VALID_PROVIDERS:
            raise ValueError(
                f"Invalid narrator provider '{provider}'. "
                f"Must be one of {ConfigValidator.VALID_PROVIDERS}"
            )

        timeout = narrator.get("timeout", 1.0)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError(f"Narrator timeout must be > 0, got {timeout!r}")

        max_tokens = narrator.get("max_tokens", 1)
        if isinstance(max_tokens, bool) or not isinstance(max_tokens, int):
            raise ValueError(
                f"Narrator max_tokens must be int, got {type(max_tokens).__name__}"
            )

    # ------------------------------------------------------------------ #
    # Parameter domains                                                   #
    # ------------------------------------------------------------------ #

    @staticmethod
    def validate_params(params: ParameterSet) -> None:
        """
        Validate a parameter snapshot against the model domains.

        Numeric fields must be finite real numbers inside their domain
        (e.g. ``0 < c1 < 1``). A combination whose marginal spending rate
        reaches 1 is allowed but warned about: the solver reports an
        unbounded equilibrium for it.

        Parameters
        ----------
        params : ParameterSet
            Snapshot to validate.

        Raises
        ------
        ValueError
            If a field has the wrong type or lies outside its domain.
        """
        for flag in params.regime_flags:
            val = getattr(params, flag)
            if not isinstance(val, bool):
                raise ValueError(
                    f"Regime flag '{flag}' must be bool, got {type(val).__name__}"
                )

        for name in params.numeric_fields():
            val = getattr(params, name)
            if isinstance(val, bool) or not isinstance(val, (int, float)):
                raise ValueError(
                    f"Parameter '{name}' must be float, got {type(val).__name__}"
                )
            if not math.isfinite(val):
                raise ValueError(f"Parameter '{name}' must be finite, got {val}")
            ConfigValidator._check_domain(name, float(val))

        ConfigValidator._validate_param_relationships(params)

    @staticmethod
    def _check_domain(name: str, val: float) -> None:
        if name not in ConfigValidator.PARAM_CONSTRAINTS:
            return
        min_val, max_val = ConfigValidator.PARAM_CONSTRAINTS[name]
        open_min, open_max = ConfigValidator.OPEN_BOUNDS.get(name, (False, False))

        if min_val is not None:
            if open_min and val <= min_val:
                raise ValueError(f"Parameter '{name}' must be > {min_val}, got {val}")
            if val < min_val:
                raise ValueError(f"Parameter '{name}' must be >= {min_val}, got {val}")

        if max_val is not None:
            if open_max and val >= max_val:
                raise ValueError(f"Parameter '{name}' must be < {max_val}, got {val}")
            if val > max_val:
                raise ValueError(f"Parameter '{name}' must be <= {max_val}, got {val}")

    @staticmethod
    def _validate_param_relationships(params: ParameterSet) -> None:
        variant = params.variant
        if variant.singular(params) or variant.gap(params) < 0.0:
            warnings.warn(
                f"Marginal spending rate m = {variant.marginal_rate(params):.4g} "
                f"is >= 1 under {variant.name}: the equilibrium is unbounded "
                "or economically meaningless.",
                UserWarning,
                stacklevel=3,
            )
