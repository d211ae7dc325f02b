"""
keynescope - Interactive Keynesian Cross and IS-LM Explorer
===========================================================

keynescope solves the two textbook short-run macroeconomic models (the
Keynesian cross and IS-LM with a pegged interest rate) in closed form,
samples the curves needed to plot them, and turns bursts of parameter edits
into single "before vs. after" comparisons with an optional explanation of
the change.

Quick Start
-----------
Solve a parameter set directly:

>>> import keynescope as ks
>>> p = ks.CrossParams(c0=180, c1=0.8, I=160, G=160, T=120)
>>> round(ks.solve(p).output, 6)
2020.0

Explore a model with default configuration:

>>> explorer = ks.Explorer.init("is_lm")
>>> round(explorer.equilibrium().output, 6)
500.0

Custom configuration via kwargs (model parameters or engine settings):

>>> explorer = ks.Explorer.init("keynesian_cross", G=200.0, quiescence_delay=0.25)

Custom configuration via YAML file:

>>> explorer = ks.Explorer.init("is_lm", config="my_config.yml")  # doctest: +SKIP

Key Concepts
------------
**Parameter sets**
  Immutable snapshots (CrossParams, ISLMParams). Every edit produces a new
  snapshot; boolean regime flags select the formulas.

**Regime variants**
  One class per model/flag combination, registered automatically. The
  variant supplies autonomous spending A and marginal rate m; the solver
  returns ``Y = A / (1 - m)``.

**Change sessions**
  The Coalescer debounces slider bursts. A burst settles after a quiet
  period; a regime toggle settles at once.

Public API
----------
Explorer
    Configured front end: validation, sessions, fallback explanations.
Coalescer
    Change-session state machine.
solve, Equilibrium
    Closed-form solver and its result.
sample, sample_reference, chart_data
    Curve sampling for plots.
diff
    Change attribution between two snapshots.
multiplier_info, parameter_effect, analyze_policy, monetary_stance
    Policy analysis helpers.

See Also
--------
keynescope.explorer : Configured front end
defaults.yml : Default configuration and initial parameter sets

Notes
-----
- Configuration precedence: defaults.yml → user config → kwargs
- The solver never raises: at ``m == 1`` output is ``+inf``
"""

from __future__ import annotations

__version__: str = "0.1.0"

from . import logging  # noqa: E402 (circular‑safe)
from .config import ConfigValidator, EngineConfig, LoggingConfig, NarratorConfig
from .core import Regime, get_regime, list_regimes
from .curves import ChartData, CurvePoint, CurveSeries, chart_data, sample, sample_reference
from .delta import diff
from .equilibrium import Equilibrium, solve
from .explorer import Explorer
from .narrative import (
    ChatNarrator,
    Explanation,
    LocalNarrator,
    NarrativeRequest,
    NarrativeUnavailable,
    describe_change,
)
from .params import CrossParams, ISLMParams, ParameterSet
from .policy import analyze_policy, monetary_stance, multiplier_info, parameter_effect
from .session import Coalescer, SessionStatus, SettledChange
from .sync import switch_regime

__all__ = [
    "__version__",
    "logging",
    # configuration
    "EngineConfig",
    "NarratorConfig",
    "LoggingConfig",
    "ConfigValidator",
    # models
    "ParameterSet",
    "CrossParams",
    "ISLMParams",
    "Regime",
    "get_regime",
    "list_regimes",
    # engine
    "Equilibrium",
    "solve",
    "CurvePoint",
    "CurveSeries",
    "ChartData",
    "sample",
    "sample_reference",
    "chart_data",
    "diff",
    "switch_regime",
    # policy
    "multiplier_info",
    "parameter_effect",
    "analyze_policy",
    "monetary_stance",
    # sessions
    "Coalescer",
    "SessionStatus",
    "SettledChange",
    "Explorer",
    # narrative
    "NarrativeRequest",
    "NarrativeUnavailable",
    "Explanation",
    "LocalNarrator",
    "ChatNarrator",
    "describe_change",
]
