# src/keynescope/explorer.py
from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping

# noinspection PyPackageRequirements
import yaml

import keynescope.regimes  # noqa: F401 - needed to register regime variants
from keynescope import logging as ks_logging
from keynescope.config import (
    ConfigValidator,
    EngineConfig,
    LoggingConfig,
    NarratorConfig,
)
from keynescope.curves import ChartData, chart_data
from keynescope.equilibrium import Equilibrium, solve
from keynescope.logging import getLogger
from keynescope.narrative import Explanation, build_narrator, describe_change
from keynescope.params import MODELS, params_class
from keynescope.session import Coalescer, SessionStatus, SettledChange

if TYPE_CHECKING:
    from keynescope.narrative import Narrator
    from keynescope.params import ParameterSet
    from keynescope.session import CallLater

__all__ = ["Explorer"]

log = getLogger(__name__)

# top-level sections merged key by key instead of replaced
_NESTED = ("narrator", "logging", *MODELS)


# helpers
# ---------------------------------------------------------------------------
def _read_yaml(obj: str | Path | Mapping[str, Any] | None) -> Dict[str, Any]:
    """Return a plain dict – {} if *obj* is None."""
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return dict(obj)
    p = Path(obj)
    with p.open("rt", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, Mapping):
        raise TypeError(f"config root must be mapping, got {type(data)!r}")
    return dict(data)


def _package_defaults() -> Dict[str, Any]:
    """Load keynescope/defaults.yml"""
    txt = resources.files("keynescope").joinpath("defaults.yml").read_text()
    return yaml.safe_load(txt) or {}


def _merge(base: Dict[str, Any], extra: Mapping[str, Any]) -> None:
    for key, val in extra.items():
        if key in _NESTED and isinstance(val, Mapping):
            section = dict(base.get(key) or {})
            section.update(val)
            base[key] = section
        else:
            base[key] = val


class Explorer:
    """
    Interactive front end for one model.

    The Explorer owns a :class:`~keynescope.session.Coalescer`, validates
    every edit before it reaches the session, remembers the latest settled
    change for display and substitutes a locally generated explanation
    when the narrator fails.

    Use :meth:`Explorer.init` to build one from configuration.
    """

    def __init__(
        self,
        params: ParameterSet,
        config: EngineConfig,
        *,
        narrator: Narrator | None = None,
        call_later: CallLater | None = None,
    ) -> None:
        self.config = config
        self.initial = params
        self.narrator = narrator
        self._call_later = call_later
        self.last_change: SettledChange | None = None
        self.last_explanation: Explanation | None = None
        self._settle_listeners: list[Callable[[SettledChange], None]] = []
        self._explanation_listeners: list[Callable[[Explanation], None]] = []
        self.coalescer = self._new_coalescer(params)

    # Constructor
    # ---------------------------------------------------------------------
    @classmethod
    def init(
        cls,
        model: str = "keynesian_cross",
        config: str | Path | Mapping[str, Any] | None = None,
        *,
        custom_narrator: Narrator | None = None,
        call_later: CallLater | None = None,
        **overrides: Any,  # anything here wins last
    ) -> Explorer:
        """
        Build an Explorer.

        Order of precedence (later overrides earlier):

            1. package defaults  (keynescope/defaults.yml)
            2. *config*  (Path / str / Mapping / None)
            3. explicit keyword arguments (**overrides)

        Keyword arguments naming a parameter of *model* (``G=200.0``)
        override the initial parameter set; everything else is an engine
        setting. *custom_narrator* replaces the narrator named by the
        ``narrator`` section; *call_later* schedules the quiescence timer
        (see :class:`~keynescope.session.Coalescer`).
        """
        pcls = params_class(model)

        # 1 + 2 + 3 → one merged dict
        cfg_dict: Dict[str, Any] = _package_defaults()
        _merge(cfg_dict, _read_yaml(config))

        param_overrides = {
            k: overrides.pop(k) for k in list(overrides) if k in pcls.field_names()
        }
        _merge(cfg_dict, overrides)
        _merge(cfg_dict, {model: param_overrides})

        sections = {"narrator", "logging"}
        engine_fields = set(EngineConfig.__dataclass_fields__) - sections
        unknown = sorted(set(cfg_dict) - engine_fields - set(_NESTED))
        if unknown:
            raise ValueError(
                f"Unknown config key(s) {unknown} for model '{model}'. "
                f"Parameters: {list(pcls.field_names())}"
            )

        ConfigValidator.validate_config(cfg_dict)
        log_cfg = LoggingConfig.from_mapping(cfg_dict.get("logging"))
        ks_logging.configure(log_cfg)

        params = pcls.from_mapping(cfg_dict.get(model) or {})
        ConfigValidator.validate_params(params)

        settings = {k: v for k, v in cfg_dict.items() if k in engine_fields}
        for key in ("tax_amount_bounds", "tax_rate_bounds", "investment_bounds"):
            if key in settings:
                settings[key] = tuple(float(v) for v in settings[key])
        engine_cfg = EngineConfig(
            **settings,
            narrator=NarratorConfig.from_mapping(cfg_dict.get("narrator")),
            logging=log_cfg,
        )

        narrator = custom_narrator
        if narrator is None:
            narrator = build_narrator(engine_cfg.narrator)

        log.debug("Explorer for %s using %s", model, params.variant.name)
        return cls(params, engine_cfg, narrator=narrator, call_later=call_later)

    # State
    # ---------------------------------------------------------------------
    @property
    def model(self) -> str:
        return self.initial.model

    @property
    def params(self) -> ParameterSet:
        """Current parameter set."""
        return self.coalescer.current

    @property
    def status(self) -> SessionStatus:
        return self.coalescer.status

    @property
    def baseline(self) -> ParameterSet | None:
        """
        Set the current one is compared against: the running session's
        baseline, else the baseline of the latest settled change.
        """
        if self.coalescer.baseline is not None:
            return self.coalescer.baseline
        if self.last_change is not None:
            return self.last_change.baseline
        return None

    def equilibrium(self) -> Equilibrium:
        return solve(self.params)

    def chart(self) -> ChartData:
        """Chart data for the current set against :attr:`baseline`."""
        cfg = self.config
        return chart_data(
            self.params,
            self.baseline,
            count=cfg.curve_points,
            factor=cfg.chart_bound_factor,
            cap=cfg.chart_bound_cap,
        )

    # Listeners
    # ---------------------------------------------------------------------
    def on_settle(
        self, listener: Callable[[SettledChange], None]
    ) -> Callable[[SettledChange], None]:
        self._settle_listeners.append(listener)
        return listener

    def on_explanation(
        self, listener: Callable[[Explanation], None]
    ) -> Callable[[Explanation], None]:
        """Register *listener*; it receives fallback text on narrator failure."""
        self._explanation_listeners.append(listener)
        return listener

    # Edits
    # ---------------------------------------------------------------------
    def begin(self) -> None:
        self.coalescer.begin()

    def edit(self, name: str, value: Any) -> SettledChange | None:
        """
        Validate and apply one edit.

        Raises
        ------
        KeyError
            If *name* is not a parameter of the model.
        ValueError
            If the value lies outside the parameter's domain.
        """
        if self.params.is_flag(name):
            return self.toggle(name, value)
        ConfigValidator.validate_params(self.params.replace(**{name: value}))
        return self.coalescer.edit(name, value)

    def toggle(self, flag: str, value: bool) -> SettledChange | None:
        if not isinstance(value, bool):
            raise ValueError(
                f"Regime flag '{flag}' must be bool, got {type(value).__name__}"
            )
        return self.coalescer.toggle(flag, value)

    def flush(self) -> SettledChange | None:
        return self.coalescer.flush()

    def reset(self) -> None:
        """Return to the initial parameter set and forget past changes."""
        self.coalescer.close()
        self.last_change = None
        self.last_explanation = None
        self.coalescer = self._new_coalescer(self.initial)
        log.info("Explorer reset to initial %s parameters", self.model)

    async def join(self) -> None:
        await self.coalescer.join()

    def close(self) -> None:
        self.coalescer.close()

    def __enter__(self) -> Explorer:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # internals
    # ---------------------------------------------------------------------
    def _new_coalescer(self, params: ParameterSet) -> Coalescer:
        co = Coalescer(
            params,
            call_later=self._call_later,
            narrator=self.narrator,
            config=self.config,
        )
        co.on_settle(self._record_settle)
        co.on_explanation(self._record_explanation)
        return co

    def _record_settle(self, event: SettledChange) -> None:
        self.last_change = event
        for listener in tuple(self._settle_listeners):
            listener(event)

    def _record_explanation(self, result: Explanation) -> None:
        change = self.last_change
        if (
            not result.available
            and change is not None
            and change.session_id == result.session_id
            and not change.empty
        ):
            result = Explanation(
                session_id=result.session_id,
                field=result.field,
                text=describe_change(change.request()),
                error=result.error,
                fallback=True,
            )
        self.last_explanation = result
        for listener in tuple(self._explanation_listeners):
            listener(result)
