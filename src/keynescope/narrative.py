# src/keynescope/narrative.py
"""
Explanation collaborator seam.

The change session hands every settled, non-empty change to a
:class:`Narrator`. Narrators are asynchronous and may fail with
:class:`NarrativeUnavailable` (network, quota, missing credentials); the
failure is recoverable and only affects the explanation of that one settle.

Two narrators ship with the package:

- :class:`ChatNarrator` posts a prompt to an OpenAI-compatible
  chat-completions endpoint with ``requests`` (run in a worker thread).
- :class:`LocalNarrator` returns the deterministic summary of
  :func:`describe_change`; the Explorer also uses that summary as the
  fallback text when the configured narrator fails.
"""

from __future__ import annotations

import asyncio
import math
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import requests

from keynescope.logging import getLogger

if TYPE_CHECKING:
    from keynescope.config.schema import NarratorConfig
    from keynescope.equilibrium import Equilibrium
    from keynescope.params import ParameterSet

__all__ = [
    "NarrativeUnavailable",
    "NarrativeRequest",
    "Explanation",
    "Narrator",
    "LocalNarrator",
    "ChatNarrator",
    "describe_change",
    "build_narrator",
]

log = getLogger(__name__)

_FIELD_LABELS = {
    "c0": "autonomous consumption (c0)",
    "c1": "marginal propensity to consume (c1)",
    "I": "investment (I)",
    "I0": "autonomous investment (I0)",
    "b0": "autonomous investment (b0)",
    "b1": "investment sensitivity to income (b1)",
    "b2": "investment sensitivity to the interest rate (b2)",
    "d1": "investment sensitivity to income (d1)",
    "d2": "investment sensitivity to the interest rate (d2)",
    "i": "interest rate (i)",
    "i_bar": "pegged interest rate (i_bar)",
    "G": "government spending (G)",
    "T": "lump-sum taxes (T)",
    "t": "tax rate (t)",
    "lump_sum_tax": "tax regime",
    "exogenous_investment": "investment regime",
}


class NarrativeUnavailable(RuntimeError):
    """The narrator could not produce an explanation for this settle."""


@dataclass(slots=True, frozen=True)
class NarrativeRequest:
    """Everything a narrator gets to explain one settled change."""

    baseline: ParameterSet
    current: ParameterSet
    changed_field: str
    baseline_equilibrium: Equilibrium
    current_equilibrium: Equilibrium

    @property
    def old_value(self) -> Any:
        return getattr(self.baseline, self.changed_field)

    @property
    def new_value(self) -> Any:
        return getattr(self.current, self.changed_field)

    @property
    def label(self) -> str:
        return _FIELD_LABELS.get(self.changed_field, self.changed_field)

    def prompt(self) -> str:
        """Plain-text prompt describing the change for a language model."""
        old_eq, new_eq = self.baseline_equilibrium, self.current_equilibrium
        lines = [
            f"Model: {self.current.model} ({self.current.variant.name}).",
            f"Changed {self.label} from {_fmt(self.old_value)} to "
            f"{_fmt(self.new_value)}.",
            f"Equilibrium output moved from {_fmt(old_eq.output)} to "
            f"{_fmt(new_eq.output)}.",
            f"Consumption: {_fmt(old_eq.consumption)} -> {_fmt(new_eq.consumption)}.",
            f"Investment: {_fmt(old_eq.investment)} -> {_fmt(new_eq.investment)}.",
            f"Multiplier: {_fmt(new_eq.multiplier)}.",
            "Explain step by step, for an undergraduate macroeconomics class, "
            "why the equilibrium moved the way it did.",
        ]
        return "\n".join(lines)


@dataclass(slots=True, frozen=True)
class Explanation:
    """
    Explanation delivered for one settled session.

    ``error`` is set when the narrator failed; ``fallback`` marks text that
    was substituted by the caller instead of produced by the narrator.
    """

    session_id: int
    field: str
    text: str | None = None
    error: BaseException | None = None
    fallback: bool = False

    @property
    def available(self) -> bool:
        return self.error is None and self.text is not None


class Narrator(Protocol):
    async def explain(self, request: NarrativeRequest) -> str: ...


def _fmt(val: Any) -> str:
    if isinstance(val, bool):
        return "on" if val else "off"
    if isinstance(val, (int, float)):
        if math.isinf(val):
            return "unbounded"
        return f"{val:,.2f}"
    return str(val)


def describe_change(request: NarrativeRequest) -> str:
    """
    Deterministic one-paragraph summary of a settled change.

    Examples
    --------
    >>> from keynescope.params import CrossParams
    >>> from keynescope.equilibrium import solve
    >>> old = CrossParams(c0=180, c1=0.8, I=160, G=160, T=120)
    >>> new = old.replace(G=200.0)
    >>> req = NarrativeRequest(old, new, "G", solve(old), solve(new))
    >>> describe_change(req).splitlines()[0]
    'Changed government spending (G) from 160.00 to 200.00.'
    """
    old_eq, new_eq = request.baseline_equilibrium, request.current_equilibrium
    lines = [
        f"Changed {request.label} from {_fmt(request.old_value)} to "
        f"{_fmt(request.new_value)}."
    ]
    if not new_eq.bounded:
        lines.append(
            "The marginal spending rate reached 1: demand grows as fast as "
            "output and the equilibrium is unbounded."
        )
    elif not old_eq.bounded:
        lines.append(f"Output is bounded again at {_fmt(new_eq.output)}.")
    else:
        delta = new_eq.output - old_eq.output
        if delta == 0.0:
            lines.append(f"Output stays at {_fmt(new_eq.output)}.")
        else:
            verb = "rises" if delta > 0 else "falls"
            lines.append(
                f"Output {verb} from {_fmt(old_eq.output)} to "
                f"{_fmt(new_eq.output)} ({delta:+,.2f})."
            )
        lines.append(
            f"Consumption: {_fmt(old_eq.consumption)} -> "
            f"{_fmt(new_eq.consumption)}; investment: "
            f"{_fmt(old_eq.investment)} -> {_fmt(new_eq.investment)}."
        )
    return "\n".join(lines)


class LocalNarrator:
    """Narrator that never fails: returns :func:`describe_change`."""

    async def explain(self, request: NarrativeRequest) -> str:
        return describe_change(request)


class ChatNarrator:
    """
    Narrator backed by an OpenAI-compatible chat-completions endpoint.

    Parameters
    ----------
    endpoint : str
        Chat-completions URL.
    model : str
        Model name.
    api_key : str, optional
        API key. When omitted it is read from ``api_key_env`` at call time.
    api_key_env : str
        Environment variable holding the key.
    temperature : float
        Sampling temperature.
    max_tokens : int
        Completion length limit.
    timeout : float
        HTTP timeout in seconds.
    session : requests.Session, optional
        Session used for the POST (a new one per narrator by default).
    """

    SYSTEM_PROMPT = (
        "You are a university macroeconomics lecturer. Explain parameter "
        "changes in simple Keynesian models to students."
    )

    def __init__(
        self,
        *,
        endpoint: str,
        model: str,
        api_key: str | None = None,
        api_key_env: str = "KEYNESCOPE_API_KEY",
        temperature: float = 0.8,
        max_tokens: int = 3000,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.model = model
        self._api_key = api_key
        self.api_key_env = api_key_env
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg: NarratorConfig) -> ChatNarrator:
        return cls(
            endpoint=cfg.endpoint,
            model=cfg.model,
            api_key_env=cfg.api_key_env,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
            timeout=cfg.timeout,
        )

    @property
    def api_key(self) -> str | None:
        return self._api_key or os.environ.get(self.api_key_env)

    async def explain(self, request: NarrativeRequest) -> str:
        return await asyncio.to_thread(self.complete, request.prompt())

    def complete(self, prompt: str) -> str:
        """
        Blocking completion call.

        Raises
        ------
        NarrativeUnavailable
            On missing credentials, HTTP errors (including quota responses),
            network failures or malformed payloads.
        """
        key = self.api_key
        if not key:
            raise NarrativeUnavailable(
                f"No API key configured (set the {self.api_key_env} "
                "environment variable)"
            )

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": False,
        }
        try:
            response = self._session.post(
                self.endpoint,
                headers={
                    "Authorization": f"Bearer {key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.timeout,
            )
            if response.status_code == 429:
                raise NarrativeUnavailable("Explanation quota exceeded (HTTP 429)")
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise NarrativeUnavailable(f"Explanation request failed: {exc}") from exc

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise NarrativeUnavailable("Malformed explanation response") from exc
        if not isinstance(text, str) or not text.strip():
            raise NarrativeUnavailable("Empty explanation response")
        return text.strip()


def build_narrator(cfg: NarratorConfig) -> Narrator | None:
    """Instantiate the narrator named by ``cfg.provider``."""
    if cfg.provider == "none":
        return None
    if cfg.provider == "chat":
        log.debug("Using chat narrator %s at %s", cfg.model, cfg.endpoint)
        return ChatNarrator.from_config(cfg)
    return LocalNarrator()
