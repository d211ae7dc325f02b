# src/keynescope/session.py
"""
Change-session coalescer.

Continuous inputs (sliders) emit a burst of intermediate values. The
:class:`Coalescer` merges such a burst into one *session*: the parameter set
before the first edit becomes the baseline, every edit replaces the current
set, and once no edit arrived for ``delay`` seconds the session *settles*:
the change is attributed (:func:`keynescope.delta.diff`), both sets are
solved, chart data is sampled, and one :class:`SettledChange` is delivered to
every settle listener. When a narrator is attached and the change is not
empty, one explanation request is started for the settle; responses that
arrive after a newer session settled are dropped.

Regime flags do not debounce: :meth:`Coalescer.toggle` settles at once with
the pre-toggle set as baseline.

State machine
-------------
::

    IDLE   --begin/edit-->  ACTIVE   (baseline captured, timer armed)
    ACTIVE --edit-->        ACTIVE   (current replaced, timer re-armed)
    ACTIVE --timer-->       IDLE     (settle)
    *      --toggle-->      IDLE     (baseline = pre-toggle set, settle)

Examples
--------
>>> import asyncio
>>> from keynescope.params import CrossParams
>>> async def demo():
...     co = Coalescer(CrossParams(c0=180, c1=0.8, I=160, G=160, T=120), delay=0.01)
...     events = []
...     co.on_settle(events.append)
...     co.edit("G", 170.0)
...     co.edit("G", 200.0)
...     await asyncio.sleep(0.05)
...     co.close()
...     return [(e.changed_field, e.current.G) for e in events]
>>> asyncio.run(demo())
[('G', 200.0)]
"""

from __future__ import annotations

import asyncio
import functools
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Protocol

from keynescope.config.schema import EngineConfig
from keynescope.curves import ChartData, chart_data
from keynescope.delta import diff
from keynescope.equilibrium import Equilibrium, solve
from keynescope.logging import getLogger
from keynescope.narrative import Explanation, NarrativeRequest, NarrativeUnavailable
from keynescope.sync import switch_regime

if TYPE_CHECKING:
    from keynescope.narrative import Narrator
    from keynescope.params import ParameterSet

__all__ = [
    "SessionStatus",
    "ChangeSession",
    "SettledChange",
    "TimerHandle",
    "Coalescer",
]

log = getLogger(__name__)


class SessionStatus(Enum):
    IDLE = "idle"
    ACTIVE = "active"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


CallLater = Callable[[float, Callable[[], None]], TimerHandle]
SettleListener = Callable[["SettledChange"], None]
ExplanationListener = Callable[[Explanation], None]


@dataclass(slots=True)
class ChangeSession:
    """
    Mutable session record owned by one Coalescer.

    ``baseline`` is only set while ACTIVE. ``session_id`` is the id of the
    running (or last) session; ids increase monotonically from 1.
    """

    status: SessionStatus
    current: ParameterSet
    baseline: ParameterSet | None = None
    timer: TimerHandle | None = None
    session_id: int = 0


@dataclass(slots=True, frozen=True)
class SettledChange:
    """Settle event: one before/after comparison."""

    session_id: int
    baseline: ParameterSet
    current: ParameterSet
    changed_field: str | None
    baseline_equilibrium: Equilibrium
    current_equilibrium: Equilibrium
    chart: ChartData

    @property
    def empty(self) -> bool:
        """True when the burst ended where it started."""
        return self.changed_field is None

    def request(self) -> NarrativeRequest:
        """Narrative request for this change."""
        if self.changed_field is None:
            raise ValueError(f"Session {self.session_id} changed nothing")
        return NarrativeRequest(
            baseline=self.baseline,
            current=self.current,
            changed_field=self.changed_field,
            baseline_equilibrium=self.baseline_equilibrium,
            current_equilibrium=self.current_equilibrium,
        )


class Coalescer:
    """
    Debounce edit bursts into settled before/after comparisons.

    Parameters
    ----------
    initial : ParameterSet
        Parameter set the coalescer starts from.
    delay : float, optional
        Quiescence delay in seconds; defaults to ``config.quiescence_delay``.
    call_later : callable, optional
        ``call_later(delay, callback) -> handle`` used to schedule the
        quiescence timer; the handle must provide ``cancel()``. Defaults to
        the running asyncio loop's ``call_later``.
    narrator : Narrator, optional
        Explanation collaborator. Without one no explanations are requested.
    config : EngineConfig, optional
        Chart and regime-switch settings.

    Notes
    -----
    Edits may be issued from synchronous code when *call_later* is given;
    the default timer needs a running event loop. A settle outside a
    running loop delivers an unavailable explanation instead of starting a
    request. Any exception raised by the narrator is delivered the same
    way.
    """

    def __init__(
        self,
        initial: ParameterSet,
        *,
        delay: float | None = None,
        call_later: CallLater | None = None,
        narrator: Narrator | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.delay = self.config.quiescence_delay if delay is None else float(delay)
        self.narrator = narrator
        self._call_later = call_later
        self._session = ChangeSession(status=SessionStatus.IDLE, current=initial)
        self._next_id = 0
        self._timer_gen = 0
        self._latest_settled = 0
        self._tasks: set[asyncio.Task[None]] = set()
        self._settle_listeners: list[SettleListener] = []
        self._explanation_listeners: list[ExplanationListener] = []
        self._closed = False

    # --- state -------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def current(self) -> ParameterSet:
        return self._session.current

    @property
    def baseline(self) -> ParameterSet | None:
        return self._session.baseline

    @property
    def session_id(self) -> int:
        return self._session.session_id

    @property
    def latest_settled(self) -> int:
        """Id of the most recently settled session (0 before the first)."""
        return self._latest_settled

    @property
    def timer_armed(self) -> bool:
        return self._session.timer is not None

    @property
    def pending(self) -> int:
        """Number of explanation requests still running."""
        return len(self._tasks)

    @property
    def closed(self) -> bool:
        return self._closed

    # --- listeners ---------------------------------------------------------

    def on_settle(self, listener: SettleListener) -> SettleListener:
        """Register *listener* for settle events; usable as a decorator."""
        self._settle_listeners.append(listener)
        return listener

    def on_explanation(self, listener: ExplanationListener) -> ExplanationListener:
        """Register *listener* for delivered explanations."""
        self._explanation_listeners.append(listener)
        return listener

    # --- edit source -------------------------------------------------------

    def begin(self) -> None:
        """
        Signal the start of an edit burst.

        In IDLE the current set becomes the baseline and the timer is armed;
        in ACTIVE nothing happens.
        """
        self._check_open()
        if self._session.status is SessionStatus.ACTIVE:
            return
        call_later = self._scheduler()
        self._start(self._session.current)
        self._arm(call_later)

    def edit(self, name: str, value: Any) -> SettledChange | None:
        """
        Apply one edit.

        Regime flags are routed to :meth:`toggle` (which returns the settle
        event); numeric edits return None.

        Raises
        ------
        KeyError
            If *name* is not a field of the model.
        RuntimeError
            After :meth:`close`.
        """
        self._check_open()
        before = self._session.current
        if before.is_flag(name):
            return self.toggle(name, value)

        after = before.replace(**{name: value})
        call_later = self._scheduler()
        if self._session.status is SessionStatus.IDLE:
            self._start(before)
        self._session.current = after
        log.deep("Session %d: %s=%r", self._session.session_id, name, value)
        self._arm(call_later)
        return None

    def toggle(self, flag: str, value: bool) -> SettledChange | None:
        """
        Switch a regime flag and settle immediately.

        The set before the toggle becomes the baseline, replacing the
        baseline of a running burst. Setting a flag to its current value
        does nothing and returns None.

        Raises
        ------
        KeyError
            If *flag* is not a regime flag.
        RuntimeError
            After :meth:`close`.
        """
        self._check_open()
        before = self._session.current
        if not before.is_flag(flag):
            raise KeyError(
                f"'{flag}' is not a regime flag of {before.model}. "
                f"Flags: {list(before.regime_flags)}"
            )
        if bool(getattr(before, flag)) == bool(value):
            return None

        self._cancel_timer()
        after = switch_regime(before, flag, bool(value), self.config)
        self._start(before)
        self._session.current = after
        log.debug("Session %d: regime %s=%s", self._session.session_id, flag, value)
        return self._settle()

    def flush(self) -> SettledChange | None:
        """Settle a running burst now instead of waiting for the timer."""
        self._check_open()
        if self._session.status is not SessionStatus.ACTIVE:
            return None
        return self._settle()

    # --- lifecycle ---------------------------------------------------------

    async def join(self) -> None:
        """Wait until every outstanding explanation request has finished."""
        while self._tasks and not self._closed:
            await asyncio.gather(*tuple(self._tasks))

    def close(self) -> None:
        """Release the timer and cancel outstanding explanation requests."""
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        for task in tuple(self._tasks):
            task.cancel()
        log.debug("Coalescer closed (%d request(s) cancelled)", len(self._tasks))

    def __enter__(self) -> Coalescer:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # --- internals ---------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Coalescer is closed")

    def _start(self, baseline: ParameterSet) -> None:
        s = self._session
        if s.status is SessionStatus.IDLE:
            self._next_id += 1
            s.session_id = self._next_id
            s.status = SessionStatus.ACTIVE
        s.baseline = baseline

    def _scheduler(self) -> CallLater:
        if self._call_later is not None:
            return self._call_later
        return asyncio.get_running_loop().call_later

    def _arm(self, call_later: CallLater) -> None:
        self._cancel_timer()
        self._timer_gen += 1
        self._session.timer = call_later(
            self.delay, functools.partial(self._on_timer, self._timer_gen)
        )

    def _cancel_timer(self) -> None:
        timer = self._session.timer
        if timer is not None:
            timer.cancel()
            self._session.timer = None

    def _on_timer(self, gen: int) -> None:
        # a callback that raced its own cancellation
        if gen != self._timer_gen or self._session.timer is None:
            return
        self._session.timer = None
        if self._closed or self._session.status is not SessionStatus.ACTIVE:
            return
        self._settle()

    def _settle(self) -> SettledChange:
        s = self._session
        loop = self._running_loop()
        self._cancel_timer()
        baseline = s.baseline if s.baseline is not None else s.current
        current = s.current

        cfg = self.config
        chart = chart_data(
            current,
            baseline,
            count=cfg.curve_points,
            factor=cfg.chart_bound_factor,
            cap=cfg.chart_bound_cap,
        )
        event = SettledChange(
            session_id=s.session_id,
            baseline=baseline,
            current=current,
            changed_field=diff(baseline, current),
            baseline_equilibrium=solve(baseline),
            current_equilibrium=chart.equilibrium,
            chart=chart,
        )

        s.status = SessionStatus.IDLE
        s.baseline = None
        self._latest_settled = event.session_id

        log.info(
            "Session %d settled: %s (Y %.2f -> %.2f)",
            event.session_id,
            event.changed_field or "no change",
            event.baseline_equilibrium.output,
            event.current_equilibrium.output,
        )

        for listener in tuple(self._settle_listeners):
            listener(event)

        if event.changed_field is not None and self.narrator is not None:
            self._request_explanation(event, loop)
        return event

    @staticmethod
    def _running_loop() -> asyncio.AbstractEventLoop | None:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _request_explanation(
        self, event: SettledChange, loop: asyncio.AbstractEventLoop | None
    ) -> None:
        request = event.request()
        if loop is None:
            exc = NarrativeUnavailable("no running event loop")
            log.warning(
                "Explanation for session %d unavailable: %s", event.session_id, exc
            )
            self._deliver(
                Explanation(event.session_id, request.changed_field, error=exc)
            )
            return
        task = loop.create_task(self._explain(event.session_id, request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _explain(self, session_id: int, request: NarrativeRequest) -> None:
        assert self.narrator is not None
        try:
            text = await self.narrator.explain(request)
        except Exception as exc:
            log.warning("Explanation for session %d unavailable: %s", session_id, exc)
            result = Explanation(session_id, request.changed_field, error=exc)
        else:
            result = Explanation(session_id, request.changed_field, text=text)

        if session_id != self._latest_settled:
            log.debug(
                "Dropping explanation for session %d (latest settled: %d)",
                session_id,
                self._latest_settled,
            )
            return

        self._deliver(result)

    def _deliver(self, result: Explanation) -> None:
        for listener in tuple(self._explanation_listeners):
            listener(result)
