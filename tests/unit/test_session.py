"""Tests for the change-session coalescer state machine."""

import pytest

from keynescope.config import EngineConfig
from keynescope.equilibrium import solve
from keynescope.session import Coalescer, SessionStatus


@pytest.fixture
def coalescer(cross, timers, engine_config):
    co = Coalescer(cross, call_later=timers.call_later, config=engine_config)
    co.events = []
    co.on_settle(co.events.append)
    return co


class TestEditBurst:
    def test_first_edit_opens_session(self, coalescer, cross, timers):
        coalescer.edit("G", 170.0)

        assert coalescer.status is SessionStatus.ACTIVE
        assert coalescer.baseline == cross
        assert coalescer.current.G == 170.0
        assert len(timers.armed) == 1
        assert timers.armed[0].when == 0.5

    def test_burst_settles_once(self, coalescer, cross, timers):
        coalescer.edit("G", 170.0)
        timers.advance(0.3)
        coalescer.edit("G", 185.0)
        timers.advance(0.3)
        coalescer.edit("G", 200.0)

        assert coalescer.events == []
        assert timers.advance(0.4) == 0
        assert timers.advance(0.2) == 1

        (event,) = coalescer.events
        assert event.baseline == cross
        assert event.current.G == 200.0
        assert event.changed_field == "G"
        assert event.current_equilibrium.output == pytest.approx(2220.0)
        assert event.baseline_equilibrium.output == pytest.approx(2020.0)
        assert coalescer.status is SessionStatus.IDLE
        assert coalescer.baseline is None
        assert not coalescer.timer_armed

    def test_each_edit_rearms_timer(self, coalescer, timers):
        for value in (161.0, 162.0, 163.0):
            coalescer.edit("G", value)

        assert len(timers.handles) == 3
        assert [h.cancelled for h in timers.handles] == [True, True, False]

    def test_baseline_never_moves_mid_session(self, coalescer, cross):
        coalescer.edit("G", 170.0)
        coalescer.edit("T", 100.0)
        coalescer.edit("c0", 150.0)

        assert coalescer.baseline == cross

    def test_multi_field_burst_reports_first_by_priority(self, coalescer, timers):
        coalescer.edit("T", 100.0)
        coalescer.edit("c0", 150.0)
        timers.advance(0.5)

        assert coalescer.events[0].changed_field == "c0"

    def test_burst_back_to_start_is_empty(self, coalescer, timers):
        coalescer.edit("G", 170.0)
        coalescer.edit("G", 160.0)
        timers.advance(0.5)

        (event,) = coalescer.events
        assert event.changed_field is None
        assert event.empty

    def test_chart_uses_configured_resolution(self, coalescer, timers):
        coalescer.edit("G", 170.0)
        timers.advance(0.5)

        chart = coalescer.events[0].chart
        assert len(chart.curve) == 11
        assert chart.baseline_curve is not None

    def test_session_ids_increase(self, coalescer, timers):
        coalescer.edit("G", 170.0)
        timers.advance(0.5)
        coalescer.edit("G", 180.0)
        timers.advance(0.5)

        assert [e.session_id for e in coalescer.events] == [1, 2]
        assert coalescer.latest_settled == 2
        # the second session starts from where the first ended
        assert coalescer.events[1].baseline.G == 170.0

    def test_unknown_field(self, coalescer):
        with pytest.raises(KeyError):
            coalescer.edit("i_bar", 2.0)
        assert coalescer.status is SessionStatus.IDLE


class TestBegin:
    def test_begin_captures_baseline(self, coalescer, cross, timers):
        coalescer.begin()

        assert coalescer.status is SessionStatus.ACTIVE
        assert coalescer.baseline == cross
        assert len(timers.armed) == 1

    def test_begin_is_noop_when_active(self, coalescer, timers):
        coalescer.edit("G", 170.0)
        coalescer.begin()

        assert len(timers.handles) == 1
        assert coalescer.baseline.G == 160.0

    def test_begin_without_edit_settles_empty(self, coalescer, timers):
        coalescer.begin()
        timers.advance(0.5)

        assert coalescer.events[0].changed_field is None
        assert coalescer.status is SessionStatus.IDLE


class TestToggle:
    def test_toggle_settles_immediately(self, coalescer, cross, timers):
        event = coalescer.toggle("lump_sum_tax", False)

        assert event is coalescer.events[0]
        assert event.changed_field == "lump_sum_tax"
        assert event.baseline == cross
        assert event.current.lump_sum_tax is False
        assert coalescer.status is SessionStatus.IDLE
        assert timers.armed == []

    def test_toggle_mid_burst_rebases(self, coalescer, timers):
        coalescer.edit("G", 170.0)
        event = coalescer.toggle("exogenous_investment", False)

        assert event.baseline.G == 170.0
        assert event.baseline.exogenous_investment is True
        assert event.changed_field == "exogenous_investment"
        assert timers.armed == []
        # the pending timer must not settle a second time
        timers.advance(1.0)
        assert len(coalescer.events) == 1

    def test_toggle_to_current_value_is_noop(self, coalescer, timers):
        assert coalescer.toggle("lump_sum_tax", True) is None
        assert coalescer.events == []
        assert coalescer.status is SessionStatus.IDLE

    def test_edit_routes_flags_to_toggle(self, coalescer):
        event = coalescer.edit("lump_sum_tax", False)

        assert event is not None
        assert event.changed_field == "lump_sum_tax"

    def test_toggle_rejects_numeric_fields(self, coalescer):
        with pytest.raises(KeyError, match="not a regime flag"):
            coalescer.toggle("G", True)

    def test_toggle_with_sync_keeps_output(self, cross, timers):
        co = Coalescer(
            cross,
            call_later=timers.call_later,
            config=EngineConfig(sync_regime_parameters=True),
        )
        event = co.toggle("lump_sum_tax", False)

        assert event.current.t == pytest.approx(120.0 / 2020.0)
        assert event.current_equilibrium.output == pytest.approx(
            solve(cross).output
        )


class TestFlushAndClose:
    def test_flush_settles_running_burst(self, coalescer, timers):
        coalescer.edit("G", 170.0)
        event = coalescer.flush()

        assert event is not None
        assert event.changed_field == "G"
        assert timers.armed == []

    def test_flush_when_idle(self, coalescer):
        assert coalescer.flush() is None

    def test_close_releases_timer(self, coalescer, timers):
        coalescer.edit("G", 170.0)
        coalescer.close()

        assert timers.handles[0].cancelled
        assert not coalescer.timer_armed
        assert coalescer.closed

    def test_edits_after_close_raise(self, coalescer):
        coalescer.close()

        with pytest.raises(RuntimeError, match="closed"):
            coalescer.edit("G", 170.0)
        with pytest.raises(RuntimeError, match="closed"):
            coalescer.toggle("lump_sum_tax", False)
        with pytest.raises(RuntimeError, match="closed"):
            coalescer.begin()

    def test_close_is_idempotent(self, coalescer):
        coalescer.close()
        coalescer.close()

    def test_context_manager(self, cross, timers):
        with Coalescer(cross, call_later=timers.call_later) as co:
            co.edit("G", 170.0)

        assert co.closed
        assert timers.handles[0].cancelled

    def test_stale_timer_callback_is_ignored(self, coalescer, timers):
        coalescer.edit("G", 170.0)
        coalescer.edit("G", 180.0)

        # a cancelled callback that still runs must not settle
        timers.handles[0].callback()

        assert coalescer.events == []
        assert coalescer.status is SessionStatus.ACTIVE


def test_delay_defaults_to_config(cross):
    co = Coalescer(cross, config=EngineConfig(quiescence_delay=0.2))

    assert co.delay == 0.2
    assert Coalescer(cross, delay=1.0).delay == 1.0
