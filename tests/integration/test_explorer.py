"""End-to-end tests for the Explorer facade and the CLI."""

import asyncio
import logging

import pytest

from keynescope import Explorer
from keynescope.main import main
from keynescope.narrative import NarrativeUnavailable, describe_change
from keynescope.session import SessionStatus
from tests.helpers.narrators import BrokenNarrator, FailingNarrator, ScriptedNarrator
from tests.helpers.timers import ManualTimers


def _explorer(model="is_lm", narrator=None, **overrides):
    # without a narrator, settles need no running event loop
    overrides.setdefault("narrator", {"provider": "none"})
    timers = ManualTimers()
    explorer = Explorer.init(
        model, custom_narrator=narrator, call_later=timers.call_later, **overrides
    )
    return explorer, timers


def test_fallback_text_replaces_failed_explanation():
    async def scenario():
        explorer, timers = _explorer(narrator=FailingNarrator())
        received = []
        explorer.on_explanation(received.append)

        explorer.edit("G", 180.0)
        timers.advance(0.5)
        await explorer.join()
        return explorer, received

    explorer, received = asyncio.run(scenario())

    (result,) = received
    assert result is explorer.last_explanation
    assert result.fallback
    assert isinstance(result.error, NarrativeUnavailable)
    assert result.text == describe_change(explorer.last_change.request())
    assert "Output rises from 500.00 to 600.00" in result.text


def test_successful_explanation_is_passed_through():
    async def scenario():
        explorer, timers = _explorer(narrator=ScriptedNarrator())
        explorer.toggle("lump_sum_tax", False)
        await explorer.join()
        return explorer

    explorer = asyncio.run(scenario())

    assert explorer.last_explanation.available
    assert not explorer.last_explanation.fallback
    assert explorer.last_explanation.text == "lump_sum_tax: True -> False"


def test_toggle_outside_event_loop_with_default_narrator():
    timers = ManualTimers()
    explorer = Explorer.init("keynesian_cross", call_later=timers.call_later)

    change = explorer.toggle("lump_sum_tax", False)

    assert change is explorer.last_change
    assert explorer.status is SessionStatus.IDLE
    result = explorer.last_explanation
    assert result.session_id == change.session_id
    assert result.fallback
    assert isinstance(result.error, NarrativeUnavailable)
    assert result.text == describe_change(change.request())


def test_transport_error_falls_back_to_local_text():
    async def scenario():
        explorer, timers = _explorer(narrator=BrokenNarrator(TimeoutError("slow")))
        explorer.edit("G", 180.0)
        timers.advance(0.5)
        await explorer.join()
        return explorer

    explorer = asyncio.run(scenario())

    result = explorer.last_explanation
    assert result.fallback
    assert isinstance(result.error, TimeoutError)
    assert "Output rises from 500.00 to 600.00" in result.text

def test_invalid_edit_is_rejected_before_the_session():
    explorer, timers = _explorer()

    with pytest.raises(ValueError, match="'c1' must be < 1.0"):
        explorer.edit("c1", 1.5)
    with pytest.raises(KeyError):
        explorer.edit("b0", 10.0)

    assert explorer.status is SessionStatus.IDLE
    assert timers.handles == []


def test_toggle_requires_bool():
    explorer, _ = _explorer()

    with pytest.raises(ValueError, match="must be bool"):
        explorer.toggle("lump_sum_tax", 0)


def test_unbounded_edit_warns_but_is_accepted():
    explorer, timers = _explorer()

    with pytest.warns(UserWarning, match="unbounded"):
        explorer.edit("d1", 0.4)
    timers.advance(0.5)

    assert not explorer.equilibrium().bounded
    assert explorer.chart().upper_bound == explorer.config.chart_bound_cap


def test_chart_follows_session(islm):
    explorer, timers = _explorer()

    assert explorer.baseline is None
    assert explorer.chart().baseline_curve is None

    explorer.edit("G", 180.0)
    assert explorer.baseline == islm
    timers.advance(0.5)

    chart = explorer.chart()
    assert explorer.baseline == islm
    assert chart.baseline_equilibrium.output == pytest.approx(500.0)
    assert chart.equilibrium.output == pytest.approx(600.0)
    assert chart.upper_bound == pytest.approx(900.0)
    assert len(chart.curve) == 100


def test_reset_restores_initial_parameters(islm):
    explorer, timers = _explorer()
    explorer.edit("G", 180.0)
    timers.advance(0.5)
    old = explorer.coalescer

    explorer.reset()

    assert explorer.params == islm
    assert explorer.last_change is None
    assert explorer.baseline is None
    assert old.closed
    assert not explorer.coalescer.closed


def test_settle_listener_and_close(islm):
    explorer, timers = _explorer()
    events = []
    explorer.on_settle(events.append)

    with explorer:
        explorer.edit("i_bar", 2.0)
        timers.advance(0.5)

    assert events[0].changed_field == "i_bar"
    assert explorer.last_change is events[0]
    with pytest.raises(RuntimeError):
        explorer.edit("G", 170.0)


def test_cli_runs_scripted_session(caplog):
    with caplog.at_level(logging.INFO):
        main(
            [
                "--model",
                "is_lm",
                "--edit",
                "G=170",
                "--edit",
                "G=180",
                "--toggle",
                "lump_sum_tax=false",
                "--narrator",
                "local",
            ]
        )

    assert "G changed: Y 500.00 -> 600.00" in caplog.text
    assert "lump_sum_tax changed" in caplog.text
    assert "Explanation" in caplog.text


def test_cli_rejects_malformed_edit():
    with pytest.raises(SystemExit):
        main(["--edit", "G"])
