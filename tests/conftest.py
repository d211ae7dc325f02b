"""Pytest configuration and fixtures for keynescope tests."""

import os

import pytest

import keynescope.regimes  # noqa: F401 - register all regime variants
import logging
from keynescope.config import EngineConfig
from keynescope.params import CrossParams, ISLMParams
from tests.helpers.factories import cross_params, islm_params
from tests.helpers.timers import ManualTimers


@pytest.fixture
def clean_registry():
    """
    Save registry state, clear it for the test, then restore it.

    Request it explicitly in tests that define synthetic regime variants.
    DO NOT use autouse=True: most tests rely on the built-in variants.
    """
    # noinspection PyProtectedMember
    from keynescope.core.registry import _REGIME_REGISTRY, clear_registry

    saved = dict(_REGIME_REGISTRY)
    clear_registry()

    yield

    _REGIME_REGISTRY.clear()
    _REGIME_REGISTRY.update(saved)


@pytest.fixture
def cross() -> CrossParams:
    """Keynesian cross textbook example (Y = 2020)."""
    return cross_params()


@pytest.fixture
def islm() -> ISLMParams:
    """IS-LM textbook example (Y = 500)."""
    return islm_params()


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(quiescence_delay=0.5, curve_points=11)


@pytest.fixture(autouse=True)
def mute_keynescope_logs(caplog):
    # DEBUG only for the coverage run, so every log call executes
    if os.environ.get("COVERAGE_RUN") == "true":
        level = logging.DEBUG
    else:
        level = logging.ERROR

    caplog.set_level(level, logger="keynescope")
    logging.getLogger("keynescope").setLevel(level)
