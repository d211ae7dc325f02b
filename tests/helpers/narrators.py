"""Scripted narrators for explanation tests."""

from __future__ import annotations

import asyncio

from keynescope.narrative import NarrativeRequest, NarrativeUnavailable


class ScriptedNarrator:
    """Answers immediately with ``"<field>: <old> -> <new>"``."""

    def __init__(self) -> None:
        self.requests: list[NarrativeRequest] = []

    async def explain(self, request: NarrativeRequest) -> str:
        self.requests.append(request)
        return f"{request.changed_field}: {request.old_value} -> {request.new_value}"


class GatedNarrator:
    """
    Holds each answer until the test releases it, so responses can be made
    to complete out of order.
    """

    def __init__(self) -> None:
        self.requests: list[NarrativeRequest] = []
        self.gates: list[asyncio.Event] = []

    async def explain(self, request: NarrativeRequest) -> str:
        gate = asyncio.Event()
        self.requests.append(request)
        self.gates.append(gate)
        await gate.wait()
        return f"explained {request.changed_field}={request.new_value}"

    def release(self, k: int) -> None:
        self.gates[k].set()


class FailingNarrator:
    """Always raises NarrativeUnavailable."""

    def __init__(self, message: str = "quota exceeded") -> None:
        self.message = message
        self.calls = 0

    async def explain(self, request: NarrativeRequest) -> str:
        self.calls += 1
        raise NarrativeUnavailable(self.message)


class BrokenNarrator:
    """Raises an arbitrary exception, as a misbehaving transport would."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or ConnectionError("network down")
        self.calls = 0

    async def explain(self, request: NarrativeRequest) -> str:
        self.calls += 1
        raise self.exc
