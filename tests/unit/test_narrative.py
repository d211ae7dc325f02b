"""Tests for the explanation collaborator seam."""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from keynescope.config import NarratorConfig
from keynescope.equilibrium import solve
from keynescope.narrative import (
    ChatNarrator,
    Explanation,
    LocalNarrator,
    NarrativeRequest,
    NarrativeUnavailable,
    build_narrator,
    describe_change,
)
from tests.helpers.factories import cross_params, islm_params


def _request(old, new, name):
    return NarrativeRequest(old, new, name, solve(old), solve(new))


def _response(status=200, payload=None):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


def _narrator(session, **kwargs):
    kwargs.setdefault("api_key", "test-key")
    return ChatNarrator(
        endpoint="https://example.test/v1/chat/completions",
        model="test-model",
        session=session,
        **kwargs,
    )


class TestDescribeChange:
    def test_rise_in_output(self, islm):
        text = describe_change(_request(islm, islm.replace(G=180.0), "G"))

        assert text.splitlines()[0] == (
            "Changed government spending (G) from 150.00 to 180.00."
        )
        assert "Output rises from 500.00 to 600.00 (+100.00)." in text

    def test_fall_in_output(self, islm):
        text = describe_change(_request(islm, islm.replace(i_bar=4.0), "i_bar"))

        assert "Output falls" in text
        assert "pegged interest rate" in text

    def test_regime_switch(self, cross):
        text = describe_change(
            _request(cross, cross.replace(lump_sum_tax=False), "lump_sum_tax")
        )

        assert "tax regime from on to off" in text

    def test_unbounded(self):
        old = cross_params(exogenous_investment=False)
        new = old.replace(c1=0.95)

        assert "unbounded" in describe_change(_request(old, new, "c1"))

    def test_local_narrator_returns_summary(self, islm):
        req = _request(islm, islm.replace(G=180.0), "G")

        assert asyncio.run(LocalNarrator().explain(req)) == describe_change(req)


def test_request_values_and_prompt(islm):
    req = _request(islm, islm.replace(T=120.0), "T")

    assert (req.old_value, req.new_value) == (100.0, 120.0)
    prompt = req.prompt()
    assert "is_lm" in prompt
    assert "lump-sum taxes (T) from 100.00 to 120.00" in prompt


def test_explanation_availability():
    assert Explanation(1, "G", text="ok").available
    assert not Explanation(1, "G", error=NarrativeUnavailable("x")).available
    assert not Explanation(1, "G", text="x", error=RuntimeError(), fallback=True).available


class TestChatNarrator:
    def test_successful_completion(self):
        session = MagicMock()
        session.post.return_value = _response(
            payload={"choices": [{"message": {"content": "  Because demand.  "}}]}
        )

        text = _narrator(session).complete("why?")

        assert text == "Because demand."
        _, kwargs = session.post.call_args
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        assert kwargs["json"]["model"] == "test-model"
        assert kwargs["json"]["messages"][-1] == {"role": "user", "content": "why?"}
        assert kwargs["timeout"] == 60.0

    def test_explain_runs_in_thread(self, islm):
        session = MagicMock()
        session.post.return_value = _response(
            payload={"choices": [{"message": {"content": "IS shifts right."}}]}
        )
        req = _request(islm, islm.replace(G=180.0), "G")

        assert asyncio.run(_narrator(session).explain(req)) == "IS shifts right."

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("KEYNESCOPE_API_KEY", raising=False)
        session = MagicMock()

        with pytest.raises(NarrativeUnavailable, match="No API key"):
            _narrator(session, api_key=None).complete("why?")
        session.post.assert_not_called()

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("KEYNESCOPE_API_KEY", "env-key")

        assert _narrator(MagicMock(), api_key=None).api_key == "env-key"

    def test_quota_exceeded(self):
        session = MagicMock()
        session.post.return_value = _response(status=429)

        with pytest.raises(NarrativeUnavailable, match="quota"):
            _narrator(session).complete("why?")

    def test_http_error(self):
        session = MagicMock()
        session.post.return_value = _response(status=500)

        with pytest.raises(NarrativeUnavailable, match="request failed"):
            _narrator(session).complete("why?")

    def test_network_error(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("offline")

        with pytest.raises(NarrativeUnavailable, match="offline"):
            _narrator(session).complete("why?")

    @pytest.mark.parametrize(
        "payload", [{}, {"choices": []}, {"choices": [{"message": {"content": ""}}]}]
    )
    def test_malformed_payload(self, payload):
        session = MagicMock()
        session.post.return_value = _response(payload=payload)

        with pytest.raises(NarrativeUnavailable):
            _narrator(session).complete("why?")


class TestBuildNarrator:
    def test_providers(self):
        assert isinstance(build_narrator(NarratorConfig()), LocalNarrator)
        assert build_narrator(NarratorConfig(provider="none")) is None

        chat = build_narrator(NarratorConfig(provider="chat", timeout=5.0))
        assert isinstance(chat, ChatNarrator)
        assert chat.timeout == 5.0


def test_describe_change_islm_regime(islm):
    new = islm_params(lump_sum_tax=False)
    text = describe_change(_request(islm, new, "lump_sum_tax"))

    assert text.startswith("Changed tax regime from on to off.")
