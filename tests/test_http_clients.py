"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest
from openai import APIConnectionError

from autocheck.adapters.openai_assessment_client import OpenAIAssessmentClient
from autocheck.services.assessment import MalformedResponseError, TransportError
from tests.conftest import assessment_payload


class _FakeResponses:
    def __init__(self, output_text: str = "", error: Exception | None = None) -> None:
        self.output_text = output_text
        self.error = error
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        if self.error is not None:
            raise self.error
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, responses: _FakeResponses) -> None:
        self.responses = responses
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _assess(client: OpenAIAssessmentClient, reasoning_effort: str | None = "low"):
    return asyncio.run(
        client.assess(
            model="gpt-5.2",
            reasoning_effort=reasoning_effort,
            store=False,
            image_data_url="data:image/jpeg;base64,ZmFrZQ==",
            schema={"type": "object"},
            prompt="Inspect the room",
        )
    )


def test_openai_assessment_client_parses_output() -> None:
    responses = _FakeResponses(output_text=json.dumps(assessment_payload()))
    client = OpenAIAssessmentClient(client=_FakeOpenAI(responses))

    result = _assess(client)

    assert result == assessment_payload()
    payload = responses.last_payload
    assert payload is not None
    assert payload["text"]["format"]["type"] == "json_schema"
    assert payload["text"]["format"]["strict"] is True
    assert payload["reasoning"] == {"effort": "low"}
    content = payload["input"][0]["content"]
    assert {part["type"] for part in content} == {"input_image", "input_text"}


def test_openai_assessment_client_omits_empty_reasoning() -> None:
    responses = _FakeResponses(output_text=json.dumps(assessment_payload()))
    client = OpenAIAssessmentClient(client=_FakeOpenAI(responses))

    _assess(client, reasoning_effort=None)

    assert responses.last_payload is not None
    assert "reasoning" not in responses.last_payload


def test_openai_assessment_client_maps_api_errors_to_transport() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    responses = _FakeResponses(error=APIConnectionError(request=request))
    client = OpenAIAssessmentClient(client=_FakeOpenAI(responses))

    with pytest.raises(TransportError):
        _assess(client)


@pytest.mark.parametrize("output_text", ["", "not json"])
def test_openai_assessment_client_rejects_unreadable_output(output_text: str) -> None:
    responses = _FakeResponses(output_text=output_text)
    client = OpenAIAssessmentClient(client=_FakeOpenAI(responses))

    with pytest.raises(MalformedResponseError):
        _assess(client)


def test_openai_assessment_client_create_disables_retries() -> None:
    client = OpenAIAssessmentClient.create("openai-key", timeout_seconds=5.0)

    assert client.client.max_retries == 0
    asyncio.run(client.close())


def test_openai_assessment_client_close() -> None:
    fake = _FakeOpenAI(_FakeResponses())
    client = OpenAIAssessmentClient(client=fake)

    asyncio.run(client.close())

    assert fake.closed
