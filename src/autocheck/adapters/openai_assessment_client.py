"""OpenAI Responses API client for room assessments."""

import json
from dataclasses import dataclass

import httpx
from openai import APIError, AsyncOpenAI

from autocheck.services.assessment import (
    AssessmentClient,
    MalformedResponseError,
    TransportError,
)


@dataclass
class OpenAIAssessmentClient(AssessmentClient):
    """Assessment client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, timeout_seconds: float | None = None
    ) -> "OpenAIAssessmentClient":
        """Create an OpenAI assessment client without SDK-level retries."""
        timeout = httpx.Timeout(timeout_seconds) if timeout_seconds else None
        return cls(
            client=AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        )

    async def assess(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_image", "image_url": image_data_url},
                        {"type": "input_text", "text": prompt},
                    ],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "cleaning_analysis",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        try:
            response = await self.client.responses.create(**request_payload)
        except APIError as exc:
            raise TransportError(f"OpenAI request failed: {exc}") from exc
        output_text = response.output_text
        if not output_text:
            raise MalformedResponseError("OpenAI returned an empty response")
        try:
            return json.loads(output_text)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError("OpenAI returned invalid JSON") from exc

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
