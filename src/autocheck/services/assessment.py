"""Cleanliness assessment service using a multimodal LLM."""

import base64
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from autocheck.domain.rooms import CleaningAnalysis

ASSESSMENT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "roomName": {
            "type": "string",
            "description": "The type of room identified (e.g. kitchen, bathroom).",
        },
        "score": {
            "type": "integer",
            "minimum": 0,
            "maximum": 100,
            "description": "The cleanliness score between 0 and 100.",
        },
        "summary": {
            "type": "string",
            "description": "A brief summary of the cleanliness state.",
        },
        "issues": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Specific cleanliness issues identified in the image.",
        },
        "tips": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Actionable steps to fix the issues and reach 100.",
        },
    },
    "required": ["roomName", "score", "summary", "issues", "tips"],
    "additionalProperties": False,
}


class AssessmentError(Exception):
    """Base error for a failed room assessment."""


class TransportError(AssessmentError):
    """The request could not be sent or no response was received."""


class MalformedResponseError(AssessmentError):
    """The response did not match the expected assessment shape."""


class AssessmentClient(Protocol):
    """Interface for the external multimodal inference backend."""

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
        """Return the raw structured assessment payload."""


@dataclass
class AssessmentService:
    """Builds the assessment request and validates the backend's answer."""

    client: AssessmentClient
    model: str
    reasoning_effort: str | None
    store: bool
    language: str = "Spanish"

    async def analyze(
        self, image_bytes: bytes, mime_type: str | None = None
    ) -> CleaningAnalysis:
        """Assess one room photo.

        Raises ``TransportError`` when the backend cannot be reached and
        ``MalformedResponseError`` when its answer is not a valid assessment.
        No retries are attempted here.
        """
        data_url = _to_data_url(image_bytes, mime_type)
        raw = await self.client.assess(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            image_data_url=data_url,
            schema=ASSESSMENT_SCHEMA,
            prompt=build_prompt(self.language),
        )
        return parse_assessment(raw)


def build_prompt(language: str) -> str:
    """Return the fixed inspection instruction sent with every image."""
    return (
        "You are an expert professional cleaning inspector for luxury "
        "apartments. Analyze the uploaded image.\n"
        "Your task is to:\n"
        "1. Identify which room it is (e.g. kitchen, bathroom, bedroom, "
        "living room, balcony).\n"
        "2. Assign a cleanliness score from 0 to 100.\n"
        "   - 100 means absolutely impeccable, ready for a VIP guest.\n"
        "   - Below 50 means significant visible dirt or clutter.\n"
        "   - 90-99 means very clean but with minor details missed.\n"
        "3. Give a brief summary of the condition.\n"
        "4. List the specific issues found (e.g. dust on the baseboard, "
        "stain on the mirror).\n"
        "5. Give actionable, specific tips to reach a score of 100.\n"
        f"IMPORTANT: answer in {language}."
    )


def parse_assessment(raw: object) -> CleaningAnalysis:
    """Validate a raw backend payload into a ``CleaningAnalysis``."""
    if not isinstance(raw, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(raw).__name__}"
        )
    try:
        return CleaningAnalysis.model_validate(raw)
    except ValidationError as exc:
        raise MalformedResponseError(str(exc)) from exc


def _to_data_url(image_bytes: bytes, mime_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL for image input."""
    if not mime_type or not mime_type.startswith("image/"):
        mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"
