"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from autocheck.config import Settings
from autocheck.containers import AppContainer
from autocheck.domain.rooms import RoomImage
from autocheck.services.assessment import AssessmentClient, AssessmentService
from autocheck.services.previews import PreviewStore
from autocheck.services.sessions import SessionService


def assessment_payload(
    score: int = 92, room_name: str = "Kitchen"
) -> dict[str, object]:
    """Return a valid raw assessment payload."""
    return {
        "roomName": room_name,
        "score": score,
        "summary": "Mostly clean with a few smudges.",
        "issues": ["Fingerprints on the fridge door"],
        "tips": ["Wipe the fridge door with a microfiber cloth"],
    }


def room_image(data: bytes = b"\xff\xd8\xffroom", name: str = "room.jpg") -> RoomImage:
    """Return a small JPEG-looking upload."""
    return RoomImage(data=data, mime_type="image/jpeg", filename=name)


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@dataclass
class FakeAssessmentClient(AssessmentClient):
    """Fake assessment client returning a fixed payload or raising."""

    payload: dict[str, object] = field(default_factory=assessment_payload)
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

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
        self.calls.append(
            {"model": model, "image_data_url": image_data_url, "prompt": prompt}
        )
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class PendingCall:
    """One assessment call waiting for the test to resolve it."""

    image_data_url: str
    future: "asyncio.Future[dict[str, object]]"

    def resolve(self, payload: dict[str, object]) -> None:
        self.future.set_result(payload)

    def fail(self, exc: Exception) -> None:
        self.future.set_exception(exc)


@dataclass
class ControlledAssessmentClient(AssessmentClient):
    """Assessment client whose calls complete only when the test says so."""

    calls: list[PendingCall] = field(default_factory=list)

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
        future: asyncio.Future[dict[str, object]] = (
            asyncio.get_running_loop().create_future()
        )
        self.calls.append(PendingCall(image_data_url=image_data_url, future=future))
        return await future


@dataclass
class RecordingPreviewStore(PreviewStore):
    """Preview store that records every create and release."""

    live: dict[str, RoomImage] = field(default_factory=dict)
    created: list[str] = field(default_factory=list)
    released: list[str] = field(default_factory=list)

    def create(self, image: RoomImage) -> str:
        handle = f"preview-{len(self.created)}"
        self.created.append(handle)
        self.live[handle] = image
        return handle

    def get(self, handle: str) -> RoomImage | None:
        return self.live.get(handle)

    def release(self, handle: str) -> None:
        self.released.append(handle)
        self.live.pop(handle, None)


def make_service(client: AssessmentClient) -> AssessmentService:
    """Build an assessment service around a fake client."""
    return AssessmentService(
        client=client,
        model="gpt-5.2",
        reasoning_effort="low",
        store=False,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="openai-key", environment="test")


@pytest.fixture
def assessment_client() -> FakeAssessmentClient:
    return FakeAssessmentClient()


@pytest.fixture
def preview_store() -> RecordingPreviewStore:
    return RecordingPreviewStore()


@pytest.fixture
def container(
    settings: Settings,
    assessment_client: FakeAssessmentClient,
    preview_store: RecordingPreviewStore,
) -> AppContainer:
    assessment_service = make_service(assessment_client)
    session_service = SessionService(
        assessment_service=assessment_service,
        preview_store=preview_store,
    )

    async def close_resources() -> None:
        await session_service.close_all()

    return AppContainer(
        settings=settings,
        assessment_service=assessment_service,
        preview_store=preview_store,
        session_service=session_service,
        close_resources=close_resources,
    )
