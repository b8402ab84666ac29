"""Tests for session ownership of registries."""

import asyncio
from uuid import uuid4

from autocheck.services.sessions import SessionService
from tests.conftest import (
    ControlledAssessmentClient,
    RecordingPreviewStore,
    make_service,
    room_image,
    settle,
)


def test_each_session_gets_its_own_registry() -> None:
    service = SessionService(
        assessment_service=make_service(ControlledAssessmentClient()),
        preview_store=RecordingPreviewStore(),
    )

    first = service.start_session()
    second = service.start_session()

    assert first != second
    assert service.get_registry(first) is not service.get_registry(second)
    assert service.get_registry(uuid4()) is None


def test_end_session_releases_previews() -> None:
    async def scenario() -> None:
        previews = RecordingPreviewStore()
        service = SessionService(
            assessment_service=make_service(ControlledAssessmentClient()),
            preview_store=previews,
        )
        session_id = service.start_session()
        registry = service.get_registry(session_id)
        registry.add_many([room_image(), room_image()])
        await settle()

        assert await service.end_session(session_id)

        assert service.get_registry(session_id) is None
        assert sorted(previews.released) == sorted(previews.created)
        assert registry.in_flight == 0
        assert await service.end_session(session_id) is False

    asyncio.run(scenario())


def test_close_all_ends_every_session() -> None:
    async def scenario() -> None:
        service = SessionService(
            assessment_service=make_service(ControlledAssessmentClient()),
            preview_store=RecordingPreviewStore(),
        )
        for _ in range(3):
            service.get_registry(service.start_session()).add(room_image())

        await service.close_all()

        assert service.registries == {}

    asyncio.run(scenario())
