"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from autocheck.adapters.openai_assessment_client import OpenAIAssessmentClient
from autocheck.config import Settings
from autocheck.services.assessment import AssessmentService
from autocheck.services.previews import InMemoryPreviewStore, PreviewStore
from autocheck.services.sessions import SessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    assessment_service: AssessmentService
    preview_store: PreviewStore
    session_service: SessionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    openai_client = OpenAIAssessmentClient.create(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.assessment_timeout_seconds,
    )
    assessment_service = AssessmentService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort or None,
        store=resolved_settings.openai_store,
        language=resolved_settings.assessment_language,
    )
    preview_store = InMemoryPreviewStore()
    session_service = SessionService(
        assessment_service=assessment_service,
        preview_store=preview_store,
        debug_errors=resolved_settings.debug_errors,
    )

    async def close_resources() -> None:
        await session_service.close_all()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        assessment_service=assessment_service,
        preview_store=preview_store,
        session_service=session_service,
        close_resources=close_resources,
    )
