"""Session ownership of room registries."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from autocheck.services.assessment import AssessmentService
from autocheck.services.previews import PreviewStore
from autocheck.services.registry import RoomRegistry

logger = logging.getLogger(__name__)


@dataclass
class SessionService:
    """Creates one registry per session and tears it down on end."""

    assessment_service: AssessmentService
    preview_store: PreviewStore
    debug_errors: bool = False
    id_factory: Callable[[], UUID] = uuid4
    registries: dict[UUID, RoomRegistry] = field(default_factory=dict)

    def start_session(self) -> UUID:
        """Create an empty registry and return its session id."""
        session_id = self.id_factory()
        while session_id in self.registries:
            session_id = self.id_factory()
        self.registries[session_id] = RoomRegistry(
            self.assessment_service,
            self.preview_store,
            debug_errors=self.debug_errors,
        )
        logger.info("Session started", extra={"session_id": str(session_id)})
        return session_id

    def get_registry(self, session_id: UUID) -> RoomRegistry | None:
        """Return the registry for a session, if it exists."""
        return self.registries.get(session_id)

    async def end_session(self, session_id: UUID) -> bool:
        """Close and forget a session's registry."""
        registry = self.registries.pop(session_id, None)
        if registry is None:
            return False
        await registry.close()
        logger.info("Session ended", extra={"session_id": str(session_id)})
        return True

    async def close_all(self) -> None:
        """End every open session."""
        for session_id in list(self.registries):
            await self.end_session(session_id)
