"""Room registry tracking the assessment lifecycle of each submitted photo."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from uuid import UUID, uuid4

from autocheck.domain.rooms import (
    CleaningAnalysis,
    GlobalSummary,
    RoomEntry,
    RoomImage,
    RoomStatus,
)
from autocheck.services.assessment import (
    AssessmentError,
    AssessmentService,
    MalformedResponseError,
    TransportError,
)
from autocheck.services.previews import PreviewStore
from autocheck.services.scoring import compute_global

logger = logging.getLogger(__name__)

TRANSPORT_ERROR_MESSAGE = "Could not reach the assessment service."
MALFORMED_ERROR_MESSAGE = "The assessment service returned an unreadable result."
GENERIC_ERROR_MESSAGE = "Error analyzing this image."


class RoomRegistry:
    """Ordered set of room entries for a single session.

    Every mutation happens synchronously on the event loop thread, so no
    locking is needed. Each scheduled assessment carries the entry's
    generation at scheduling time; a completion is applied only when the
    entry still exists and its generation is unchanged. Superseded or
    orphaned requests are left to finish and their outcome is dropped.
    """

    def __init__(
        self,
        assessment_service: AssessmentService,
        preview_store: PreviewStore,
        *,
        id_factory: Callable[[], UUID] = uuid4,
        debug_errors: bool = False,
    ) -> None:
        self.assessment_service = assessment_service
        self.preview_store = preview_store
        self._id_factory = id_factory
        self._debug_errors = debug_errors
        self._entries: dict[UUID, RoomEntry] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._entries

    def entries(self) -> list[RoomEntry]:
        """Return a snapshot of entries in insertion order."""
        return list(self._entries.values())

    def get(self, room_id: UUID) -> RoomEntry | None:
        """Return the current entry for an id, if present."""
        return self._entries.get(room_id)

    def get_preview(self, handle: str) -> RoomImage | None:
        """Return the preview image only if one of these entries owns it."""
        if not any(entry.preview == handle for entry in self._entries.values()):
            return None
        return self.preview_store.get(handle)

    def summary(self) -> GlobalSummary:
        """Return the aggregate score and phase for the current snapshot."""
        return compute_global(self.entries())

    @property
    def in_flight(self) -> int:
        """Number of assessment calls that have not finished yet."""
        return len(self._tasks)

    def add(self, image: RoomImage) -> UUID:
        """Append a new analyzing entry and schedule its assessment.

        Must be called from a running event loop. Returns without waiting
        for the assessment.
        """
        room_id = self._mint_id()
        entry = RoomEntry(
            id=room_id,
            image=image,
            preview=self.preview_store.create(image),
            status=RoomStatus.ANALYZING,
        )
        self._entries[room_id] = entry
        logger.info("Room added", extra={"room_id": str(room_id)})
        self._schedule(entry)
        return room_id

    def add_many(self, images: Iterable[RoomImage]) -> list[UUID]:
        """Add one entry per image, in order."""
        return [self.add(image) for image in images]

    def retake(self, room_id: UUID, image: RoomImage) -> bool:
        """Replace an entry's image in place and reassess it.

        Unknown ids are ignored; the return value tells whether the entry
        existed.
        """
        current = self._entries.get(room_id)
        if current is None:
            return False
        self.preview_store.release(current.preview)
        entry = RoomEntry(
            id=room_id,
            image=image,
            preview=self.preview_store.create(image),
            status=RoomStatus.ANALYZING,
            generation=current.generation + 1,
        )
        self._entries[room_id] = entry
        logger.info(
            "Room retake issued",
            extra={"room_id": str(room_id), "generation": entry.generation},
        )
        self._schedule(entry)
        return True

    def remove(self, room_id: UUID) -> bool:
        """Delete an entry and release its preview."""
        entry = self._entries.pop(room_id, None)
        if entry is None:
            return False
        self.preview_store.release(entry.preview)
        logger.info("Room removed", extra={"room_id": str(room_id)})
        return True

    def reset_all(self) -> None:
        """Remove every entry in a single step."""
        entries, self._entries = self._entries, {}
        for entry in entries.values():
            self.preview_store.release(entry.preview)
        if entries:
            logger.info("Registry reset", extra={"removed": len(entries)})

    async def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait until no assessment is in flight; False if the timeout hit."""
        try:
            async with asyncio.timeout(timeout):
                while self._tasks:
                    await asyncio.wait(set(self._tasks))
        except TimeoutError:
            return False
        return True

    async def close(self) -> None:
        """Tear the registry down, releasing previews and cancelling tasks."""
        self.reset_all()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def on_assessment_complete(
        self, room_id: UUID, generation: int, result: CleaningAnalysis
    ) -> None:
        """Attach a finished assessment unless the call is stale."""
        entry = self._current(room_id, generation)
        if entry is None:
            return
        self._entries[room_id] = replace(
            entry, status=RoomStatus.COMPLETE, result=result, error_message=None
        )
        logger.info(
            "Room assessed",
            extra={"room_id": str(room_id), "score": result.score},
        )

    def on_assessment_failed(
        self, room_id: UUID, generation: int, message: str
    ) -> None:
        """Mark an entry as failed unless the call is stale."""
        entry = self._current(room_id, generation)
        if entry is None:
            return
        self._entries[room_id] = replace(
            entry, status=RoomStatus.ERROR, result=None, error_message=message
        )

    def _current(self, room_id: UUID, generation: int) -> RoomEntry | None:
        entry = self._entries.get(room_id)
        if entry is None:
            logger.info(
                "Discarding assessment for removed room",
                extra={"room_id": str(room_id), "generation": generation},
            )
            return None
        if entry.generation != generation:
            logger.info(
                "Discarding stale assessment",
                extra={
                    "room_id": str(room_id),
                    "generation": generation,
                    "current_generation": entry.generation,
                },
            )
            return None
        return entry

    def _mint_id(self) -> UUID:
        room_id = self._id_factory()
        while room_id in self._entries:
            room_id = self._id_factory()
        return room_id

    def _schedule(self, entry: RoomEntry) -> None:
        task = asyncio.get_running_loop().create_task(
            self._run_assessment(entry.id, entry.generation, entry.image),
            name=f"assess-{entry.id}-{entry.generation}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_assessment(
        self, room_id: UUID, generation: int, image: RoomImage
    ) -> None:
        extra = {"room_id": str(room_id), "generation": generation}
        try:
            result = await self.assessment_service.analyze(image.data, image.mime_type)
        except AssessmentError as exc:
            logger.exception("Room assessment failed", extra=extra)
            self.on_assessment_failed(room_id, generation, self._error_message(exc))
            return
        except Exception as exc:
            logger.exception("Unexpected error during room assessment", extra=extra)
            self.on_assessment_failed(room_id, generation, self._error_message(exc))
            return
        self.on_assessment_complete(room_id, generation, result)

    def _error_message(self, exc: Exception) -> str:
        """Return a user-facing message, with debug detail when enabled."""
        if isinstance(exc, TransportError):
            fallback = TRANSPORT_ERROR_MESSAGE
        elif isinstance(exc, MalformedResponseError):
            fallback = MALFORMED_ERROR_MESSAGE
        else:
            fallback = GENERIC_ERROR_MESSAGE
        if self._debug_errors:
            detail = f"{type(exc).__name__}: {exc}".strip()
            return f"{fallback} (debug: {detail})"
        return fallback
