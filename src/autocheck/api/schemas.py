"""Pydantic models for the HTTP API responses."""

from uuid import UUID

from pydantic import BaseModel

from autocheck.domain.rooms import Phase, RoomStatus


class SessionCreated(BaseModel):
    """Response for a newly started session."""

    session_id: UUID


class RoomsAdded(BaseModel):
    """Ids of rooms created by a bulk upload, in submission order."""

    room_ids: list[UUID]


class AssessmentView(BaseModel):
    """Assessment result for one room."""

    room_label: str
    score: int
    band: str
    perfect: bool
    summary: str
    issues: list[str]
    tips: list[str]


class RoomView(BaseModel):
    """Current state of one room entry."""

    id: UUID
    status: RoomStatus
    preview_url: str
    filename: str | None = None
    result: AssessmentView | None = None
    error_message: str | None = None


class GlobalView(BaseModel):
    """Aggregate score and phase across all rooms."""

    score: int
    phase: Phase
    band: str
    headline: str
    certified: bool


class SessionView(BaseModel):
    """Read-only view of a whole session."""

    session_id: UUID
    rooms: list[RoomView]
    summary: GlobalView
