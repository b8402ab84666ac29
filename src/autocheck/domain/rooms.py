"""Domain models for room entries and their assessments."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RoomStatus(str, Enum):
    """Lifecycle status of a single room entry."""

    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


class Phase(str, Enum):
    """Registry-wide phase derived from all entries."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    RESULTS = "results"


class CleaningAnalysis(BaseModel):
    """Structured cleanliness assessment for one room photo."""

    model_config = ConfigDict(frozen=True)

    room_label: str = Field(alias="roomName")
    score: int = Field(ge=0, le=100, strict=True)
    summary: str
    issues: list[str]
    tips: list[str]

    @property
    def perfect(self) -> bool:
        """Return true when the room scored the maximum."""
        return self.score == 100


@dataclass(frozen=True)
class RoomImage:
    """Raw uploaded image bytes with their declared metadata."""

    data: bytes
    mime_type: str
    filename: str | None = None


@dataclass(frozen=True)
class RoomEntry:
    """One submitted photograph and its assessment state."""

    id: UUID
    image: RoomImage
    preview: str
    status: RoomStatus
    generation: int = 0
    result: CleaningAnalysis | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class GlobalSummary:
    """Aggregate score and phase across all entries."""

    score: int
    phase: Phase
