"""Preview handle storage for uploaded room images."""

import logging
import secrets
from dataclasses import dataclass
from typing import Protocol

from autocheck.domain.rooms import RoomImage

logger = logging.getLogger(__name__)


class PreviewStore(Protocol):
    """Interface for renderable preview handles."""

    def create(self, image: RoomImage) -> str:
        """Register an image and return its preview handle."""

    def get(self, handle: str) -> RoomImage | None:
        """Return the image behind a live handle, if present."""

    def release(self, handle: str) -> None:
        """Release a handle so its image can be dropped."""


@dataclass
class InMemoryPreviewStore(PreviewStore):
    """In-memory preview store keyed by random tokens."""

    _images: dict[str, RoomImage]

    def __init__(self) -> None:
        self._images = {}

    def create(self, image: RoomImage) -> str:
        """Store the image under a fresh handle."""
        handle = secrets.token_hex(16)
        self._images[handle] = image
        return handle

    def get(self, handle: str) -> RoomImage | None:
        """Return the stored image for a handle."""
        return self._images.get(handle)

    def release(self, handle: str) -> None:
        """Drop the image for a handle."""
        if self._images.pop(handle, None) is None:
            logger.warning("Released unknown preview handle", extra={"handle": handle})

    def __len__(self) -> int:
        return len(self._images)
