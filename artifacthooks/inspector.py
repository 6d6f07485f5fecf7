from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field

from .dispatcher import Notifier
from .events import UNKNOWN_USER, ArtifactStoredEvent, Repository, current_millis
from .gav import path_to_artifact

logger = logging.getLogger(__name__)


class StoredItem(BaseModel):
    """What the repository manager reports when it stores an item."""

    repository: Repository
    path: str = Field(..., description="item path in Maven 2 layout")
    user: Optional[str] = None
    timestamp: Optional[int] = Field(default=None, description="epoch milliseconds")


class ArtifactStoredInspector:
    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    def to_event(self, item: StoredItem) -> Optional[ArtifactStoredEvent]:
        """Build the event for ``item``, or None when nothing should be sent.

        Checksums, signatures and non-artifact files (metadata, indexes) are
        not artifacts of their own.
        """
        artifact = path_to_artifact(item.path)
        if artifact is None:
            logger.debug("Ignoring non-artifact item %s in %s", item.path, item.repository.id)
            return None
        if artifact.is_side_artifact:
            logger.debug("Ignoring checksum/signature %s in %s", item.path, item.repository.id)
            return None
        return ArtifactStoredEvent(
            timestamp=item.timestamp if item.timestamp is not None else current_millis(),
            user=item.user or UNKNOWN_USER,
            repository=item.repository,
            artifact=artifact,
        )

    def inspect(self, item: StoredItem) -> Optional[int]:
        """Notify subscribers about ``item``.

        Returns the number of target URLs, or None when ``item`` is not an
        artifact worth announcing.
        """
        event = self.to_event(item)
        if event is None:
            return None
        return self._notifier.notify(event)
