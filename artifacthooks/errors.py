"""Error kinds raised while loading subscriptions and delivering events."""

from __future__ import annotations

from typing import Optional


class ArtifactHooksError(Exception):
    """Base exception for the webhook notifier."""


class ConfigLoadError(ArtifactHooksError):
    """The subscription source is unreadable or malformed.

    The previously loaded snapshot stays in place when this is raised.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class SerializationError(ArtifactHooksError):
    """An event could not be rendered to its JSON wire form."""


class DeliveryError(ArtifactHooksError):
    """A single webhook POST failed (transport error or 4xx/5xx status)."""

    def __init__(
        self,
        url: str,
        status: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        self.url = url
        self.status = status
        self.reason = reason
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.status is not None:
            line = f"{self.status} {self.reason}" if self.reason else str(self.status)
            return f"Got a bad HTTP response '{line}' for {self.url}"
        return f"Failed to POST request to {self.url}: {self.reason}"
