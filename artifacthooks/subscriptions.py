from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from . import properties
from .errors import ConfigLoadError

logger = logging.getLogger(__name__)

DEFAULT_KEY = "webhooks.default"
INHERITED_KEY = "webhooks.inherited"


def split_urls(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class SubscriptionSnapshot:
    """One complete, immutable view of the subscription file."""

    entries: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    inherited: bool = False
    source: Optional[str] = None
    loaded_at: Optional[float] = None

    @classmethod
    def from_properties(
        cls, values: Mapping[str, str], source: Optional[str] = None
    ) -> "SubscriptionSnapshot":
        entries = {
            key: split_urls(value)
            for key, value in values.items()
            if key != INHERITED_KEY
        }
        inherited = (values.get(INHERITED_KEY) or "").strip().lower() == "true"
        return cls(
            entries=MappingProxyType(entries),
            inherited=inherited,
            source=source,
            loaded_at=time.time(),
        )

    def lookup(self, key: str) -> list[str]:
        return list(self.entries.get(key, ()))


class SubscriptionStore:
    """Holds the current snapshot behind a single reference.

    Readers grab ``snapshot`` once and work on it without locking; writers
    build a complete new snapshot first and then swap the reference.
    """

    def __init__(self, snapshot: SubscriptionSnapshot | None = None) -> None:
        self._snapshot = snapshot or SubscriptionSnapshot()
        self._write_lock = threading.Lock()

    @property
    def snapshot(self) -> SubscriptionSnapshot:
        return self._snapshot

    def lookup(self, key: str) -> list[str]:
        return self._snapshot.lookup(key)

    def is_inheritance_enabled(self) -> bool:
        return self._snapshot.inherited

    def replace(self, snapshot: SubscriptionSnapshot) -> SubscriptionSnapshot:
        with self._write_lock:
            self._snapshot = snapshot
        return snapshot

    def load(self, path: str | Path) -> SubscriptionSnapshot:
        """Parse ``path`` and swap it in. Raises ConfigLoadError on any failure."""
        source = str(Path(path).absolute())
        try:
            values = properties.load(path)
        except (OSError, ValueError) as exc:
            raise ConfigLoadError(source, str(exc) or exc.__class__.__name__) from exc
        return self.replace(SubscriptionSnapshot.from_properties(values, source))

    def load_quietly(self, path: str | Path) -> bool:
        try:
            snapshot = self.load(path)
        except ConfigLoadError:
            logger.exception("Failed to configure webhooks from %s", Path(path).absolute())
            return False
        logger.info(
            "Webhooks successfully configured from %s (%d keys, inherited=%s)",
            snapshot.source,
            len(snapshot.entries),
            snapshot.inherited,
        )
        return True
