"""Event payload sent to webhook subscribers when an artifact is stored.

The JSON form is what subscribers receive:

    {"timestamp": 1318241410000, "user": "robert",
     "repository": {"id": "releases", "name": "Releases"},
     "artifact": {"groupId": "com.example", "artifactId": "app", ...}}
"""

from __future__ import annotations

import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import SerializationError

UNKNOWN_USER = "unknown"
FAKE_USER = "fake"
# build number reported for synthetic snapshot events
FAKE_SNAPSHOT_BUILD_NUMBER = 42


def current_millis() -> int:
    return int(time.time() * 1000)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Repository(_Frozen):
    id: str
    name: Optional[str] = None


class Artifact(_Frozen):
    group_id: str = Field(alias="groupId")
    artifact_id: str = Field(alias="artifactId")
    version: str
    base_version: Optional[str] = Field(default=None, alias="baseVersion")
    classifier: Optional[str] = None
    extension: Optional[str] = None
    name: Optional[str] = None
    snapshot: bool = False
    snapshot_build_number: Optional[int] = Field(default=None, alias="snapshotBuildNumber")
    snapshot_timestamp: Optional[int] = Field(default=None, alias="snapshotTimeStamp")
    hash: bool = False
    hash_type: Optional[str] = Field(default=None, alias="hashType")
    signature: bool = False
    signature_type: Optional[str] = Field(default=None, alias="signatureType")

    @property
    def is_side_artifact(self) -> bool:
        """Checksums and signatures ride along with a real artifact."""
        return self.hash or self.signature


class ArtifactStoredEvent(_Frozen):
    timestamp: int
    user: str = UNKNOWN_USER
    repository: Repository
    artifact: Artifact

    def to_json(self) -> str:
        try:
            return self.model_dump_json(by_alias=True, exclude_none=True)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Failed to prepare JSON for event {self!r}") from exc


def fake_event(
    repository: str,
    group_id: str,
    artifact_id: str,
    version: str,
    classifier: Optional[str] = None,
    extension: str = "jar",
    timestamp: Optional[int] = None,
) -> ArtifactStoredEvent:
    """Build a synthetic event shaped exactly like a real upload."""
    now = timestamp if timestamp is not None else current_millis()
    classifier = classifier or None
    snapshot = "-SNAPSHOT" in version

    name = f"{artifact_id}-{version}"
    if classifier:
        name = f"{name}-{classifier}"
    name = f"{name}.{extension}"

    artifact = Artifact(
        group_id=group_id,
        artifact_id=artifact_id,
        version=version,
        base_version=version,
        classifier=classifier,
        extension=extension,
        name=name,
        snapshot=snapshot,
        snapshot_build_number=FAKE_SNAPSHOT_BUILD_NUMBER if snapshot else None,
        snapshot_timestamp=now if snapshot else None,
    )
    return ArtifactStoredEvent(
        timestamp=now,
        user=FAKE_USER,
        repository=Repository(id=repository, name=repository),
        artifact=artifact,
    )
