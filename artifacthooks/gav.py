"""Maven 2 repository layout: turn a stored item path into artifact coordinates."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from .events import Artifact

CHECKSUM_SUFFIXES = {".sha1": "sha1", ".md5": "md5", ".sha256": "sha256", ".sha512": "sha512"}
SIGNATURE_SUFFIXES = {".asc": "gpg"}

_SNAPSHOT = "SNAPSHOT"
_TIMESTAMPED = re.compile(r"(\d{8}\.\d{6})-(\d+)")


def _strip_suffix(name: str, suffixes: dict[str, str]) -> tuple[str, Optional[str]]:
    for suffix, kind in suffixes.items():
        if name.endswith(suffix):
            return name[: -len(suffix)], kind
    return name, None


def _snapshot_millis(stamp: str) -> int:
    parsed = datetime.strptime(stamp, "%Y%m%d.%H%M%S").replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def _continues_version(rest: str) -> bool:
    """``app-1.0.1.jar`` under ``1.0/`` is a different version, not extension ``1.jar``."""
    if len(rest) < 2 or not rest[1].isdigit():
        return False
    if rest[0] == "-":
        return True
    # a bare numeric extension such as ".7z" has no further dot
    return rest[0] == "." and "." in rest[2:]


def path_to_artifact(path: str) -> Optional[Artifact]:
    """Parse ``group/as/dirs/artifactId/baseVersion/fileName``.

    Returns None for anything that is not an artifact file (metadata,
    directories, names not matching the coordinates).
    """
    segments = [segment for segment in path.strip("/").split("/") if segment]
    if len(segments) < 4:
        return None
    *group_parts, artifact_id, base_version, filename = segments
    if filename.startswith("maven-metadata"):
        return None

    stem, hash_type = _strip_suffix(filename, CHECKSUM_SUFFIXES)
    stem, signature_type = _strip_suffix(stem, SIGNATURE_SUFFIXES)

    prefix = f"{artifact_id}-"
    if not stem.startswith(prefix):
        return None
    tail = stem[len(prefix):]

    snapshot = base_version.endswith(f"-{_SNAPSHOT}")
    build_number: Optional[int] = None
    snapshot_ts: Optional[int] = None
    if tail.startswith(base_version):
        version = base_version
    elif snapshot:
        release = base_version[: -len(_SNAPSHOT)]
        match = _TIMESTAMPED.match(tail, len(release)) if tail.startswith(release) else None
        if match is None:
            return None
        version = release + match.group(0)
        snapshot_ts = _snapshot_millis(match.group(1))
        build_number = int(match.group(2))
    else:
        return None

    rest = tail[len(version):]
    if _continues_version(rest):
        return None
    if rest.startswith("-"):
        classifier, dot, extension = rest[1:].partition(".")
        if not dot:
            return None
    elif rest.startswith("."):
        classifier, extension = "", rest[1:]
    else:
        return None
    if not extension:
        return None

    return Artifact(
        group_id=".".join(group_parts),
        artifact_id=artifact_id,
        version=version,
        base_version=base_version,
        classifier=classifier or None,
        extension=extension,
        name=filename,
        snapshot=snapshot,
        snapshot_build_number=build_number,
        snapshot_timestamp=snapshot_ts,
        hash=hash_type is not None,
        hash_type=hash_type,
        signature=signature_type is not None,
        signature_type=signature_type,
    )
