import pytest

from artifacthooks.events import Repository
from artifacthooks.inspector import ArtifactStoredInspector, StoredItem


class _Notifier:
    def __init__(self) -> None:
        self.events = []

    def notify(self, event) -> int:
        self.events.append(event)
        return 3


def _item(path: str, **extra) -> StoredItem:
    return StoredItem(repository=Repository(id="releases", name="Releases"), path=path, **extra)


def test_stored_artifact_is_notified():
    notifier = _Notifier()
    inspector = ArtifactStoredInspector(notifier)

    count = inspector.inspect(_item("com/example/app/1.0/app-1.0.jar", user="robert", timestamp=1234))

    assert count == 3
    (event,) = notifier.events
    assert event.user == "robert"
    assert event.timestamp == 1234
    assert event.repository.id == "releases"
    assert event.artifact.artifact_id == "app"


def test_missing_user_and_timestamp_are_filled_in():
    event = ArtifactStoredInspector(_Notifier()).to_event(_item("com/example/app/1.0/app-1.0.pom"))

    assert event is not None
    assert event.user == "unknown"
    assert event.timestamp > 0


@pytest.mark.parametrize(
    "path",
    [
        "com/example/app/1.0/app-1.0.jar.sha1",
        "com/example/app/1.0/app-1.0.jar.md5",
        "com/example/app/1.0/app-1.0.jar.asc",
        "com/example/app/1.0/app-1.0.pom.asc.sha1",
        "com/example/app/maven-metadata.xml",
        ".index/nexus-maven-repository-index.gz",
    ],
)
def test_side_artifacts_and_non_artifacts_are_ignored(path):
    notifier = _Notifier()

    assert ArtifactStoredInspector(notifier).inspect(_item(path)) is None
    assert notifier.events == []


def test_artifact_without_subscribers_is_still_accepted():
    class _Silent(_Notifier):
        def notify(self, event) -> int:
            super().notify(event)
            return 0

    notifier = _Silent()

    assert ArtifactStoredInspector(notifier).inspect(_item("com/example/app/1.0/app-1.0.jar")) == 0
    assert len(notifier.events) == 1
