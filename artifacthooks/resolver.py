from __future__ import annotations

from typing import Optional

from .subscriptions import DEFAULT_KEY, SubscriptionStore


class UrlResolver:
    def __init__(self, store: SubscriptionStore) -> None:
        self._store = store

    def resolve(
        self,
        repository_id: Optional[str],
        group_id: Optional[str] = None,
        artifact_id: Optional[str] = None,
    ) -> set[str]:
        """Return the webhook URLs to notify for the given coordinates.

        Keys are tried from the most specific (``repo.group.artifact``) to the
        default. A less specific level is merged when nothing matched yet, or
        on every level when ``webhooks.inherited`` is true. Missing levels
        contribute nothing; the result may be empty but is never None.
        """
        snapshot = self._store.snapshot
        keys: list[str] = []
        if repository_id:
            if group_id:
                if artifact_id:
                    keys.append(f"{repository_id}.{group_id}.{artifact_id}")
                keys.append(f"{repository_id}.{group_id}")
            keys.append(repository_id)
        keys.append(DEFAULT_KEY)

        urls: set[str] = set()
        for key in keys:
            if urls and not snapshot.inherited:
                break
            urls.update(snapshot.lookup(key))
        return urls
