from __future__ import annotations

import threading
import time
from pathlib import Path

import httpx
import pytest

from artifacthooks import properties
from artifacthooks.config import settings
from artifacthooks.subscriptions import SubscriptionSnapshot, SubscriptionStore

SAMPLE_CONFIG = """\
# webhooks for the releases repository
releases.com.example.app = http://hooks.test/releases/com.example/app/one/,\\
    http://hooks.test/releases/com.example/app/two/
releases.com.example = http://hooks.test/releases/com.example/
releases = http://hooks.test/releases/
webhooks.default = http://hooks.test/
webhooks.inherited = {inherited}
"""


class Recorder:
    """Fake webhook receiver plugged into httpx through a MockTransport."""

    def __init__(self) -> None:
        self.received: dict[str, bytes] = {}
        self.attempted: list[str] = []
        self.statuses: dict[str, int] = {}
        self.refused: set[str] = set()
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        with self._lock:
            if url not in self.refused:
                self.received[url] = request.content
            self.attempted.append(url)
        if url in self.refused:
            raise httpx.ConnectError("connection refused", request=request)
        status = self.statuses.get(url, 200)
        return httpx.Response(status, text="Thanks" if status < 400 else "Oops")

    def factory(self):
        return lambda: httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            if len(self.attempted) >= count:
                return True
            time.sleep(0.01)
        return len(self.attempted) >= count


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def write_config(tmp_path: Path):
    def _write(text: str, name: str = "webhooks.properties") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def api_settings(tmp_path: Path):
    previous = (settings.API_KEYS, settings.WEBHOOKS_CONFIG_PATH)
    settings.API_KEYS = "k1"
    settings.WEBHOOKS_CONFIG_PATH = str(tmp_path / "webhooks.properties")
    try:
        yield settings
    finally:
        settings.API_KEYS, settings.WEBHOOKS_CONFIG_PATH = previous


@pytest.fixture
def sample_config():
    def _render(inherited: bool = True) -> str:
        return SAMPLE_CONFIG.format(inherited=str(inherited).lower())

    return _render


@pytest.fixture
def make_store(sample_config):
    def _make(inherited: bool = True, text: str | None = None) -> SubscriptionStore:
        values = properties.loads(text if text is not None else sample_config(inherited))
        return SubscriptionStore(SubscriptionSnapshot.from_properties(values))

    return _make
