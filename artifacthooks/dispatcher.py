"""Fan-out of stored-artifact events to the subscribed webhook URLs.

Each event is rendered to JSON once and POSTed to every resolved URL from its
own task. At most ``concurrency`` deliveries are in flight at a time, and a
failing URL never affects the others. Delivery is attempted exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import httpx

from .config import Settings
from .errors import DeliveryError, SerializationError
from .events import ArtifactStoredEvent
from .metrics import DELIVERIES
from .resolver import UrlResolver

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}

ClientFactory = Callable[[], httpx.AsyncClient]


def proxy_for(settings: Settings) -> Optional[httpx.Proxy]:
    if not settings.PROXY_ENABLED or not settings.PROXY_HOST:
        return None
    host = settings.PROXY_HOST.strip()
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    url = f"http://{host}:{settings.PROXY_PORT}"
    if settings.PROXY_USERNAME:
        return httpx.Proxy(url, auth=(settings.PROXY_USERNAME, settings.PROXY_PASSWORD or ""))
    return httpx.Proxy(url)


def http_client_factory(settings: Settings) -> ClientFactory:
    """Return a factory building one fresh client per delivery.

    Certificates are only checked when VERIFY_TLS is set; subscriber
    endpoints are commonly internal hosts with self-signed certificates.
    Environment proxy variables are ignored in favour of PROXY_*.
    """
    proxy = proxy_for(settings)
    timeout = httpx.Timeout(settings.DELIVERY_TIMEOUT_SECONDS)
    headers = {"User-Agent": settings.USER_AGENT}
    verify = settings.VERIFY_TLS

    def build() -> httpx.AsyncClient:
        return httpx.AsyncClient(
            verify=verify,
            proxy=proxy,
            timeout=timeout,
            headers=headers,
            follow_redirects=False,
            trust_env=False,
        )

    return build


def _current_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Notifier:
    def __init__(
        self,
        resolver: UrlResolver,
        client_factory: ClientFactory,
        concurrency: int = 3,
    ) -> None:
        self._resolver = resolver
        self._client_factory = client_factory
        self._concurrency = max(1, int(concurrency))
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._sem: Optional[asyncio.Semaphore] = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._loop is not None and not self._loop.is_closed()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def start(self) -> None:
        """Bind to the running event loop; deliveries are scheduled there."""
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._sem = asyncio.Semaphore(self._concurrency)

    def notify(self, event: ArtifactStoredEvent) -> int:
        """Schedule delivery of ``event`` and return the number of target URLs.

        Never blocks on the network and never raises: serialization failures
        and per-URL delivery failures are logged. Safe to call from the
        notifier's event loop or from any other thread.
        """
        urls = self._resolver.resolve(
            event.repository.id,
            event.artifact.group_id,
            event.artifact.artifact_id,
        )
        if not urls:
            logger.debug("No webhook registered for %s", event.repository.id)
            return 0

        try:
            body = event.to_json().encode("utf-8")
        except SerializationError:
            logger.exception("Failed to prepare JSON for event %r", event)
            return 0

        loop = self._loop
        if loop is None or loop.is_closed():
            logger.error("Notifier is not running, dropping event %r", event)
            return 0

        logger.debug("Sending webhook JSON notification (%s) to %s", body.decode("utf-8"), sorted(urls))
        on_loop = _current_loop() is loop
        for url in urls:
            if on_loop:
                self._spawn(url, body)
                continue
            try:
                loop.call_soon_threadsafe(self._spawn, url, body)
            except RuntimeError:
                logger.error("Event loop closed, dropping webhook delivery to %s", url)
        return len(urls)

    def _spawn(self, url: str, body: bytes) -> None:
        loop, sem = self._loop, self._sem
        if loop is None or sem is None or loop.is_closed():
            logger.error("Notifier is not running, dropping webhook delivery to %s", url)
            return
        task = loop.create_task(self._run(sem, url, body))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, sem: asyncio.Semaphore, url: str, body: bytes) -> None:
        async with sem:
            try:
                await self.deliver(url, body)
            except DeliveryError as exc:
                DELIVERIES.labels("failed").inc()
                if exc.__cause__ is not None:
                    logger.warning("%s", exc, exc_info=exc.__cause__)
                else:
                    logger.warning("%s", exc)
            except Exception:  # noqa: BLE001
                DELIVERIES.labels("failed").inc()
                logger.exception("Unexpected error while notifying %s", url)
            else:
                DELIVERIES.labels("delivered").inc()

    async def deliver(self, url: str, body: bytes) -> int:
        """POST ``body`` to ``url`` once. Raises DeliveryError on failure.

        The client, its connections and the response body are released on
        every path, including transport errors.
        """
        logger.debug("Sending webhook HTTP POST request to %s", url)
        try:
            async with self._client_factory() as client:
                response = await client.post(url, content=body, headers=JSON_HEADERS)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DeliveryError(url, reason=str(exc) or exc.__class__.__name__) from exc

        if 400 <= response.status_code < 600:
            raise DeliveryError(url, status=response.status_code, reason=response.reason_phrase)
        logger.debug("Response from %s is: %s %s", url, response.status_code, response.reason_phrase)
        return response.status_code

    async def drain(self, timeout: Optional[float] = None) -> int:
        """Wait for scheduled deliveries; return how many are still pending."""
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._tasks:
            remaining = None if deadline is None else max(0.0, deadline - loop.time())
            _, pending = await asyncio.wait(set(self._tasks), timeout=remaining)
            if pending and deadline is not None and loop.time() >= deadline:
                return len(pending)
        return 0

    async def aclose(self, timeout: float = 10.0) -> None:
        pending = await self.drain(timeout)
        if pending:
            logger.warning(
                "Abandoning %d webhook deliveries still in flight after %.1fs",
                pending,
                timeout,
            )
            tasks = list(self._tasks)
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        self._loop = None
        self._sem = None
