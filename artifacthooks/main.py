from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel

from .auth import require_auth
from .config import reload_settings, settings
from .dispatcher import Notifier, http_client_factory
from .errors import ConfigLoadError, SerializationError
from .events import fake_event
from .inspector import ArtifactStoredInspector, StoredItem
from .logging_setup import RequestLogMiddleware, init_logging
from .metrics import CONFIG_RELOADS, LAT, REQS, router as metrics_router
from .resolver import UrlResolver
from .subscriptions import SubscriptionStore

logger = logging.getLogger(__name__)


class Health(BaseModel):
    status: str
    time: str


class IngestResult(BaseModel):
    accepted: bool
    deliveries: int


@asynccontextmanager
async def lifespan(app: FastAPI):
    reload_settings()
    store = SubscriptionStore()
    loaded = store.load_quietly(settings.WEBHOOKS_CONFIG_PATH)
    CONFIG_RELOADS.labels("success" if loaded else "failure").inc()

    resolver = UrlResolver(store)
    notifier = Notifier(
        resolver,
        http_client_factory(settings),
        concurrency=settings.DELIVERY_CONCURRENCY,
    )
    notifier.start()

    app.state.store = store
    app.state.resolver = resolver
    app.state.notifier = notifier
    app.state.inspector = ArtifactStoredInspector(notifier)
    try:
        yield
    finally:
        await notifier.aclose(settings.SHUTDOWN_DRAIN_SECONDS)


init_logging(settings.LOG_LEVEL)

app = FastAPI(title="artifacthooks", version="0.1.0", lifespan=lifespan)
app.add_middleware(RequestLogMiddleware)
app.include_router(metrics_router())

origins = [o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def _metrics(request: Request, call_next):
    method = request.method
    path = request.url.path
    start = time.time()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        duration = time.time() - start
        REQS.labels(method, path, str(status_code)).inc()
        LAT.labels(method, path).observe(duration)


@app.get("/health", response_model=Health)
def health():
    return Health(status="ok", time=datetime.utcnow().isoformat())


@app.api_route(
    "/webhooks/configuration/reload",
    methods=["GET", "POST"],
    response_class=PlainTextResponse,
)
def reload_configuration(request: Request, _=Depends(require_auth)):
    store: SubscriptionStore = request.app.state.store
    try:
        snapshot = store.load(settings.WEBHOOKS_CONFIG_PATH)
    except ConfigLoadError as exc:
        CONFIG_RELOADS.labels("failure").inc()
        logger.error("Failed to reload the webhook configuration from %s: %s", exc.source, exc.reason)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to reload the webhook configuration: {exc.reason}",
        ) from exc
    CONFIG_RELOADS.labels("success").inc()
    logger.info("Webhook configuration reloaded from %s", snapshot.source)
    return f"Webhook configuration has been successfully reloaded from {snapshot.source}"


@app.api_route("/webhooks/fakeEvent", methods=["GET", "POST"])
async def send_fake_event(
    request: Request,
    r: str = Query(..., description="repository id"),
    g: str = Query(..., description="groupId"),
    a: str = Query(..., description="artifactId"),
    v: str = Query(..., description="version"),
    c: Optional[str] = Query(None, description="classifier (sources, javadoc, ...)"),
    e: str = Query(..., description="extension (pom, jar, war, ...)"),
    _=Depends(require_auth),
):
    """Act as if the artifact had just been uploaded; returns the JSON sent."""
    event = fake_event(r, g, a, v, c, e)
    try:
        body = event.to_json()
    except SerializationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    request.app.state.notifier.notify(event)
    return Response(content=body, media_type="application/json")


@app.post("/events/artifact-stored", response_model=IngestResult, status_code=202)
async def artifact_stored(item: StoredItem, request: Request, _=Depends(require_auth)):
    inspector: ArtifactStoredInspector = request.app.state.inspector
    deliveries = inspector.inspect(item)
    if deliveries is None:
        return IngestResult(accepted=False, deliveries=0)
    return IngestResult(accepted=True, deliveries=deliveries)
