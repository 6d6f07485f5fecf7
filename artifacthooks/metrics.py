from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQS = Counter(
    "artifacthooks_requests_total",
    "Requests",
    ["method", "path", "status"],
)
LAT = Histogram(
    "artifacthooks_latency_seconds",
    "Latency",
    ["method", "path"],
)
DELIVERIES = Counter(
    "artifacthooks_deliveries_total",
    "Webhook POST attempts by outcome",
    ["outcome"],
)
CONFIG_RELOADS = Counter(
    "artifacthooks_config_reloads_total",
    "Subscription file reloads by result",
    ["result"],
)


def router() -> APIRouter:
    r = APIRouter()

    @r.get("/metrics", include_in_schema=False)
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return r
