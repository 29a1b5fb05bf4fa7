from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response

from valhalla.client import connect
from valhalla.config import settings
from valhalla.logging_config import configure_logging
from valhalla.metrics import metrics_endpoint
from valhalla.routers import ingest

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure structured logging before anything else
    configure_logging()

    # Startup: the one Valhalla client for this process. Missing
    # configuration raises here and stops startup.
    app.state.valhalla = await connect(settings)
    try:
        yield
    finally:
        await app.state.valhalla.close()


app = FastAPI(title=f"{settings.app_name} API", version="0.1.0", lifespan=lifespan)

app.include_router(ingest.router)

# Prometheus metrics endpoint
app.get("/metrics")(metrics_endpoint)


@app.get("/health")
async def health_check(request: Request, response: Response):
    """Readiness probe: 200 when the store answers ``SELECT NOW()``, else 503."""
    checks = {}
    overall_healthy = True

    try:
        outcome = await request.app.state.valhalla.now()
        if outcome.is_ok():
            rows = outcome.value.rows
            checks["database"] = {
                "status": "healthy",
                "now": rows[0]["now"] if rows else None,
            }
        else:
            checks["database"] = {"status": "unhealthy", "error": outcome.error}
            overall_healthy = False
    except AttributeError:
        checks["database"] = {
            "status": "unhealthy",
            "error": "Client not initialized",
        }
        overall_healthy = False

    if not overall_healthy:
        log.warning("health_check_failed", checks=checks)
    response.status_code = 200 if overall_healthy else 503
    return {"status": "healthy" if overall_healthy else "unhealthy", "checks": checks}
