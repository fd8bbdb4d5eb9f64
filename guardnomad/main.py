"""GuardNomad backend — FastAPI application entry point.

Provides /api/aggregate for news, local news, local events, destination safety and scam alert data.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from guardnomad.aggregation.errors import InvalidParamsError, UnknownOperationError
from guardnomad.aggregation.rate_limiter import RateLimiter
from guardnomad.config import settings
from guardnomad.orchestrator.router import build_router
from guardnomad.orchestrator.schemas import AggregateRequest, AggregateResponse

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("guardnomad")


ip_limiter = RateLimiter(settings.rate_limit_per_minute, window_seconds=60)
orchestrator = build_router(settings)


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "GuardNomad backend starting | demo_mode=%s | gnews=%s | exa=%s | anthropic=%s",
        settings.is_demo_mode, settings.has_gnews_key, settings.has_exa_key, settings.has_anthropic_key,
    )
    yield
    orchestrator.clear_caches()
    logger.info("GuardNomad backend shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="GuardNomad API",
    description="Travel news, local events and destination safety aggregation API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["POST", "OPTIONS", "GET"],
    allow_headers=["Content-Type"],
)


def _client_ip(request: Request) -> str:
    client_ip = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if not client_ip:
        client_ip = request.client.host if request.client else "unknown"
    return client_ip


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/health")
async def health():
    return {
        "status": "ok",
        "demo_mode": settings.is_demo_mode,
        "has_anthropic": settings.has_anthropic_key,
        "has_gnews": settings.has_gnews_key,
        "has_exa": settings.has_exa_key,
    }


@app.post("/api/aggregate")
async def aggregate(request: Request):
    """Run one aggregation operation and return canonical records."""
    client_ip = _client_ip(request)
    if not ip_limiter.try_acquire(client_ip):
        return JSONResponse(
            status_code=429,
            content={"error": "Too many requests. Please wait a minute and try again."},
        )

    try:
        body = await request.json()
        req = AggregateRequest.model_validate(body)
    except (ValueError, ValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request format."})

    start = time.monotonic()
    try:
        records = await orchestrator.route(req.operation, req.params)
    except (UnknownOperationError, InvalidParamsError) as e:
        return JSONResponse(status_code=400, content={"error": e.message, "code": e.code, **e.details})
    except Exception as e:
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.error("Aggregate failed | op=%s | %dms | %s", req.operation, elapsed_ms, str(e)[:300])
        return JSONResponse(status_code=500, content={"error": "Aggregation failed. Please try again later."})

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        "Aggregate completed | op=%s | items=%d | %dms | ip=%s",
        req.operation, len(records), elapsed_ms, client_ip,
    )
    response = AggregateResponse(
        operation=req.operation,
        items=[r.model_dump(mode="json") for r in records],
        count=len(records),
    )
    response_data = response.model_dump()
    response_data["_pipeline"] = {"ms": elapsed_ms}
    return JSONResponse(content=response_data)


@app.get("/api/aggregate/stats")
async def aggregate_stats():
    return orchestrator.stats()


@app.post("/api/cache/clear")
async def clear_cache():
    orchestrator.clear_caches()
    return {"status": "cleared"}
