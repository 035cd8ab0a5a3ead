"""
Property Listify location routing API.

HTTP surface over the location router: resolve typed or autosuggested text,
route a directly entered listing URL, list the registry hierarchy and
describe the landing page a target renders. The registry is built from the
configured YAML file at import time and optionally refreshed from the remote
export in the lifespan hook.
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .exceptions import ListifyError, NotFoundError, get_error_response
from .models import (
    ErrorResponse,
    HealthResponse,
    LocationEntityModel,
    PageCompositionResponse,
    RegistryStats,
    RouteDecisionResponse,
)
from .models_location import EntryPoint, LocationType
from .routing.location_router import AutosuggestEntry, LocationRouter
from .routing.route_classifier import coerce_listing_type
from .services.page_composer import compose_page
from .services.registry_loader import build_registry, describe_snapshot, refresh_from_remote
from .utils.logging_security import SecureLogger, log_secure

settings: Settings = get_settings()

logger = logging.getLogger("listify")
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

location_registry = build_registry(settings)
location_router = LocationRouter(location_registry)


def get_location_router() -> LocationRouter:
    """Shared router instance used by every entry point."""
    return location_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    if settings.location_registry_url:
        logger.info("Fetching remote location registry export...")
        await refresh_from_remote(location_registry, settings)
    stats = describe_snapshot(location_registry)
    logger.info(
        "Location routing ready: %d entities from %s (%d excluded, %d ambiguous)",
        stats["entities"],
        stats["source"],
        stats["excluded"],
        stats["ambiguous"],
    )
    yield


app = FastAPI(title="Property Listify location routing API", version="1.0.0", lifespan=lifespan)

NOT_FOUND_RESPONSES = {404: {"model": ErrorResponse}}
BAD_REQUEST_RESPONSES = {400: {"model": ErrorResponse}}

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.exception_handler(ListifyError)
async def listify_error_handler(request: Request, exc: ListifyError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=get_error_response(exc))


@app.middleware("http")
async def secure_logging_middleware(request: Request, call_next):
    """Request tracing with PII redaction of free-text search input."""
    request_id = SecureLogger.generate_request_id()
    request.state.request_id = request_id
    start_time = time.perf_counter()

    log_secure("info", "Request received", SecureLogger.format_request_log(request, request_id), request_id)

    try:
        response = await call_next(request)
    except Exception as e:
        log_secure("error", "Request failed", SecureLogger.format_error_log(request_id, e), request_id)
        raise

    duration_ms = (time.perf_counter() - start_time) * 1000
    log_secure(
        "info",
        "Request completed",
        SecureLogger.format_response_log(request_id, response.status_code, duration_ms),
        request_id,
    )
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/api/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.environment or "development",
        registry=RegistryStats(**describe_snapshot(location_registry)),
    )


@app.get(
    "/api/locations/resolve",
    response_model=RouteDecisionResponse,
    responses=BAD_REQUEST_RESPONSES,
)
async def resolve_location(
    q: str = Query(default="", max_length=200),
    listingType: Optional[str] = Query(default=None),
    entry: str = Query(default="enter", pattern="^(enter|autosuggest|api)$"),
) -> RouteDecisionResponse:
    """Route typed text (Enter) or an autosuggest selection."""
    listing_type = coerce_listing_type(listingType or settings.default_listing_type)
    router = get_location_router()
    if entry == EntryPoint.AUTOSUGGEST.value:
        decision = router.select_suggestion(AutosuggestEntry(label=q), listing_type)
    elif entry == EntryPoint.ENTER.value:
        decision = router.submit_text(q, listing_type)
    else:
        decision = router.resolve_and_route(q, listing_type)
    return RouteDecisionResponse.from_decision(decision)


@app.get(
    "/api/locations/route",
    response_model=RouteDecisionResponse,
    responses=BAD_REQUEST_RESPONSES,
)
async def route_url(
    url: str = Query(..., max_length=2048),
    listingType: Optional[str] = Query(default=None),
) -> RouteDecisionResponse:
    """Route a directly entered listing URL."""
    listing_type = coerce_listing_type(listingType) if listingType else None
    decision = get_location_router().route_url(url, listing_type)
    return RouteDecisionResponse.from_decision(decision)


@app.get("/api/locations/provinces", response_model=List[LocationEntityModel])
async def list_provinces() -> List[LocationEntityModel]:
    return [LocationEntityModel.from_entity(e) for e in location_registry.list_provinces()]


@app.get(
    "/api/locations/provinces/{province_slug}/cities",
    response_model=List[LocationEntityModel],
    responses=NOT_FOUND_RESPONSES,
)
async def list_cities(province_slug: str) -> List[LocationEntityModel]:
    snapshot = location_registry.snapshot()
    if snapshot.get(LocationType.PROVINCE, province_slug) is None:
        raise NotFoundError(f"Unknown province '{province_slug}'", details={"province": province_slug})
    return [LocationEntityModel.from_entity(e) for e in snapshot.list_cities(province_slug.lower())]


@app.get(
    "/api/locations/cities/{city_slug}/suburbs",
    response_model=List[LocationEntityModel],
    responses=NOT_FOUND_RESPONSES,
)
async def list_suburbs(city_slug: str) -> List[LocationEntityModel]:
    snapshot = location_registry.snapshot()
    if snapshot.get(LocationType.CITY, city_slug) is None:
        raise NotFoundError(f"Unknown city '{city_slug}'", details={"city": city_slug})
    return [LocationEntityModel.from_entity(e) for e in snapshot.list_suburbs(city_slug.lower())]


@app.get("/api/pages", response_model=PageCompositionResponse)
async def page_for_target(
    target: str = Query(..., max_length=2048),
    resultCount: int = Query(default=0, ge=0),
    page: int = Query(default=1, ge=1),
) -> PageCompositionResponse:
    """Describe the landing page a target URL renders."""
    router = get_location_router()
    snapshot = router.snapshot()
    decision = router.route_url(target)
    composition = compose_page(decision, snapshot, result_count=resultCount, page=page, settings=settings)
    return PageCompositionResponse.from_page(composition, decision)


@app.get("/")
async def root():
    return {"message": "Property Listify location routing API", "docs": "/docs"}
