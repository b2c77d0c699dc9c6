from __future__ import annotations

import dataclasses
from concurrent.futures import ThreadPoolExecutor
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from loguru import logger

from . import schemas
from .core.config import settings
from .db import SessionLocal, get_db, init_db
from .errors import CollaboratorError, ValidationError
from .services.background import BestEffortRunner
from .services.filter_validator import RelayerResolver, validate_and_build_filter
from .services.fill_search import FillSearchService
from .services.network_stats import NetworkStatsService
from .services.pagination import Pagination, resolve_pagination
from .services.relayer_directory import RelayerDirectory
from .services.search_log import SearchTermLog

app = FastAPI(title="Relay Fills API", version="0.1.0", debug=settings.debug)

relayer_lookup_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="relayer-lookup")

background_runner = BestEffortRunner(
    settings.background_workers, thread_name_prefix="search-log"
)


@app.on_event("startup")
def on_startup() -> None:
    """Initialize database connections when the API boots."""

    init_db()


@app.on_event("shutdown")
def on_shutdown() -> None:
    """Let queued search-log writes and relayer lookups finish before the process exits."""

    background_runner.shutdown(wait=True)
    relayer_lookup_executor.shutdown(wait=True)


@app.exception_handler(ValidationError)
def _handle_validation_error(_request: Request, exc: ValidationError) -> JSONResponse:
    payload = schemas.ErrorResponse(error=exc.message, field=exc.field, reason=exc.reason)
    return JSONResponse(status_code=400, content=payload.model_dump())


@app.exception_handler(CollaboratorError)
def _handle_collaborator_error(_request: Request, exc: CollaboratorError) -> JSONResponse:
    logger.error("Request failed because {} is unavailable: {}", exc.collaborator, exc.detail)
    payload = schemas.ErrorResponse(
        error=f"{exc.collaborator} unavailable", reason="Try again later"
    )
    return JSONResponse(status_code=503, content=payload.model_dump())


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


def _pagination(
    page: Annotated[str | None, Query(description="1-based page number")] = None,
    limit: Annotated[
        str | None,
        Query(description=f"Page size (default {settings.default_page_limit}, max {settings.max_page_limit})"),
    ] = None,
) -> Pagination:
    """Apply the listing page-size policy to raw query values."""

    return resolve_pagination(
        page,
        limit,
        default_limit=settings.default_page_limit,
        max_limit=settings.max_page_limit,
    )


def _relayer_resolver() -> RelayerResolver:
    return RelayerDirectory(SessionLocal).resolve_lookup_id


def _fill_search_service(db=Depends(get_db)) -> FillSearchService:
    """Provide the fill search service wired with a SQLAlchemy session."""

    return FillSearchService(
        db,
        log_search_term=SearchTermLog(SessionLocal).log_search_term,
        runner=background_runner,
    )


def _network_stats_service() -> NetworkStatsService:
    return NetworkStatsService(SessionLocal)


@app.get("/v1/fills", response_model=schemas.FillList, tags=["fills"])
def list_fills(
    request: Request,
    pagination: Pagination = Depends(_pagination),
    resolve_relayer: RelayerResolver = Depends(_relayer_resolver),
    service: FillSearchService = Depends(_fill_search_service),
):
    """Search fills with optional filters, newest first.

    Filters: address, bridged, bridgeAddress, dateFrom, dateTo,
    protocolVersion, relayer, q, status, token, valueFrom, valueTo.
    """

    criteria = validate_and_build_filter(
        request.query_params, resolve_relayer, executor=relayer_lookup_executor
    )
    result = service.search(criteria, page=pagination.page, limit=pagination.limit)
    return schemas.FillList(
        fills=list(result.docs),
        limit=pagination.limit,
        page=result.page,
        page_count=result.pages,
        total=result.total,
    )


@app.get("/v1/fills/{fill_id}", response_model=schemas.FillDetail, tags=["fills"])
def get_fill(fill_id: str, service: FillSearchService = Depends(_fill_search_service)):
    """Retrieve a single fill by its identifier."""

    fill = service.get_fill(fill_id)
    if fill is None:
        raise HTTPException(status_code=404, detail="Fill not found")
    return fill


@app.get("/v1/stats/network", response_model=schemas.NetworkStats, tags=["stats"])
def network_stats(
    request: Request,
    period: Annotated[
        str | None, Query(description="Statistics window: day, week, month or year")
    ] = None,
    resolve_relayer: RelayerResolver = Depends(_relayer_resolver),
    service: NetworkStatsService = Depends(_network_stats_service),
):
    """Network totals for a window with percentage changes against the window before it."""

    criteria = validate_and_build_filter(
        request.query_params, resolve_relayer, executor=relayer_lookup_executor
    )
    window, stats = service.compute_for_period(
        (period or "").strip() or settings.stats_default_period, criteria
    )
    return schemas.NetworkStats(
        date_from=window.date_from,
        date_to=window.date_to,
        **dataclasses.asdict(stats),
    )
