import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from scent_analytics.core.dependencies import get_ingestor, get_queries, get_request_context
from scent_analytics.core.exceptions import InvalidPayloadError
from scent_analytics.core.security import require_admin
from scent_analytics.models.user_profile import UserProfile
from scent_analytics.schemas.tracking import IngestResponse
from scent_analytics.services.aggregation import TrackingQueries
from scent_analytics.services.ingestion import EventIngestor, RequestContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tracking"])

# Upper bound for the ``days`` window; larger values overflow date arithmetic
MAX_DAYS = 3650


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/tracking", response_model=IngestResponse, response_model_exclude_none=True)
async def ingest_event(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    ingestor: EventIngestor = Depends(get_ingestor),
):
    """Storefront instrumentation: apply one ``{action, data}`` event.

    Bots get ``{"success": true, "ignored": true}`` and nothing is written.
    The body is read by hand because sendBeacon posts it as text/plain.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidPayloadError()

    try:
        result = await ingestor.ingest(payload, ctx)
        await ingestor.db.commit()
    except SQLAlchemyError:
        await ingestor.db.rollback()
        logger.exception("Tracking ingestion failed for %s", ctx.ip)
        return JSONResponse({"error": "Tracking error"}, status_code=500)

    return IngestResponse(success=True, **result)


@router.get("/tracking")
async def query_tracking(
    query_type: str | None = Query(None, alias="type"),
    days: int | None = Query(None, ge=1, le=MAX_DAYS),
    queries: TrackingQueries = Depends(get_queries),
    admin: UserProfile | None = Depends(require_admin),
) -> Any:
    """Admin dashboards: visitors, pageviews, carts, stats, history, top pages."""
    try:
        return await queries.run(query_type, days)
    except SQLAlchemyError:
        logger.exception("Tracking query %r failed", query_type)
        return JSONResponse({"error": "Query error"}, status_code=500)
