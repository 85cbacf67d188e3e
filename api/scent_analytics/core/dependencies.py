from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from scent_analytics.core.clock import Clock, SystemClock
from scent_analytics.core.config import settings
from scent_analytics.core.database import get_db
from scent_analytics.services.aggregation import TrackingQueries
from scent_analytics.services.identity import client_ip
from scent_analytics.services.ingestion import EventIngestor, RequestContext

_system_clock = SystemClock()


def get_clock() -> Clock:
    """Dependency: the wall clock. Tests override this with a FixedClock."""
    return _system_clock


def get_request_context(
    x_forwarded_for: str | None = Header(None, alias="x-forwarded-for"),
    user_agent: str | None = Header(None, alias="user-agent"),
) -> RequestContext:
    """Dependency: client IP (first x-forwarded-for hop) and user-agent."""
    return RequestContext(
        ip=client_ip(x_forwarded_for, settings.FALLBACK_IP),
        user_agent=user_agent or "",
    )


def get_ingestor(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> EventIngestor:
    return EventIngestor(db, clock)


def get_queries(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> TrackingQueries:
    return TrackingQueries(db, clock, settings)
