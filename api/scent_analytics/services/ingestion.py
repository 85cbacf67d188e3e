"""EventIngestor: applies tracking events to the store.

One call per inbound event. Bot traffic is dropped before anything is parsed
or written. Keyed rows (visitor, daily visit, session, cart) are written with
a single ``INSERT ... ON CONFLICT DO UPDATE`` so concurrent first hits for the
same key never collide and counters are bumped in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from scent_analytics.core.clock import Clock, as_utc
from scent_analytics.models.active_cart import ActiveCart
from scent_analytics.models.daily_visit import DailyVisit
from scent_analytics.models.page_view import PageView
from scent_analytics.models.visitor import Visitor
from scent_analytics.models.visitor_session import VisitorSession
from scent_analytics.schemas.events import (
    CartConvertedEvent,
    CartEvent,
    EndSessionEvent,
    PageviewEvent,
    TrackingEvent,
    VisitEvent,
    parse_event,
)
from scent_analytics.services.identity import generate_session_id, resolve_visitor_id
from scent_analytics.services.user_agent import UserAgentInfo, classify, is_bot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Who sent the event: client IP and raw user-agent."""

    ip: str
    user_agent: str

    @property
    def visitor_id(self) -> str:
        return resolve_visitor_id(self.ip, self.user_agent)


class EventIngestor:
    """Dispatches tracking events to their per-action store mutations.

    Parameters
    ----------
    db : AsyncSession
        Session the mutations are written through. The caller commits.
    clock : Clock
        Source of ``now``; "today" is its UTC date.
    """

    def __init__(self, db: AsyncSession, clock: Clock) -> None:
        self.db = db
        self.clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, payload: Any, ctx: RequestContext) -> dict[str, Any]:
        """Apply one raw ``{action, data}`` payload.

        Returns the extra response fields (``ignored`` for bots, ids for
        ``visit``). Raises UnknownActionError / InvalidPayloadError before
        any write when the payload is unusable.
        """
        if is_bot(ctx.user_agent):
            logger.debug("Ignoring bot traffic from %s", ctx.ip)
            return {"ignored": True}

        event = parse_event(payload)
        return await self.apply(event, ctx)

    async def apply(self, event: TrackingEvent, ctx: RequestContext) -> dict[str, Any]:
        now = as_utc(self.clock.now())
        visitor_id = ctx.visitor_id
        ua = classify(ctx.user_agent)

        if isinstance(event, VisitEvent):
            result = await self._visit(event, ctx, visitor_id, ua, now)
        elif isinstance(event, PageviewEvent):
            result = await self._pageview(event, ctx, visitor_id, now)
        elif isinstance(event, CartEvent):
            result = await self._cart(event, visitor_id, now)
        elif isinstance(event, CartConvertedEvent):
            result = await self._cart_converted(visitor_id, now)
        elif isinstance(event, EndSessionEvent):
            result = await self._end_session(event, now)
        else:  # pragma: no cover - the union is closed
            raise TypeError(f"Unhandled event type {type(event).__name__}")

        await self.db.flush()
        return result

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def _visit(
        self,
        event: VisitEvent,
        ctx: RequestContext,
        visitor_id: str,
        ua: UserAgentInfo,
        now: datetime,
    ) -> dict[str, Any]:
        # The all-time record and the daily rollup are independent writes
        await self._record_visitor(ctx, visitor_id, ua, now)
        await self._record_daily_visit(ctx, visitor_id, ua, now)

        return {
            "visitorId": visitor_id,
            "sessionId": event.data.sessionId or generate_session_id(),
        }

    async def _pageview(
        self,
        event: PageviewEvent,
        ctx: RequestContext,
        visitor_id: str,
        now: datetime,
    ) -> dict[str, Any]:
        data = event.data
        self.db.add(
            PageView(
                visitor_id=visitor_id,
                page_url=data.pageUrl,
                page_title=data.pageTitle,
                referrer=data.referrer,
                session_id=data.sessionId,
                time_on_page=data.timeOnPage,
                scroll_depth=data.scrollDepth,
                created_at=now,
            )
        )

        # No-op when today's visit has not been recorded yet
        await self.db.execute(
            update(DailyVisit)
            .where(DailyVisit.date == now.date(), DailyVisit.ip_address == ctx.ip)
            .values(pages_viewed=DailyVisit.pages_viewed + 1, last_visit_time=now)
        )

        if data.sessionId:
            stmt = self._insert(VisitorSession).values(
                session_id=data.sessionId,
                visitor_id=visitor_id,
                entry_page=data.pageUrl,
                exit_page=data.pageUrl,
                page_count=1,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["session_id"],
                set_=dict(
                    page_count=VisitorSession.page_count + 1,
                    exit_page=stmt.excluded.exit_page,
                ),
            )
            await self.db.execute(stmt)

        return {}

    async def _cart(self, event: CartEvent, visitor_id: str, now: datetime) -> dict[str, Any]:
        data = event.data
        stmt = self._insert(ActiveCart).values(
            visitor_id=visitor_id,
            session_id=data.sessionId,
            items=[item.model_dump(exclude_none=True) for item in data.items],
            subtotal=data.subtotal,
            item_count=sum(item.quantity for item in data.items),
            last_activity=now,
            user_email=data.userEmail,
            abandoned_at=None,
        )
        # Any cart update is evidence of activity; converted_at stays as is
        stmt = stmt.on_conflict_do_update(
            index_elements=["visitor_id"],
            set_=dict(
                session_id=stmt.excluded.session_id,
                items=stmt.excluded["items"],
                subtotal=stmt.excluded.subtotal,
                item_count=stmt.excluded.item_count,
                last_activity=stmt.excluded.last_activity,
                user_email=stmt.excluded.user_email,
                abandoned_at=None,
            ),
        )
        await self.db.execute(stmt)
        return {}

    async def _cart_converted(self, visitor_id: str, now: datetime) -> dict[str, Any]:
        await self.db.execute(
            update(ActiveCart)
            .where(ActiveCart.visitor_id == visitor_id, ActiveCart.converted_at.is_(None))
            .values(converted_at=now)
        )
        return {}

    async def _end_session(self, event: EndSessionEvent, now: datetime) -> dict[str, Any]:
        data = event.data
        if data.sessionId:
            await self.db.execute(
                update(VisitorSession)
                .where(VisitorSession.session_id == data.sessionId)
                .values(ended_at=now, duration=data.duration)
            )
        return {}

    # ------------------------------------------------------------------
    # Upserts
    # ------------------------------------------------------------------

    def _insert(self, model):
        """INSERT for the session's dialect, with ``on_conflict_do_update``."""
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite.insert(model)
        return postgresql.insert(model)

    async def _record_visitor(
        self, ctx: RequestContext, visitor_id: str, ua: UserAgentInfo, now: datetime
    ) -> None:
        stmt = self._insert(Visitor).values(
            visitor_id=visitor_id,
            ip_address=ctx.ip,
            user_agent=ctx.user_agent,
            device_type=ua.device,
            browser=ua.browser,
            os=ua.os,
            is_bot=False,
            visit_count=1,
            first_visit=now,
            last_visit=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["visitor_id"],
            set_=dict(
                visit_count=Visitor.visit_count + 1,
                last_visit=stmt.excluded.last_visit,
                ip_address=stmt.excluded.ip_address,
                user_agent=stmt.excluded.user_agent,
                device_type=stmt.excluded.device_type,
                browser=stmt.excluded.browser,
                os=stmt.excluded.os,
            ),
        )
        await self.db.execute(stmt)

    async def _record_daily_visit(
        self, ctx: RequestContext, visitor_id: str, ua: UserAgentInfo, now: datetime
    ) -> None:
        stmt = self._insert(DailyVisit).values(
            date=now.date(),
            ip_address=ctx.ip,
            visitor_id=visitor_id,
            device_type=ua.device,
            browser=ua.browser,
            os=ua.os,
            visit_count=1,
            pages_viewed=0,
            last_visit_time=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["date", "ip_address"],
            set_=dict(
                visit_count=DailyVisit.visit_count + 1,
                last_visit_time=stmt.excluded.last_visit_time,
            ),
        )
        await self.db.execute(stmt)
