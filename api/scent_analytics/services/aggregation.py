"""TrackingQueries: read-side aggregations behind the admin dashboards.

Every query is a plain SELECT against the tracking tables; rankings and
totals are computed in Python over the (capped) result.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scent_analytics.core.clock import Clock, as_utc, start_of_day
from scent_analytics.core.config import Settings, settings as default_settings
from scent_analytics.core.exceptions import UnknownQueryTypeError
from scent_analytics.models.active_cart import ActiveCart
from scent_analytics.models.daily_stats import DailyStats
from scent_analytics.models.daily_visit import DailyVisit
from scent_analytics.models.page_view import PageView
from scent_analytics.models.user_profile import UserProfile
from scent_analytics.models.visitor import Visitor
from scent_analytics.schemas.tracking import (
    CartOut,
    DailyStatsOut,
    DailyVisitOut,
    PageViewOut,
    TopPage,
    TrackingStats,
    UserProfileOut,
    VisitorOut,
)
from scent_analytics.services.carts import CartState, cart_state, display_name

logger = logging.getLogger(__name__)

# Default ``days`` window per query type; None means the type takes no window.
QUERY_TYPES: dict[str, int | None] = {
    "visitors": 7,
    "pageviews": 7,
    "carts": None,
    "stats": None,
    "daily_history": 30,
    "today_details": None,
    "top_pages": 7,
}


def rank_pages(urls: Iterable[str], limit: int = 20) -> list[TopPage]:
    """Count views per URL, most viewed first.

    Ties keep first-seen order.
    """
    counts = Counter(urls)
    return [TopPage(page_url=url, view_count=count) for url, count in counts.most_common(limit)]


class TrackingQueries:
    """Answers dashboard queries over the tracking tables.

    Parameters
    ----------
    db : AsyncSession
        Session used for reads only.
    clock : Clock
        Source of ``now`` for day windows and "today".
    config : Settings, optional
        Row caps and cart thresholds; defaults to the process settings.
    """

    def __init__(self, db: AsyncSession, clock: Clock, config: Settings | None = None) -> None:
        self.db = db
        self.clock = clock
        self.config = config or default_settings

    @property
    def abandon_after(self) -> timedelta:
        return timedelta(hours=self.config.ABANDONED_CART_HOURS)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def run(self, query_type: str | None, days: int | None = None) -> dict[str, Any]:
        """Run the query named by ``query_type`` and return the response body."""
        if query_type not in QUERY_TYPES:
            raise UnknownQueryTypeError()
        window = days if days is not None else QUERY_TYPES[query_type]

        if query_type == "visitors":
            return {"visitors": await self.visitors(window)}
        if query_type == "pageviews":
            return {"pageviews": await self.pageviews(window)}
        if query_type == "carts":
            return {"carts": await self.carts()}
        if query_type == "stats":
            return {"stats": await self.stats()}
        if query_type == "daily_history":
            return {"history": await self.daily_history(window)}
        if query_type == "today_details":
            return {"visits": await self.today_details()}
        return {"topPages": await self.top_pages(window)}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def visitors(self, days: int = 7) -> list[VisitorOut]:
        since = self._window_start(days)
        result = await self.db.execute(
            select(Visitor)
            .where(Visitor.is_bot.is_(False), Visitor.last_visit >= since)
            .order_by(Visitor.last_visit.desc())
            .limit(self.config.VISITORS_LIMIT)
        )
        return [VisitorOut.model_validate(v) for v in result.scalars().all()]

    async def pageviews(self, days: int = 7) -> list[PageViewOut]:
        since = self._window_start(days)
        result = await self.db.execute(
            select(PageView)
            .where(PageView.created_at >= since)
            .order_by(PageView.created_at.desc())
            .limit(self.config.PAGEVIEWS_LIMIT)
        )
        return [PageViewOut.model_validate(p) for p in result.scalars().all()]

    async def carts(self) -> list[CartOut]:
        """Open carts (non-empty, not converted), most recent activity first.

        Carts with an email are enriched with the matching user profile when
        one exists; a miss or a failed lookup leaves the cart as is.
        """
        result = await self.db.execute(
            select(ActiveCart)
            .where(ActiveCart.item_count > 0, ActiveCart.converted_at.is_(None))
            .order_by(ActiveCart.last_activity.desc())
            .limit(self.config.CARTS_LIMIT)
        )
        carts = result.scalars().all()
        now = self.clock.now()

        profiles = await self._profiles_by_email({c.user_email for c in carts if c.user_email})

        enriched: list[CartOut] = []
        for cart in carts:
            state = cart_state(cart, now, self.abandon_after)
            extra: dict[str, Any] = {
                "status": state.value,
                "is_abandoned": state is CartState.abandoned,
            }
            profile = profiles.get(cart.user_email) if cart.user_email else None
            if profile is not None:
                extra.update(
                    user_id=profile.id,
                    user_name=display_name(profile),
                    user_profile=UserProfileOut.model_validate(profile),
                )
            enriched.append(CartOut.model_validate(cart).model_copy(update=extra))
        return enriched

    async def stats(self) -> TrackingStats:
        now = self.clock.now()
        today = as_utc(now).date()

        daily = await self.db.execute(
            select(DailyVisit.ip_address, DailyVisit.visit_count).where(DailyVisit.date == today)
        )
        daily_rows = daily.all()

        pageviews_today = await self.db.scalar(
            select(func.count()).select_from(PageView).where(PageView.created_at >= start_of_day(today))
        )

        carts = await self.db.execute(
            select(ActiveCart).where(
                ActiveCart.item_count > 0,
                ActiveCart.converted_at.is_(None),
                ActiveCart.last_activity >= now - timedelta(hours=self.config.ACTIVE_CART_WINDOW_HOURS),
            )
        )
        active_carts = carts.scalars().all()

        total_visitors = await self.db.scalar(
            select(func.count()).select_from(Visitor).where(Visitor.is_bot.is_(False))
        )

        return TrackingStats(
            visitorsToday=len({row.ip_address for row in daily_rows}),
            visitsToday=sum(row.visit_count or 0 for row in daily_rows),
            pageviewsToday=pageviews_today or 0,
            activeCarts=len(active_carts),
            totalCartValue=sum(cart.subtotal or 0 for cart in active_carts),
            totalCartItems=sum(cart.item_count or 0 for cart in active_carts),
            abandonedCarts=sum(
                1 for cart in active_carts if cart_state(cart, now, self.abandon_after) is CartState.abandoned
            ),
            totalVisitors=total_visitors or 0,
        )

    async def daily_history(self, days: int = 30) -> list[DailyStatsOut]:
        result = await self.db.execute(select(DailyStats).order_by(DailyStats.date.desc()).limit(days))
        return [DailyStatsOut.model_validate(row) for row in result.scalars().all()]

    async def today_details(self) -> list[DailyVisitOut]:
        today = as_utc(self.clock.now()).date()
        result = await self.db.execute(
            select(DailyVisit).where(DailyVisit.date == today).order_by(DailyVisit.last_visit_time.desc())
        )
        return [DailyVisitOut.model_validate(row) for row in result.scalars().all()]

    async def top_pages(self, days: int = 7) -> list[TopPage]:
        """Most viewed URLs in the window.

        Counted in memory over at most ``TOP_PAGES_SCAN_LIMIT`` of the most
        recent rows, so very busy windows rank a recent sample.
        """
        since = self._window_start(days)
        result = await self.db.execute(
            select(PageView.page_url)
            .where(PageView.created_at >= since)
            .order_by(PageView.created_at.desc())
            .limit(self.config.TOP_PAGES_SCAN_LIMIT)
        )
        return rank_pages(result.scalars().all(), self.config.TOP_PAGES_LIMIT)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _window_start(self, days: int) -> datetime:
        return self.clock.now() - timedelta(days=days)

    async def _profiles_by_email(self, emails: set[str]) -> dict[str, UserProfile]:
        if not emails:
            return {}
        try:
            result = await self.db.execute(select(UserProfile).where(UserProfile.email.in_(emails)))
        except SQLAlchemyError:
            logger.warning("Profile lookup failed; returning carts unenriched", exc_info=True)
            return {}
        return {profile.email: profile for profile in result.scalars().all()}
