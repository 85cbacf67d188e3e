"""Tests for the read side: cart state derivation, rankings and dashboard queries."""

import uuid
from datetime import timedelta

import pytest

from conftest import CHROME_UA, NOW
from scent_analytics.core.exceptions import UnknownQueryTypeError
from scent_analytics.models import ActiveCart, DailyStats, DailyVisit, PageView, UserProfile, Visitor
from scent_analytics.services.aggregation import TrackingQueries, rank_pages
from scent_analytics.services.carts import CartState, cart_state, display_name
from scent_analytics.services.ingestion import EventIngestor, RequestContext

TWO_HOURS = timedelta(hours=2)


def make_cart(**overrides) -> ActiveCart:
    fields = {
        "visitor_id": uuid.uuid4().hex,
        "session_id": "s1",
        "items": [{"productId": "p1", "quantity": 1, "price": 90.0}],
        "subtotal": 90.0,
        "item_count": 1,
        "last_activity": NOW,
        "user_email": None,
        "abandoned_at": None,
        "converted_at": None,
    }
    fields.update(overrides)
    return ActiveCart(**fields)


def make_visitor(**overrides) -> Visitor:
    fields = {
        "visitor_id": uuid.uuid4().hex,
        "ip_address": "1.2.3.4",
        "user_agent": CHROME_UA,
        "device_type": "desktop",
        "browser": "Chrome",
        "os": "Windows",
        "is_bot": False,
        "visit_count": 1,
        "first_visit": NOW,
        "last_visit": NOW,
    }
    fields.update(overrides)
    return Visitor(**fields)


def make_daily_visit(ip: str, **overrides) -> DailyVisit:
    fields = {
        "date": NOW.date(),
        "ip_address": ip,
        "visitor_id": uuid.uuid4().hex,
        "device_type": "desktop",
        "browser": "Chrome",
        "os": "Windows",
        "visit_count": 1,
        "pages_viewed": 0,
        "last_visit_time": NOW,
    }
    fields.update(overrides)
    return DailyVisit(**fields)


def make_pageview(url: str, created_at=NOW) -> PageView:
    return PageView(visitor_id="v" * 32, page_url=url, created_at=created_at)


@pytest.fixture
def seed(session_factory):
    async def _seed(*rows):
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()

    return _seed


@pytest.fixture
def queries(db, clock):
    return TrackingQueries(db, clock)


# ======================================================================
# Cart state
# ======================================================================


class TestCartState:
    def test_recent_cart_is_active(self):
        cart = make_cart(last_activity=NOW - timedelta(minutes=30))
        assert cart_state(cart, NOW, TWO_HOURS) is CartState.active

    def test_stale_cart_is_abandoned(self):
        cart = make_cart(last_activity=NOW - timedelta(hours=3))
        assert cart_state(cart, NOW, TWO_HOURS) is CartState.abandoned

    def test_stored_abandoned_flag_counts(self):
        cart = make_cart(abandoned_at=NOW)
        assert cart_state(cart, NOW, TWO_HOURS) is CartState.abandoned

    def test_conversion_wins(self):
        cart = make_cart(last_activity=NOW - timedelta(hours=3), converted_at=NOW)
        assert cart_state(cart, NOW, TWO_HOURS) is CartState.converted

    def test_naive_store_timestamps(self):
        cart = make_cart(last_activity=(NOW - timedelta(hours=3)).replace(tzinfo=None))
        assert cart_state(cart, NOW, TWO_HOURS) is CartState.abandoned


class TestDisplayName:
    def test_full_name(self):
        assert display_name(UserProfile(email="c@x.fr", first_name="Camille", last_name="Durand")) == "Camille Durand"

    def test_first_name_only(self):
        assert display_name(UserProfile(email="c@x.fr", first_name="Camille")) == "Camille"

    def test_email_local_part(self):
        assert display_name(UserProfile(email="camille.d@x.fr")) == "camille.d"


# ======================================================================
# Top pages
# ======================================================================


class TestRankPages:
    def test_descending_by_count(self):
        urls = ["/a"] * 5 + ["/b"] * 3 + ["/c"] * 8
        assert [(p.page_url, p.view_count) for p in rank_pages(urls)] == [("/c", 8), ("/a", 5), ("/b", 3)]

    def test_truncates(self):
        urls = [f"/p{i}" for i in range(30) for _ in range(i + 1)]
        ranked = rank_pages(urls, limit=20)
        assert len(ranked) == 20
        assert ranked[0].page_url == "/p29"

    def test_empty(self):
        assert rank_pages([]) == []


class TestTopPagesQuery:
    async def test_window_and_ranking(self, seed, queries):
        old = NOW - timedelta(days=10)
        await seed(
            *[make_pageview("/a") for _ in range(5)],
            *[make_pageview("/b") for _ in range(3)],
            *[make_pageview("/c") for _ in range(8)],
            *[make_pageview("/old", created_at=old) for _ in range(20)],
        )

        top = await queries.top_pages(days=7)
        assert [(p.page_url, p.view_count) for p in top] == [("/c", 8), ("/a", 5), ("/b", 3)]

        body = await queries.run("top_pages", 30)
        assert body["topPages"][0].page_url == "/old"


# ======================================================================
# Listing queries
# ======================================================================


class TestListings:
    async def test_visitors_window_excludes_bots_and_stale(self, seed, queries):
        recent = make_visitor(last_visit=NOW - timedelta(hours=1))
        newest = make_visitor(last_visit=NOW)
        await seed(
            recent,
            newest,
            make_visitor(last_visit=NOW - timedelta(days=30)),
            make_visitor(is_bot=True),
        )

        visitors = await queries.visitors(days=7)
        assert [v.visitor_id for v in visitors] == [newest.visitor_id, recent.visitor_id]

    async def test_pageviews_most_recent_first(self, seed, queries):
        await seed(
            make_pageview("/first", created_at=NOW - timedelta(hours=2)),
            make_pageview("/second", created_at=NOW - timedelta(hours=1)),
            make_pageview("/ancient", created_at=NOW - timedelta(days=8)),
        )
        body = await queries.run("pageviews")
        assert [p.page_url for p in body["pageviews"]] == ["/second", "/first"]

    async def test_today_details(self, seed, queries):
        await seed(
            make_daily_visit("1.1.1.1", last_visit_time=NOW - timedelta(hours=2)),
            make_daily_visit("2.2.2.2", last_visit_time=NOW - timedelta(minutes=5)),
            make_daily_visit("1.1.1.1", date=NOW.date() - timedelta(days=1)),
        )
        body = await queries.run("today_details")
        assert [v.ip_address for v in body["visits"]] == ["2.2.2.2", "1.1.1.1"]

    async def test_daily_history_descending_and_limited(self, seed, queries):
        await seed(*[DailyStats(date=NOW.date() - timedelta(days=i), unique_visitors=i) for i in range(1, 41)])

        history = (await queries.run("daily_history"))["history"]
        assert len(history) == 30
        assert history[0].date == NOW.date() - timedelta(days=1)
        assert history[-1].date == NOW.date() - timedelta(days=30)

        assert len((await queries.run("daily_history", 5))["history"]) == 5

    async def test_unknown_type(self, queries):
        with pytest.raises(UnknownQueryTypeError):
            await queries.run("revenue")
        with pytest.raises(UnknownQueryTypeError):
            await queries.run(None)


# ======================================================================
# Carts
# ======================================================================


class TestCartsQuery:
    async def test_open_carts_only(self, seed, queries):
        active = make_cart(last_activity=NOW - timedelta(minutes=30))
        stale = make_cart(last_activity=NOW - timedelta(hours=3))
        await seed(
            active,
            stale,
            make_cart(converted_at=NOW),
            make_cart(item_count=0, items=[]),
        )

        carts = await queries.carts()
        assert [c.visitor_id for c in carts] == [active.visitor_id, stale.visitor_id]
        assert [(c.status, c.is_abandoned) for c in carts] == [("active", False), ("abandoned", True)]

    async def test_enrichment(self, seed, queries):
        profile = UserProfile(email="camille@example.com", first_name="Camille", last_name="Durand")
        await seed(
            profile,
            make_cart(user_email="camille@example.com"),
            make_cart(user_email="unknown@example.com", last_activity=NOW - timedelta(minutes=1)),
        )

        known, unknown = await queries.carts()
        assert known.user_name == "Camille Durand"
        assert known.user_id == profile.id
        assert known.user_profile.email == "camille@example.com"
        assert unknown.user_email == "unknown@example.com"
        assert unknown.user_name is None
        assert unknown.user_profile is None

    async def test_converted_cart_stays_hidden(self, session_factory, clock, queries):
        ctx = RequestContext(ip="1.2.3.4", user_agent=CHROME_UA)
        cart = {"items": [{"productId": "p1", "quantity": 1, "price": 90.0}], "subtotal": 90.0}

        for action, data in [("cart", cart), ("cart_converted", None), ("cart", cart)]:
            async with session_factory() as session:
                await EventIngestor(session, clock).ingest({"action": action, "data": data}, ctx)
                await session.commit()

        assert await queries.carts() == []
        assert (await queries.stats()).activeCarts == 0


# ======================================================================
# Stats
# ======================================================================


class TestStats:
    async def test_snapshot(self, seed, queries):
        await seed(
            make_daily_visit("1.1.1.1", visit_count=3),
            make_daily_visit("2.2.2.2", visit_count=1),
            make_daily_visit("3.3.3.3", date=NOW.date() - timedelta(days=1), visit_count=9),
            make_pageview("/", created_at=NOW - timedelta(hours=1)),
            make_pageview("/parfums", created_at=NOW - timedelta(hours=2)),
            make_pageview("/", created_at=NOW - timedelta(days=1)),
            make_cart(subtotal=100.0, item_count=2, last_activity=NOW - timedelta(minutes=10)),
            make_cart(subtotal=50.0, item_count=1, last_activity=NOW - timedelta(hours=5)),
            make_cart(subtotal=999.0, item_count=1, last_activity=NOW - timedelta(days=2)),
            make_cart(subtotal=75.0, converted_at=NOW),
            make_visitor(),
            make_visitor(),
            make_visitor(is_bot=True),
        )

        stats = (await queries.run("stats"))["stats"]
        assert stats.visitorsToday == 2
        assert stats.visitsToday == 4
        assert stats.pageviewsToday == 2
        assert stats.activeCarts == 2
        assert stats.totalCartValue == pytest.approx(150.0)
        assert stats.totalCartItems == 3
        assert stats.abandonedCarts == 1
        assert stats.totalVisitors == 2

    async def test_empty_store(self, queries):
        stats = await queries.stats()
        assert stats.model_dump() == {
            "visitorsToday": 0,
            "visitsToday": 0,
            "pageviewsToday": 0,
            "activeCarts": 0,
            "totalCartValue": 0.0,
            "totalCartItems": 0,
            "abandonedCarts": 0,
            "totalVisitors": 0,
        }
