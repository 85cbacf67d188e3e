import datetime
from uuid import UUID

from pydantic import BaseModel


class IngestResponse(BaseModel):
    success: bool = True
    ignored: bool | None = None
    visitorId: str | None = None
    sessionId: str | None = None


class VisitorOut(BaseModel):
    id: UUID
    visitor_id: str
    ip_address: str
    user_agent: str
    device_type: str
    browser: str
    os: str
    is_bot: bool
    visit_count: int
    first_visit: datetime.datetime
    last_visit: datetime.datetime

    model_config = {"from_attributes": True}


class PageViewOut(BaseModel):
    id: UUID
    visitor_id: str
    page_url: str
    page_title: str | None = None
    referrer: str | None = None
    session_id: str | None = None
    time_on_page: int | None = None
    scroll_depth: float | None = None
    created_at: datetime.datetime

    model_config = {"from_attributes": True}


class DailyVisitOut(BaseModel):
    id: UUID
    date: datetime.date
    ip_address: str
    visitor_id: str
    device_type: str
    browser: str
    os: str
    visit_count: int
    pages_viewed: int
    last_visit_time: datetime.datetime

    model_config = {"from_attributes": True}


class UserProfileOut(BaseModel):
    id: UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str
    phone: str | None = None
    is_admin: bool
    created_at: datetime.datetime

    model_config = {"from_attributes": True}


class CartOut(BaseModel):
    id: UUID
    visitor_id: str
    session_id: str | None = None
    items: list[dict]
    subtotal: float
    item_count: int
    last_activity: datetime.datetime
    user_email: str | None = None
    abandoned_at: datetime.datetime | None = None
    converted_at: datetime.datetime | None = None
    # Derived at read time
    status: str | None = None
    is_abandoned: bool | None = None
    # Profile enrichment, when user_email matches a profile
    user_id: UUID | None = None
    user_name: str | None = None
    user_profile: UserProfileOut | None = None

    model_config = {"from_attributes": True}


class DailyStatsOut(BaseModel):
    id: UUID
    date: datetime.date
    unique_visitors: int
    total_visits: int
    total_page_views: int
    new_visitors: int
    returning_visitors: int
    total_cart_value: float
    abandoned_carts: int
    converted_carts: int
    top_pages: list | None = None
    device_breakdown: dict | None = None
    browser_breakdown: dict | None = None

    model_config = {"from_attributes": True}


class TrackingStats(BaseModel):
    visitorsToday: int
    visitsToday: int
    pageviewsToday: int
    activeCarts: int
    totalCartValue: float
    totalCartItems: int
    abandonedCarts: int
    totalVisitors: int


class TopPage(BaseModel):
    page_url: str
    view_count: int
