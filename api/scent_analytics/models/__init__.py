from scent_analytics.models.active_cart import ActiveCart
from scent_analytics.models.base import Base, TimestampMixin
from scent_analytics.models.daily_stats import DailyStats
from scent_analytics.models.daily_visit import DailyVisit
from scent_analytics.models.page_view import PageView
from scent_analytics.models.user_profile import UserProfile
from scent_analytics.models.visitor import Visitor
from scent_analytics.models.visitor_session import VisitorSession

__all__ = [
    "Base",
    "TimestampMixin",
    "ActiveCart",
    "DailyStats",
    "DailyVisit",
    "PageView",
    "UserProfile",
    "Visitor",
    "VisitorSession",
]
