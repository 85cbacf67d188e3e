import uuid
import datetime

from sqlalchemy import Date, Float, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from scent_analytics.models.base import Base, JSONType, TimestampMixin


class DailyStats(TimestampMixin, Base):
    """Nightly archive written by the batch job; read-only here."""

    __tablename__ = "daily_stats"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    date: Mapped[datetime.date] = mapped_column(Date, unique=True, nullable=False)
    unique_visitors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_visits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_page_views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    new_visitors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    returning_visitors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_cart_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    abandoned_carts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    converted_carts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    top_pages: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    device_breakdown: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    browser_breakdown: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
