import uuid
import datetime

from sqlalchemy import Date, DateTime, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from scent_analytics.models.base import Base, TimestampMixin


class DailyVisit(TimestampMixin, Base):
    """Per-IP, per-calendar-day visit rollup."""

    __tablename__ = "daily_visits"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False)
    visitor_id: Mapped[str] = mapped_column(String(32), nullable=False)
    device_type: Mapped[str] = mapped_column(String(16), nullable=False)
    browser: Mapped[str] = mapped_column(String(32), nullable=False)
    os: Mapped[str] = mapped_column(String(32), nullable=False)
    visit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    pages_viewed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_visit_time: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("date", "ip_address", name="uq_daily_visit_date_ip"),
    )
