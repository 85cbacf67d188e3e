import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from scent_analytics.models.base import Base, TimestampMixin


class Visitor(TimestampMixin, Base):
    """All-time identity record, one row per IP + user-agent fingerprint."""

    __tablename__ = "visitors"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    visitor_id: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False)
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="")
    device_type: Mapped[str] = mapped_column(String(16), nullable=False)
    browser: Mapped[str] = mapped_column(String(32), nullable=False)
    os: Mapped[str] = mapped_column(String(32), nullable=False)
    is_bot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    visit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    first_visit: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_visit: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
