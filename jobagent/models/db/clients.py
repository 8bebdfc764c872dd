from __future__ import annotations
"""SQLAlchemy model for clients (tenants)."""
from datetime import datetime
from sqlalchemy import Integer, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from jobagent.database import Base

class Client(Base):
    __tablename__ = "clients"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True, index=True)

    # Billing address e-mail confirmation flow
    confirm_email_token: Mapped[str | None] = mapped_column(String, nullable=True)
    confirm_email_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    email_to_confirm: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
