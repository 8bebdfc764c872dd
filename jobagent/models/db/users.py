from __future__ import annotations
"""SQLAlchemy models for users and their client memberships."""
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func
from jobagent.database import Base

class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    account: Mapped[str] = mapped_column(String, unique=True, index=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    # The system user attributes writes made by maintenance jobs
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    # Pending invitation, set until the invited user activates the account
    client_invitation_token: Mapped[str | None] = mapped_column(String, nullable=True)

    # E-mail confirmation flow
    confirm_email_token: Mapped[str | None] = mapped_column(String, nullable=True)
    confirm_email_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    email_to_confirm: Mapped[str | None] = mapped_column(String, nullable=True)

    # Data location; next_location is a pending switch request
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    next_location: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    last_location_switch_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    memberships: Mapped[list["Membership"]] = relationship(
        "Membership", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class Membership(Base):
    __tablename__ = "memberships"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), index=True)
    # Set when the membership was removed but its data is not cleaned up yet
    removed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="memberships")
