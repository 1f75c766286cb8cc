"""
Styling session ("haul") models.

A session is one quiz-to-results unit. Sessions and outfits are linked
many-to-many through `session_outfits`, which also fixes outfit order.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.outfit import Outfit


class StylingSession(Base):
    """
    Styling session model.

    Attributes:
        id: Primary key
        user_id: Owner user ID
        quiz_data: Opaque quiz answers the session was generated from
        created_at: Timestamp when session was created
    """

    __tablename__ = "styling_sessions"

    __table_args__ = (
        Index("ix_styling_sessions_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, nullable=False, comment="Owner user ID"
    )

    quiz_data: Mapped[Optional[Any]] = mapped_column(
        JSON,
        nullable=True,
        comment="Opaque quiz answers blob",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when session was created",
    )

    # Join rows go with the session
    outfit_links: Mapped[list["SessionOutfit"]] = relationship(
        "SessionOutfit",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SessionOutfit.position",
    )

    def __repr__(self) -> str:
        """String representation of styling session"""
        return f"<StylingSession(id={self.id}, user_id='{self.user_id}')>"


class SessionOutfit(Base):
    """
    Join row placing an outfit at a position within a session.
    """

    __tablename__ = "session_outfits"

    __table_args__ = (
        Index("ix_session_outfits_outfit_id", "outfit_id"),
    )

    session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("styling_sessions.id", ondelete="CASCADE"),
        primary_key=True,
    )

    outfit_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("outfits.id", ondelete="CASCADE"),
        primary_key=True,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    session: Mapped["StylingSession"] = relationship(
        "StylingSession", back_populates="outfit_links"
    )
    outfit: Mapped["Outfit"] = relationship("Outfit", back_populates="session_links")

    def __repr__(self) -> str:
        """String representation of session-outfit link"""
        return (
            f"<SessionOutfit(session_id={self.session_id}, "
            f"outfit_id={self.outfit_id}, position={self.position})>"
        )
