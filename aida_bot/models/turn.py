"""Conversation turn model."""

import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from aida_bot.db.base import Base


class TurnRole(str, enum.Enum):
    """Who produced a turn. Matches the LLM's role vocabulary."""

    USER = "user"
    MODEL = "model"

    @property
    def next(self) -> "TurnRole":
        """The role expected to follow this one."""
        return TurnRole.MODEL if self is TurnRole.USER else TurnRole.USER


class ChatTurn(Base):
    """One stored message of a conversation, append-only."""

    __tablename__ = "chat_turns"
    __table_args__ = (Index("ix_chat_turns_session_created", "session_id", "created_at"),)

    # Autoincrement id doubles as the insertion-order tie-break for equal timestamps
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    role: Mapped[TurnRole] = mapped_column(Enum(TurnRole, name="turnrole"), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
