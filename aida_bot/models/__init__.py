"""SQLAlchemy models."""

from aida_bot.models.turn import ChatTurn, TurnRole

__all__ = ["ChatTurn", "TurnRole"]
