"""Pydantic schemas for conversation turns and turn-processing results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from aida_bot.models.turn import TurnRole


class Turn(BaseModel):
    """A single stored message tied to a session.

    Turns are immutable once written; the history store returns them
    ordered by timestamp ascending.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    role: TurnRole
    text: str = ""
    timestamp: datetime


class ToolResult(BaseModel):
    """Normalized output of any tool execution."""

    success: bool
    message: str = ""


class OutboundReply(BaseModel):
    """Final artifact of one turn: stored as the model turn and returned to the caller."""

    success: bool
    text: str = Field(..., description="Reply text sent back to the user")
