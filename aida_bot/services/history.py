"""Conversation history store backed by the ``chat_turns`` table.

The store is append-only: turns are written in pairs (user, model) after a
reply is composed and read back per session in timestamp order. Each call
opens its own session so a failed write never affects the caller's state.
"""

import logging
from collections.abc import Iterable
from datetime import timezone

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from aida_bot.models.turn import ChatTurn, TurnRole
from aida_bot.schemas.conversation import Turn

logger = logging.getLogger(__name__)


class HistoryStore:
    """Append/query access to conversation turns keyed by session id."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def append(self, turns: Iterable[Turn]) -> None:
        """Persist *turns* atomically, in the given order."""
        async with self._session_maker() as session:
            async with session.begin():
                session.add_all(
                    ChatTurn(
                        session_id=turn.session_id,
                        role=turn.role,
                        text=turn.text,
                        created_at=turn.timestamp,
                    )
                    for turn in turns
                )

    async def query(self, session_id: str) -> list[Turn]:
        """Return all turns for *session_id*, oldest first."""
        async with self._session_maker() as session:
            result = await session.execute(
                select(ChatTurn)
                .where(ChatTurn.session_id == session_id)
                .order_by(ChatTurn.created_at.asc(), ChatTurn.id.asc())
            )
            rows = result.scalars().all()

        return [
            Turn(
                session_id=row.session_id,
                role=row.role,
                text=row.text or "",
                # SQLite drops tzinfo; stored values are always UTC
                timestamp=row.created_at if row.created_at.tzinfo else row.created_at.replace(tzinfo=timezone.utc),
            )
            for row in rows
        ]

    async def ping(self) -> None:
        """Round-trip to the database; raises if it is unreachable."""
        async with self._session_maker() as session:
            await session.execute(text("SELECT 1"))


def filter_alternating(turns: Iterable[Turn]) -> list[Turn]:
    """Keep only turns that continue a strict user/model alternation.

    The scan starts expecting ``user``. A turn with any other role is
    skipped (with a warning) and the scan keeps expecting the same role.
    Because the new user message is appended right after this history, a
    trailing unanswered ``user`` turn is dropped as well, so
    ``[user, model, model, user]`` becomes ``[user, model]``.

    Only the seeded context is filtered; storage keeps everything.
    """
    filtered: list[Turn] = []
    expected = TurnRole.USER
    for turn in turns:
        if turn.role == expected:
            filtered.append(turn)
            expected = expected.next
        else:
            logger.warning(
                f"Skipping history item with unexpected role: {turn.role.value}. "
                f"Expected: {expected.value}"
            )

    if filtered and filtered[-1].role == TurnRole.USER:
        logger.warning("Skipping trailing user turn with no model reply")
        filtered.pop()

    return filtered
