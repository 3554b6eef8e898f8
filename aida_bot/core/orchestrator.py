"""Conversational turn processor.

One inbound user message is handled as a fixed pipeline:

    load history -> dispatch to model -> classify parts -> execute tools
    -> compose reply -> persist turns -> respond

Faults while loading history or calling the model propagate to the caller
and nothing is persisted. Tool faults become failed ``ToolResult`` values
and persistence faults are only logged, so the user always gets a reply
once the model has answered.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from aida_bot.core.llm import FunctionCall, GeminiClient, ResponsePart
from aida_bot.core.prompts import FALLBACK_REPLY
from aida_bot.core.tools import ToolContext, ToolRegistry, UnknownToolError
from aida_bot.models.turn import TurnRole
from aida_bot.schemas.conversation import OutboundReply, ToolResult, Turn
from aida_bot.services.history import HistoryStore, filter_alternating

logger = logging.getLogger(__name__)


def classify_parts(parts: Sequence[ResponsePart]) -> tuple[str, list[FunctionCall]]:
    """Split model output into concatenated text and ordered tool calls."""
    text = "".join(part.text for part in parts if part.text)
    calls = [part.function_call for part in parts if part.function_call is not None]
    return text, calls


def compose_reply(text: str, tool_result: ToolResult | None) -> OutboundReply:
    """Reduce model text and the winning tool result to one reply.

    A tool result always takes precedence over free text.
    """
    if tool_result is not None:
        return OutboundReply(success=tool_result.success, text=tool_result.message)
    if text:
        return OutboundReply(success=True, text=text)
    return OutboundReply(success=False, text=FALLBACK_REPLY)


class ConversationOrchestrator:
    """Processes one user message into one reply plus a history write."""

    def __init__(self, llm: GeminiClient, history: HistoryStore, tools: ToolRegistry) -> None:
        self._llm = llm
        self._history = history
        self._tools = tools

    async def handle_message(self, session_id: str, text: str) -> OutboundReply:
        """Process a user message for *session_id*.

        Args:
            session_id: Stable conversation key (the sender's phone number).
            text: The user's message.

        Returns:
            The reply sent back to the user.

        Raises:
            Exception: Any fault from the history load or the model call.
        """
        received_at = datetime.now(timezone.utc)

        # LOAD_HISTORY
        stored = await self._history.query(session_id)
        seeded = filter_alternating(stored)
        logger.debug(f"Loaded {len(stored)} turns for {session_id}, seeding {len(seeded)}")

        # DISPATCH_MODEL
        parts = await self._llm.generate(seeded, text, tools=self._tools.declarations())

        # CLASSIFY_PARTS
        model_text, calls = classify_parts(parts)

        # EXECUTE_TOOLS
        tool_result = await self._execute_tools(calls, ToolContext(session_id=session_id))

        # COMPOSE_REPLY
        reply = compose_reply(model_text, tool_result)

        # PERSIST
        await self._persist(session_id, text, reply, received_at)

        logger.info(f"Replied to {session_id}: success={reply.success}, tool_calls={len(calls)}")
        return reply

    async def _execute_tools(
        self,
        calls: list[FunctionCall],
        context: ToolContext,
    ) -> ToolResult | None:
        """Run tool calls in order; the last result with a message wins."""
        winner: ToolResult | None = None

        for call in calls:
            try:
                result = await self._tools.invoke(call.name, call.args, context)
            except UnknownToolError:
                logger.warning(f"Model requested unknown tool: {call.name}")
                continue
            except Exception as e:
                logger.exception(f"Tool {call.name} failed: {e}")
                result = ToolResult(success=False, message=f"Failed to execute {call.name}: {e}")

            if result.message:
                winner = result

        return winner

    async def _persist(
        self,
        session_id: str,
        text: str,
        reply: OutboundReply,
        received_at: datetime,
    ) -> None:
        # Equal timestamps still sort user-first on insertion order
        replied_at = datetime.now(timezone.utc)
        turns = [
            Turn(session_id=session_id, role=TurnRole.USER, text=text, timestamp=received_at),
            Turn(session_id=session_id, role=TurnRole.MODEL, text=reply.text, timestamp=replied_at),
        ]
        try:
            await self._history.append(turns)
        except Exception as e:
            logger.error(f"Failed to save conversation history for {session_id}: {e}")
