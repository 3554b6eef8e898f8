"""LLM tool definitions and dispatch for the Aida WhatsApp bot.

The bot exposes a closed set of tools to the model. Currently:
1. business_onboarding - Register a new business client and book an onboarding call

Definitions are in Gemini ``functionDeclarations`` format. Any tool name the
model asks for that is not a ``ToolName`` is reported via ``UnknownToolError``
so the caller can log and skip it.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any

from aida_bot.schemas.conversation import ToolResult
from aida_bot.services.onboarding import CalendarBooker

logger = logging.getLogger(__name__)


class ToolName(str, enum.Enum):
    """Names of the tools the model may call."""

    BUSINESS_ONBOARDING = "business_onboarding"

    @classmethod
    def parse(cls, name: str) -> "ToolName | None":
        """Return the matching tool, or None for names the bot does not know."""
        try:
            return cls(name)
        except ValueError:
            return None


# Tool definitions in Gemini function calling format
TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": ToolName.BUSINESS_ONBOARDING.value,
        "description": (
            "Starts the onboarding process for new business clients and schedules "
            "an onboarding call. For 'preferred_time', extract the full date and time "
            "in ISO 8601 format (e.g., '2025-08-09T10:00:00+08:00')."
        ),
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "business_name": {"type": "STRING", "description": "Registered name of the business."},
                "contact_name": {"type": "STRING", "description": "Full name of the contact person."},
                "email": {"type": "STRING", "description": "Contact email address; receives the invite."},
                "contact_number": {"type": "STRING", "description": "Contact phone number."},
                "preferred_time": {
                    "type": "STRING",
                    "description": "Preferred onboarding call start time, ISO 8601 with offset.",
                },
                "estimated_transaction_value": {
                    "type": "STRING",
                    "description": "Estimated monthly transaction value, if the user mentions it.",
                },
                "notes": {"type": "STRING", "description": "Anything else the user wants us to know."},
            },
            "required": ["business_name", "contact_name", "email", "contact_number", "preferred_time"],
        },
    },
]


# Mapping of tool names to their required parameters for validation
TOOL_REQUIRED_PARAMS: dict[ToolName, list[str]] = {
    ToolName.BUSINESS_ONBOARDING: [
        "business_name",
        "contact_name",
        "email",
        "contact_number",
        "preferred_time",
    ],
}


def get_tool_definitions() -> list[dict[str, Any]]:
    """Get all tool definitions for LLM function calling."""
    return TOOL_DEFINITIONS.copy()


def validate_tool_arguments(tool: ToolName, arguments: dict[str, Any]) -> tuple[bool, str | None]:
    """Validate that required arguments are provided for a tool.

    Args:
        tool: The tool being called.
        arguments: Dictionary of arguments provided.

    Returns:
        Tuple of (is_valid, error_message).
        If valid, returns (True, None).
        If invalid, returns (False, error_message).
    """
    required = TOOL_REQUIRED_PARAMS[tool]
    missing = [
        param for param in required
        if arguments.get(param) is None or str(arguments[param]).strip() == ""
    ]

    if missing:
        return False, f"Missing required parameters for {tool.value}: {', '.join(missing)}"

    return True, None


class UnknownToolError(LookupError):
    """Raised when the model requests a tool that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


@dataclass(frozen=True)
class ToolContext:
    """Per-turn information handed to tools."""

    session_id: str


class ToolRegistry:
    """Executes tools requested by the model.

    Exceptions raised inside a tool are not caught here; the orchestrator
    converts them into failed results so one tool cannot abort a turn.
    """

    def __init__(self, onboarding: CalendarBooker) -> None:
        self._onboarding = onboarding

    def declarations(self) -> list[dict[str, Any]]:
        """Schema metadata advertised to the model."""
        return get_tool_definitions()

    async def invoke(
        self,
        name: str,
        arguments: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        """Execute a tool with the given arguments.

        Raises:
            UnknownToolError: If *name* is not a registered tool.
        """
        tool = ToolName.parse(name)
        if tool is None:
            raise UnknownToolError(name)

        is_valid, error_msg = validate_tool_arguments(tool, arguments)
        if not is_valid:
            logger.warning(f"Invalid tool arguments: {error_msg}")
            return ToolResult(success=False, message=error_msg or "")

        logger.info(f"Executing tool {tool.value} for session {context.session_id}")

        if tool is ToolName.BUSINESS_ONBOARDING:
            return await self._onboarding.book(arguments)

        raise UnknownToolError(name)
