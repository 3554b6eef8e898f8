"""Core utilities for LLM, date resolution, and prompts.

This module provides the core AI infrastructure for the Aida WhatsApp bot:
- Gemini LLM client for natural language processing
- Date resolution for tool arguments
- System prompts for bot behavior

Tool dispatch (``aida_bot.core.tools``) and the turn orchestrator
(``aida_bot.core.orchestrator``) depend on services and are imported directly.
"""

from aida_bot.core.dates import DateParseError, DateResolver
from aida_bot.core.llm import (
    GeminiClient,
    FunctionCall,
    ResponsePart,
    LLMError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMResponseError,
    SAFETY_SETTINGS,
)
from aida_bot.core.prompts import (
    WHATSAPP_SYSTEM_PROMPT,
    FALLBACK_REPLY,
    get_system_prompt,
)

__all__ = [
    # Dates
    "DateParseError",
    "DateResolver",
    # LLM Client
    "GeminiClient",
    "FunctionCall",
    "ResponsePart",
    "LLMError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMResponseError",
    "SAFETY_SETTINGS",
    # Prompts
    "WHATSAPP_SYSTEM_PROMPT",
    "FALLBACK_REPLY",
    "get_system_prompt",
]
