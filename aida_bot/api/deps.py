"""API dependencies for dependency injection."""

import hashlib
import hmac
import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from aida_bot.config import Settings, get_settings
from aida_bot.context import AppContext
from aida_bot.core.orchestrator import ConversationOrchestrator
from aida_bot.services.history import HistoryStore

logger = logging.getLogger(__name__)


def get_context(request: Request) -> AppContext:
    """Get the application context from app state.

    Raises:
        HTTPException: 503 if startup has not completed.
    """
    context: AppContext | None = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(status_code=503, detail="Service is starting up, please retry shortly")
    return context


def get_orchestrator(context: Annotated[AppContext, Depends(get_context)]) -> ConversationOrchestrator:
    """Get the conversation orchestrator."""
    return context.orchestrator


def get_history_store(context: Annotated[AppContext, Depends(get_context)]) -> HistoryStore:
    """Get the history store."""
    return context.history


# =============================================================================
# Authentication Helpers
# =============================================================================


def verify_webhook_signature(payload: bytes, signature: str, app_secret: str) -> bool:
    """Verify the X-Hub-Signature-256 header sent by Meta.

    Args:
        payload: Raw request body bytes
        signature: X-Hub-Signature-256 header value
        app_secret: WhatsApp app secret

    Returns:
        True if signature is valid, False otherwise
    """
    if not app_secret:
        logger.warning("WHATSAPP_APP_SECRET not configured, skipping signature verification")
        return True

    if not signature or not signature.startswith("sha256="):
        logger.warning("Invalid signature format")
        return False

    expected_signature = signature[7:]  # Remove "sha256=" prefix

    computed_signature = hmac.new(
        key=app_secret.encode("utf-8"),
        msg=payload,
        digestmod=hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(computed_signature, expected_signature)


# =============================================================================
# Type Aliases
# =============================================================================

AppSettings = Annotated[Settings, Depends(get_settings)]
Orchestrator = Annotated[ConversationOrchestrator, Depends(get_orchestrator)]
History = Annotated[HistoryStore, Depends(get_history_store)]
