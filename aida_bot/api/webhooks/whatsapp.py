"""WhatsApp webhook endpoint for Meta Cloud API.

This module handles:
- GET: Webhook verification from Meta during setup
- POST: Receiving WhatsApp messages and replying through the orchestrator

Both ``/webhook`` and ``/webhooks/whatsapp`` are served.

Reference: https://developers.facebook.com/docs/whatsapp/cloud-api/webhooks
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from aida_bot.api.deps import AppSettings, Orchestrator, verify_webhook_signature
from aida_bot.schemas.whatsapp import WhatsAppWebhookPayload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WhatsApp"])

INVALID_MESSAGE_ERROR = "Invalid or non-text message format."
PROCESSING_ERROR = "Failed to process webhook request."


# ============================================================================
# GET - Webhook Verification
# ============================================================================


@router.get("/webhook", response_class=PlainTextResponse)
@router.get("/webhooks/whatsapp", response_class=PlainTextResponse, include_in_schema=False)
async def verify_webhook(
    settings: AppSettings,
    hub_mode: Annotated[str | None, Query(alias="hub.mode")] = None,
    hub_verify_token: Annotated[str | None, Query(alias="hub.verify_token")] = None,
    hub_challenge: Annotated[str | None, Query(alias="hub.challenge")] = None,
) -> str:
    """Verify the webhook with Meta.

    Meta sends a GET request with:
    - hub.mode: Should be "subscribe"
    - hub.verify_token: Must match our WHATSAPP_VERIFY_TOKEN
    - hub.challenge: A random string we must echo back

    Raises:
        HTTPException: 400 if parameters are missing, 403 if verification fails
    """
    logger.info(
        f"Webhook verification request: mode={hub_mode}, "
        f"token_provided={bool(hub_verify_token)}"
    )

    if not hub_mode or not hub_verify_token or not hub_challenge:
        logger.warning("Missing required verification parameters")
        raise HTTPException(status_code=400, detail="Missing required verification parameters")

    if hub_mode != "subscribe":
        logger.warning(f"Invalid hub.mode: {hub_mode}")
        raise HTTPException(status_code=403, detail="Invalid verification mode")

    if not settings.whatsapp_verify_token or hub_verify_token != settings.whatsapp_verify_token:
        logger.warning("Webhook verification token mismatch")
        raise HTTPException(status_code=403, detail="Verification token mismatch")

    logger.info("Webhook verification successful")
    return hub_challenge


# ============================================================================
# POST - Receive Messages
# ============================================================================


@router.post("/webhook", response_model=None)
@router.post("/webhooks/whatsapp", response_model=None, include_in_schema=False)
async def receive_webhook(
    request: Request,
    settings: AppSettings,
    orchestrator: Orchestrator,
    x_hub_signature_256: Annotated[str | None, Header()] = None,
) -> dict[str, Any] | JSONResponse:
    """Receive a WhatsApp message and reply to it.

    Only ``entry[0].changes[0].value.messages[0]`` is considered, and it
    must be a text message.

    Returns:
        ``{"success": bool, "response": str}`` on success.
        400 ``{"error": ...}`` when no text message is present.
        500 ``{"error": ...}`` when history or the model fails.

    Raises:
        HTTPException: 403 if signature verification fails
    """
    raw_body = await request.body()

    if settings.whatsapp_app_secret:
        if not verify_webhook_signature(raw_body, x_hub_signature_256 or "", settings.whatsapp_app_secret):
            logger.warning("Webhook signature verification failed")
            raise HTTPException(status_code=403, detail="Invalid signature")

    try:
        payload = WhatsAppWebhookPayload.model_validate_json(raw_body)
    except ValidationError as e:
        logger.warning(f"Invalid webhook payload: {e}")
        return JSONResponse(status_code=400, content={"error": INVALID_MESSAGE_ERROR})

    inbound = payload.get_text_message()
    if inbound is None:
        logger.warning("Webhook received without a text message")
        return JSONResponse(status_code=400, content={"error": INVALID_MESSAGE_ERROR})

    logger.info(
        f"Incoming message from {inbound.session_id}: "
        f"id={inbound.message_id}, sent_at={inbound.sent_at}"
    )

    try:
        reply = await orchestrator.handle_message(inbound.session_id, inbound.text)
    except Exception as e:
        logger.exception(f"Error processing message {inbound.message_id}: {e}")
        return JSONResponse(status_code=500, content={"error": PROCESSING_ERROR})

    return {"success": reply.success, "response": reply.text}
