"""Pydantic schemas for WhatsApp webhook payloads.

Only the inbound side of the Cloud API webhook is modelled. Fields that the
bot does not rely on are optional so that partial or future payload shapes
still parse; whether a payload is usable is decided by
``WhatsAppWebhookPayload.get_text_message``.

Reference: https://developers.facebook.com/docs/whatsapp/cloud-api/webhooks/payload-examples
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Message Types
# ============================================================================

class MessageType(str, Enum):
    """Types of WhatsApp messages."""
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"
    STICKER = "sticker"
    LOCATION = "location"
    CONTACTS = "contacts"
    INTERACTIVE = "interactive"
    BUTTON = "button"
    REACTION = "reaction"
    ORDER = "order"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class TextMessage(BaseModel):
    """Text message content."""
    body: str


class ContactProfile(BaseModel):
    """WhatsApp contact profile information."""
    name: str | None = None


class Contact(BaseModel):
    """Contact information from webhook."""
    wa_id: str | None = None
    profile: ContactProfile | None = None


# ============================================================================
# Main Message Schema
# ============================================================================

class Message(BaseModel):
    """Individual message from WhatsApp webhook."""
    id: str = ""
    from_: str | None = Field(default=None, alias="from")  # Sender's phone number
    timestamp: str | None = None
    type: MessageType = MessageType.UNKNOWN
    text: TextMessage | None = None

    model_config = {"populate_by_name": True}

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v: str) -> MessageType:
        """Convert unknown message types to UNKNOWN."""
        try:
            return MessageType(v)
        except ValueError:
            return MessageType.UNKNOWN

    @property
    def sender_phone(self) -> str | None:
        """Get the sender's phone number."""
        return self.from_

    @property
    def timestamp_datetime(self) -> datetime | None:
        """Convert the epoch-seconds timestamp to an aware datetime."""
        if not self.timestamp or not self.timestamp.isdigit():
            return None
        return datetime.fromtimestamp(int(self.timestamp), tz=timezone.utc)

    def get_text_content(self) -> str | None:
        """Return the body of a text message, or None for any other type."""
        if self.type == MessageType.TEXT and self.text:
            return self.text.body
        return None


# ============================================================================
# Webhook Payload Structure
# ============================================================================

class Metadata(BaseModel):
    """Metadata about the business phone number."""
    display_phone_number: str | None = None
    phone_number_id: str | None = None


class Value(BaseModel):
    """Value object containing messages or statuses."""
    messaging_product: str | None = None
    metadata: Metadata | None = None
    contacts: list[Contact] | None = None
    messages: list[Message] | None = None


class Change(BaseModel):
    """Change notification from webhook."""
    value: Value
    field: str | None = None


class Entry(BaseModel):
    """Entry in the webhook payload."""
    id: str | None = None  # WhatsApp Business Account ID
    changes: list[Change] = Field(default_factory=list)


class InboundText(BaseModel):
    """The part of an inbound webhook the conversation pipeline needs."""
    session_id: str
    text: str
    message_id: str = ""
    sent_at: datetime | None = None


class WhatsAppWebhookPayload(BaseModel):
    """Root schema for WhatsApp webhook payload.

    Example payload structure:
    {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "WHATSAPP_BUSINESS_ACCOUNT_ID",
            "changes": [{
                "value": {
                    "messaging_product": "whatsapp",
                    "metadata": {...},
                    "contacts": [...],
                    "messages": [...]
                },
                "field": "messages"
            }]
        }]
    }
    """
    object: str | None = None
    entry: list[Entry] = Field(default_factory=list)

    def get_first_message(self) -> Message | None:
        """Return ``entry[0].changes[0].value.messages[0]`` if present."""
        if not self.entry or not self.entry[0].changes:
            return None
        messages = self.entry[0].changes[0].value.messages
        if not messages:
            return None
        return messages[0]

    def get_text_message(self) -> InboundText | None:
        """Extract the sender and body of the first message.

        Returns:
            InboundText when the first message is a text message with a
            sender, None otherwise (status updates, media, malformed).
        """
        message = self.get_first_message()
        if message is None:
            return None
        body = message.get_text_content()
        if not body or not message.sender_phone:
            return None
        return InboundText(
            session_id=message.sender_phone,
            text=body,
            message_id=message.id,
            sent_at=message.timestamp_datetime,
        )
