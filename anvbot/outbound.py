from __future__ import annotations

from anvbot.domain import JID, Envelope, ExtendedTextEnvelope, MessageReceived, TextEnvelope
from anvbot.errors import RecipientError


def parse_recipient(to: str) -> JID:
    """Split ``user@server`` into a JID; anything else raises RecipientError."""
    parts = to.split("@")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise RecipientError(to)
    return JID(user=parts[0], server=parts[1])


def build_envelope(text: str, quoted: MessageReceived | None = None) -> Envelope:
    if quoted is None:
        return TextEnvelope(text=text)
    return ExtendedTextEnvelope(text=text, quoted=quoted.content)
