from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class JID(BaseModel):
    """A WhatsApp address, ``user@server``."""

    model_config = ConfigDict(frozen=True)

    user: str
    server: str

    def __str__(self) -> str:
        return f"{self.user}@{self.server}"


class Device(BaseModel):
    """A device identity held by the session store. Unpaired devices have no JID yet."""

    jid: JID | None = None
    push_name: str = ""

    @property
    def is_paired(self) -> bool:
        return self.jid is not None


class Presence(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


# Outbound envelopes ------------------------------------------------------------
class TextEnvelope(BaseModel):
    """Plain conversation text."""

    kind: Literal["text"] = "text"
    text: str


class ExtendedTextEnvelope(BaseModel):
    """Text that quotes a previously received message."""

    kind: Literal["extended_text"] = "extended_text"
    text: str
    quoted: dict[str, Any]


Envelope = Annotated[Union[TextEnvelope, ExtendedTextEnvelope], Field(discriminator="kind")]


class SendResponse(BaseModel):
    id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    server_id: int | None = None


# Inbound events ----------------------------------------------------------------
class Connected(BaseModel):
    kind: Literal["connected"] = "connected"


class PushNameSetting(BaseModel):
    kind: Literal["push_name_setting"] = "push_name_setting"
    push_name: str = ""


class MessageReceived(BaseModel):
    kind: Literal["message"] = "message"
    id: str
    chat: JID
    sender: JID
    is_from_me: bool = False
    is_group: bool = False
    push_name: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    content: dict[str, Any] = Field(default_factory=dict)

    def source_string(self) -> str:
        if self.sender != self.chat:
            return f"{self.sender} in {self.chat}"
        return str(self.chat)


class UnhandledEvent(BaseModel):
    """Any library event the bot does not react to."""

    kind: Literal["unhandled"] = "unhandled"
    name: str


Event = Annotated[
    Union[Connected, PushNameSetting, MessageReceived, UnhandledEvent],
    Field(discriminator="kind"),
]


# Pairing -----------------------------------------------------------------------
class QRItem(BaseModel):
    """One item on the pairing channel; ``code`` is set only for ``event == "code"``."""

    event: str
    code: str | None = None

    @property
    def is_code(self) -> bool:
        return self.event == "code"
