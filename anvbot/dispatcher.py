from __future__ import annotations

import logging

from anvbot.adapters.base import ProtocolClient
from anvbot.domain import Connected, Event, MessageReceived, Presence, PushNameSetting, UnhandledEvent
from anvbot.logging_setup import get_logger


class EventDispatcher:
    """Reacts to inbound protocol events.

    Holds no state besides the client and logger, so every call is independent
    and may run on whatever thread the protocol library delivers from.
    """

    def __init__(self, client: ProtocolClient, logger: logging.Logger | None = None) -> None:
        self.client = client
        self._logger = logger or get_logger("EventHandler")

    def handle_event(self, event: Event) -> None:
        if isinstance(event, (Connected, PushNameSetting)):
            # Nothing to announce until the account identity is known.
            if not self.client.push_name:
                return
            self._announce_presence()
            if isinstance(event, Connected):
                self._handle_connected(event)
        elif isinstance(event, MessageReceived):
            self._handle_message(event)
        elif isinstance(event, UnhandledEvent):
            self._logger.debug("Ignoring %s event", event.name)
        else:
            self._logger.debug("Ignoring unknown event %r", event)

    # Internals -----------------------------------------------------------------
    def _announce_presence(self) -> None:
        # Presence is sent on connect and on push name change so outgoing
        # messages always carry the current push name.
        try:
            self.client.send_presence(Presence.AVAILABLE)
        except Exception as exc:
            self._logger.warning("Failed to send available presence: %s", exc)
        else:
            self._logger.info("Marked self as available")

    def _handle_connected(self, event: Connected) -> None:
        self._logger.info("Connected to WhatsApp")

    def _handle_message(self, event: MessageReceived) -> None:
        self._logger.info(event.source_string())
        self._logger.info("Received message %s from %s: %s", event.id, event.source_string(), event.content)
