from __future__ import annotations

import logging
import threading
from typing import TextIO

from anvbot.adapters.base import ProtocolAdapter, ProtocolClient
from anvbot.config import Settings, new_config
from anvbot.dispatcher import EventDispatcher
from anvbot.domain import MessageReceived, SendResponse
from anvbot.errors import AlreadyPairedError, ConnectError, DeviceLookupError, PairingError, StoreError
from anvbot.logging_setup import get_logger
from anvbot.outbound import build_envelope, parse_recipient
from anvbot.pairing import start_qr_loop


class Bot:
    """One protocol client plus its event dispatcher, alive for the whole process."""

    def __init__(
        self,
        client: ProtocolClient,
        dispatcher: EventDispatcher,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.dispatcher = dispatcher
        self._logger = logger or get_logger("Anv")
        self.qr_thread: threading.Thread | None = None

    def start(self, qr_out: TextIO | None = None) -> None:
        """Start pairing if the device is new, then connect."""
        try:
            channel = self.client.get_qr_channel()
        except AlreadyPairedError:
            self._logger.debug("Device already paired, skipping QR login")
        except PairingError as exc:
            self._logger.error("Failed to get QR channel: %s", exc)
            raise
        except Exception as exc:
            self._logger.error("Failed to get QR channel: %s", exc)
            raise PairingError(str(exc)) from exc
        else:
            self.qr_thread = start_qr_loop(channel, self._logger, qr_out)

        self._logger.info("Connecting to WhatsApp...")
        try:
            self.client.connect()
        except ConnectError as exc:
            self._logger.error("Error connecting to WhatsApp: %s", exc)
            raise
        except Exception as exc:
            self._logger.error("Error connecting to WhatsApp: %s", exc)
            raise ConnectError(str(exc)) from exc

    def reply(self, to: str, message: str, quoted: MessageReceived | None = None) -> SendResponse:
        jid = parse_recipient(to)
        envelope = build_envelope(message, quoted)
        try:
            return self.client.send_message(jid, envelope)
        except Exception as exc:
            self._logger.error("Error sending message: %s", exc)
            raise

    def run_forever(self) -> None:
        # Events arrive on library threads; the main thread only waits.
        threading.Event().wait()


def new_bot(
    settings: Settings | None = None,
    *,
    adapter: ProtocolAdapter | None = None,
    logger: logging.Logger | None = None,
) -> Bot:
    """Open the device store, build a client for its first device and wire the dispatcher."""
    if settings is None:
        settings = new_config()
    log = logger or get_logger("Anv")
    log.info("Starting Anv with config %s", settings.describe())

    if adapter is None:
        from anvbot.adapters.neonize import NeonizeAdapter

        adapter = NeonizeAdapter(device_name=settings.DEVICE_NAME)

    log.debug("Opening %s store through the %s adapter", settings.DB_DIALECT.value, adapter.name)
    db_log = get_logger("Database", settings.LOG_LEVEL)
    client_log = get_logger("Client", settings.LOG_LEVEL)

    try:
        store = adapter.open_store(settings.DB_DIALECT.value, settings.DB_NAME, db_log)
    except StoreError as exc:
        client_log.error("Error connecting to database: %s", exc)
        raise
    except Exception as exc:
        client_log.error("Error connecting to database: %s", exc)
        raise StoreError(str(exc)) from exc

    try:
        device = store.get_first_device()
    except DeviceLookupError as exc:
        client_log.error("Error getting first device: %s", exc)
        raise
    except Exception as exc:
        client_log.error("Error getting first device: %s", exc)
        raise DeviceLookupError(str(exc)) from exc

    client = store.new_client(device, client_log, settings.history_sync())
    dispatcher = EventDispatcher(client, get_logger("EventHandler", settings.LOG_LEVEL))
    client.add_event_handler(dispatcher.handle_event)
    return Bot(client, dispatcher, log)
