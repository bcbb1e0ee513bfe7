from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Iterator

from anvbot.adapters.base import EventHandler, ProtocolAdapter, ProtocolClient, SessionStore
from anvbot.config import HistorySyncConfig
from anvbot.domain import JID, Connected, Device, Envelope, Event, Presence, QRItem, SendResponse
from anvbot.errors import (
    AlreadyPairedError,
    DeviceLookupError,
    SendError,
    StoreError,
)
from anvbot.logging_setup import get_logger


class MockClient(ProtocolClient):
    """In-memory protocol client.

    - Records every presence update and outbound message for inspection
    - Delivers events synchronously through ``emit``
    - Unpaired devices yield the configured QR codes, then ``success``
    - Failures are injected by passing exceptions to the constructor
    """

    def __init__(
        self,
        device: Device,
        *,
        logger: logging.Logger | None = None,
        history_sync: HistorySyncConfig | None = None,
        qr_codes: Iterable[str] = ("mock-qr-1",),
        qr_error: Exception | None = None,
        connect_error: Exception | None = None,
        send_error: Exception | None = None,
        presence_error: Exception | None = None,
    ) -> None:
        self.device = device
        self.history_sync = history_sync
        self._logger = logger or get_logger(self.__class__.__name__)
        self._handlers: list[EventHandler] = []
        self._qr_codes = list(qr_codes)
        self._qr_error = qr_error
        self._connect_error = connect_error
        self._send_error = send_error
        self._presence_error = presence_error
        self._ids = itertools.count(1)

        self.connected = False
        self.presence_calls: list[Presence] = []
        self.sent: list[tuple[JID, Envelope]] = []

    # Public API -----------------------------------------------------------------
    @property
    def push_name(self) -> str:
        return self.device.push_name

    @property
    def handlers(self) -> list[EventHandler]:
        return list(self._handlers)

    def add_event_handler(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def get_qr_channel(self) -> Iterator[QRItem]:
        if self._qr_error is not None:
            raise self._qr_error
        if self.device.is_paired:
            raise AlreadyPairedError(f"device {self.device.jid} is already registered")
        return iter([*(QRItem(event="code", code=c) for c in self._qr_codes), QRItem(event="success")])

    def connect(self) -> None:
        if self._connect_error is not None:
            raise self._connect_error
        self.connected = True
        self._logger.debug("Mock client connected as %s", self.device.jid)
        self.emit(Connected())

    def send_message(self, to: JID, envelope: Envelope) -> SendResponse:
        if self._send_error is not None:
            raise self._send_error
        if not self.connected:
            raise SendError("not connected")
        self.sent.append((to, envelope))
        return SendResponse(id=f"MOCK{next(self._ids):06d}")

    def send_presence(self, presence: Presence) -> None:
        self.presence_calls.append(presence)
        if self._presence_error is not None:
            raise self._presence_error

    # Test helpers -----------------------------------------------------------------
    def emit(self, event: Event) -> None:
        for handler in self._handlers:
            handler(event)

    def get_state_snapshot(self) -> dict[str, int]:
        return {
            "presence": len(self.presence_calls),
            "sent": len(self.sent),
            "handlers": len(self._handlers),
        }


class MockStore(SessionStore):
    def __init__(self, device: Device | None, client_options: dict | None = None) -> None:
        self._device = device
        self._client_options = client_options or {}
        self.clients: list[MockClient] = []

    def get_first_device(self) -> Device:
        if self._device is None:
            raise DeviceLookupError("no device in store")
        return self._device

    def new_client(
        self,
        device: Device,
        logger: logging.Logger,
        history_sync: HistorySyncConfig | None = None,
    ) -> MockClient:
        client = MockClient(device, logger=logger, history_sync=history_sync, **self._client_options)
        self.clients.append(client)
        return client


class MockAdapter(ProtocolAdapter):
    """Adapter with no network or disk access.

    ``missing_device=True`` simulates a store that cannot return a device. Extra keyword
    arguments are forwarded to every MockClient the store builds.
    """

    name = "mock"

    def __init__(
        self,
        device: Device | None = None,
        *,
        missing_device: bool = False,
        open_error: Exception | None = None,
        **client_options,
    ) -> None:
        self._device = None if missing_device else (device if device is not None else Device())
        self._open_error = open_error
        self._client_options = client_options
        self.stores: list[MockStore] = []

    def open_store(self, dialect: str, db_name: str, logger: logging.Logger) -> MockStore:
        if self._open_error is not None:
            raise StoreError(str(self._open_error)) from self._open_error
        logger.debug("Opening mock %s store at %s", dialect, db_name)
        store = MockStore(self._device, self._client_options)
        self.stores.append(store)
        return store

    @property
    def last_client(self) -> MockClient:
        return self.stores[-1].clients[-1]

