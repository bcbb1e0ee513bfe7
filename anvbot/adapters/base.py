from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from anvbot.config import HistorySyncConfig
from anvbot.domain import JID, Device, Envelope, Event, Presence, QRItem, SendResponse

EventHandler = Callable[[Event], None]


class ProtocolClient(ABC):
    """A connected (or connectable) WhatsApp client bound to one device.

    Implementations wrap a multi-device protocol library; the bot never speaks
    the wire protocol itself.
    """

    @property
    @abstractmethod
    def push_name(self) -> str:  # pragma: no cover - interface
        ...

    @abstractmethod
    def add_event_handler(self, handler: EventHandler) -> None:  # pragma: no cover - interface
        ...

    @abstractmethod
    def get_qr_channel(self) -> Iterable[QRItem]:  # pragma: no cover - interface
        """Return the pairing channel.

        Raises AlreadyPairedError when the device is already registered and
        PairingError for any other failure.
        """

    @abstractmethod
    def connect(self) -> None:  # pragma: no cover - interface
        ...

    @abstractmethod
    def send_message(self, to: JID, envelope: Envelope) -> SendResponse:  # pragma: no cover - interface
        ...

    @abstractmethod
    def send_presence(self, presence: Presence) -> None:  # pragma: no cover - interface
        ...


class SessionStore(ABC):
    """Persistent device store opened for one dialect + connection string."""

    @abstractmethod
    def get_first_device(self) -> Device:  # pragma: no cover - interface
        ...

    @abstractmethod
    def new_client(
        self,
        device: Device,
        logger: logging.Logger,
        history_sync: HistorySyncConfig | None = None,
    ) -> ProtocolClient:  # pragma: no cover - interface
        ...


class ProtocolAdapter(ABC):
    """Entry point into a protocol library: opens its session store."""

    name: str

    @abstractmethod
    def open_store(self, dialect: str, db_name: str, logger: logging.Logger) -> SessionStore:  # pragma: no cover - interface
        ...
