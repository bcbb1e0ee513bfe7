from __future__ import annotations


class AnvError(Exception):
    """Base exception for this project."""


class ConfigError(AnvError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(f"{field}: {message}" if field else message)
        self.field = field


class StoreError(AnvError):
    """The device store could not be opened."""


class DeviceLookupError(AnvError):
    """The store could not return a device."""


class PairingError(AnvError):
    """The pairing (QR) channel could not be obtained."""


class AlreadyPairedError(PairingError):
    """The store already holds a paired device, so no QR channel is needed."""


class ConnectError(AnvError):
    """Connecting to WhatsApp failed."""


class SendError(AnvError):
    """The protocol client rejected an outbound message or presence update."""


class RecipientError(AnvError, ValueError):
    """A recipient address is not of the form ``user@server``."""

    def __init__(self, recipient: str):
        super().__init__(f"invalid recipient {recipient!r}, expected 'user@server'")
        self.recipient = recipient
