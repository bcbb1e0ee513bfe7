from __future__ import annotations

import logging
import queue
import sqlite3
import threading
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from google.protobuf.json_format import MessageToDict, ParseDict
from neonize.client import NewClient
from neonize.events import (
    ConnectedEv,
    DisconnectedEv,
    LoggedOutEv,
    MessageEv,
    PairStatusEv,
    PushNameSettingEv,
)
from neonize.proto.waCompanionReg.WAWebProtobufsCompanionReg_pb2 import DeviceProps
from neonize.proto.waE2E.WAWebProtobufsE2E_pb2 import ContextInfo, ExtendedTextMessage, Message
from neonize.utils.enum import Presence as WAPresence
from neonize.utils.jid import build_jid

from anvbot.adapters.base import EventHandler, ProtocolAdapter, ProtocolClient, SessionStore
from anvbot.config import DBDialect, HistorySyncConfig
from anvbot.domain import (
    JID,
    Connected,
    Device,
    Envelope,
    Event,
    ExtendedTextEnvelope,
    MessageReceived,
    Presence,
    PushNameSetting,
    QRItem,
    SendResponse,
    UnhandledEvent,
)
from anvbot.errors import AlreadyPairedError, ConnectError, DeviceLookupError, SendError, StoreError

_PRESENCE = {
    Presence.AVAILABLE: WAPresence.AVAILABLE,
    Presence.UNAVAILABLE: WAPresence.UNAVAILABLE,
}

# Closes the pairing channel.
_CLOSE = None


def _sqlite_path(db_name: str) -> Path:
    """Extract the file path from ``file:<path>?...`` or return the name as a path."""
    if db_name.startswith("file:"):
        return Path(urlparse(db_name).path or db_name[5:].split("?", 1)[0])
    return Path(db_name)


def _to_jid(raw: Any) -> JID:
    return JID(user=raw.User, server=raw.Server)


def _to_timestamp(raw: int) -> datetime:
    # whatsmeow reports seconds; some bindings report milliseconds
    seconds = raw / 1000 if raw > 10**12 else raw
    return datetime.fromtimestamp(seconds, tz=UTC)


def _to_message(envelope: Envelope) -> Message:
    if isinstance(envelope, ExtendedTextEnvelope):
        return Message(
            extendedTextMessage=ExtendedTextMessage(
                text=envelope.text,
                contextInfo=ContextInfo(quotedMessage=ParseDict(envelope.quoted, Message())),
            )
        )
    return Message(conversation=envelope.text)


def _to_event(raw: Any) -> Event:
    if isinstance(raw, ConnectedEv):
        return Connected()
    if isinstance(raw, PushNameSettingEv):
        return PushNameSetting()
    if isinstance(raw, MessageEv):
        source = raw.Info.MessageSource
        return MessageReceived(
            id=raw.Info.ID,
            chat=_to_jid(source.Chat),
            sender=_to_jid(source.Sender),
            is_from_me=source.IsFromMe,
            is_group=source.IsGroup,
            push_name=raw.Info.Pushname,
            timestamp=_to_timestamp(raw.Info.Timestamp),
            content=MessageToDict(raw.Message),
        )
    return UnhandledEvent(name=type(raw).__name__)


class NeonizeClient(ProtocolClient):
    """ProtocolClient backed by neonize's synchronous ``NewClient``.

    neonize's ``connect`` blocks for the lifetime of the connection, so it runs
    on a daemon thread. ``connect`` returns once the library reports either a
    connection or a pairing code, and raises ConnectError if the connection
    thread dies first.
    """

    def __init__(
        self,
        database: str,
        device: Device,
        *,
        logger: logging.Logger,
        device_name: str = "AnvBot",
        history_sync: HistorySyncConfig | None = None,
        connect_timeout_s: float = 30.0,
    ) -> None:
        self.device = device
        self._logger = logger
        self._connect_timeout_s = connect_timeout_s
        self._handlers: list[EventHandler] = []
        self._qr_queue: queue.Queue[QRItem | None] | None = None
        self._qr_lock = threading.Lock()
        self._ready = threading.Event()
        self._thread: threading.Thread | None = None
        self._connect_error: BaseException | None = None

        props = DeviceProps(os=device_name)
        if history_sync is not None:
            props.requireFullSync = True
            props.historySyncConfig.CopyFrom(
                DeviceProps.HistorySyncConfig(
                    fullSyncDaysLimit=history_sync.full_sync_days_limit,
                    fullSyncSizeMbLimit=history_sync.full_sync_size_mb_limit,
                    storageQuotaMb=history_sync.storage_quota_mb,
                )
            )
        self._client = NewClient(database, props=props)
        self._client.qr(self._on_qr)
        for ev_type in (ConnectedEv, PushNameSettingEv, MessageEv, PairStatusEv, DisconnectedEv, LoggedOutEv):
            self._client.event(ev_type)(self._on_event)

    # Public API -----------------------------------------------------------------
    @property
    def push_name(self) -> str:
        if self.device.push_name:
            return self.device.push_name
        if not self._ready.is_set():
            return ""
        me = self._client.get_me()
        return getattr(me, "PushName", "") or ""

    def add_event_handler(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def get_qr_channel(self) -> Iterator[QRItem]:
        if self.device.is_paired:
            raise AlreadyPairedError(f"device {self.device.jid} is already registered")
        self._qr_queue = queue.Queue()
        return self._drain(self._qr_queue)

    def connect(self) -> None:
        self._thread = threading.Thread(target=self._run, name="neonize-connect", daemon=True)
        self._thread.start()
        if not self._ready.wait(self._connect_timeout_s):
            raise ConnectError(f"no response from WhatsApp within {self._connect_timeout_s:.0f}s")
        if self._connect_error is not None:
            raise ConnectError(str(self._connect_error)) from self._connect_error

    def send_message(self, to: JID, envelope: Envelope) -> SendResponse:
        try:
            resp = self._client.send_message(build_jid(to.user, to.server), _to_message(envelope))
        except Exception as exc:
            raise SendError(str(exc)) from exc
        return SendResponse(
            id=resp.ID,
            timestamp=_to_timestamp(resp.Timestamp),
            server_id=getattr(resp, "ServerID", None) or None,
        )

    def send_presence(self, presence: Presence) -> None:
        try:
            self._client.send_presence(_PRESENCE[presence])
        except Exception as exc:
            raise SendError(str(exc)) from exc

    # Internals -----------------------------------------------------------------
    def _run(self) -> None:
        try:
            self._client.connect()
        except Exception as exc:
            self._connect_error = exc
            self._logger.error("Connection thread stopped: %s", exc)
        finally:
            self._ready.set()
            self._close_qr()

    def _drain(self, q: queue.Queue[QRItem | None]) -> Iterator[QRItem]:
        while True:
            item = q.get()
            if item is _CLOSE:
                return
            yield item

    def _push_qr(self, item: QRItem) -> None:
        q = self._qr_queue
        if q is not None:
            q.put(item)

    def _close_qr(self) -> None:
        # Library callbacks and the connect thread may close concurrently.
        with self._qr_lock:
            q, self._qr_queue = self._qr_queue, None
        if q is not None:
            q.put(_CLOSE)

    def _on_qr(self, _client: NewClient, data: bytes) -> None:
        self._push_qr(QRItem(event="code", code=data.decode() if isinstance(data, bytes) else str(data)))
        self._ready.set()

    def _on_event(self, _client: NewClient, raw: Any) -> None:
        if isinstance(raw, PairStatusEv):
            self.device = Device(jid=_to_jid(raw.ID), push_name=self.device.push_name)
            self._push_qr(QRItem(event="success"))
            self._close_qr()
        elif isinstance(raw, ConnectedEv):
            self._ready.set()
            self._close_qr()
        event = _to_event(raw)
        for handler in self._handlers:
            handler(event)


class NeonizeStore(SessionStore):
    """Device store managed by neonize (whatsmeow's sqlstore underneath)."""

    def __init__(self, dialect: DBDialect, db_name: str, logger: logging.Logger, device_name: str) -> None:
        self._dialect = dialect
        self._db_name = db_name
        self._logger = logger
        self._device_name = device_name

    @property
    def database(self) -> str:
        if self._dialect == DBDialect.SQLITE3:
            return str(_sqlite_path(self._db_name))
        return self._db_name

    def get_first_device(self) -> Device:
        if self._dialect != DBDialect.SQLITE3:
            # whatsmeow creates or loads the device itself on connect
            return Device()
        path = _sqlite_path(self._db_name)
        if not path.exists():
            return Device()
        try:
            with sqlite3.connect(f"file:{path}?mode=ro", uri=True) as conn:
                rows = conn.execute("SELECT jid, push_name FROM whatsmeow_device LIMIT 2").fetchall()
        except sqlite3.OperationalError as exc:
            if "no such table" in str(exc):
                return Device()
            raise DeviceLookupError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise DeviceLookupError(str(exc)) from exc
        if not rows:
            return Device()
        if len(rows) > 1:
            self._logger.warning("Store holds %d devices, using the first one", len(rows))
        raw_jid, push_name = rows[0]
        user_part, _, server = str(raw_jid).partition("@")
        return Device(jid=JID(user=user_part.split(":", 1)[0], server=server), push_name=push_name or "")

    def new_client(
        self,
        device: Device,
        logger: logging.Logger,
        history_sync: HistorySyncConfig | None = None,
    ) -> NeonizeClient:
        return NeonizeClient(
            self.database,
            device,
            logger=logger,
            device_name=self._device_name,
            history_sync=history_sync,
        )


class NeonizeAdapter(ProtocolAdapter):
    name = "neonize"

    def __init__(self, device_name: str = "AnvBot") -> None:
        self._device_name = device_name

    def open_store(self, dialect: str, db_name: str, logger: logging.Logger) -> NeonizeStore:
        try:
            dialect_ = DBDialect(dialect)
        except ValueError as exc:
            raise StoreError(f"unsupported dialect {dialect!r}") from exc
        if dialect_ == DBDialect.SQLITE3:
            parent = _sqlite_path(db_name).resolve().parent
            if not parent.is_dir():
                raise StoreError(f"database directory {parent} does not exist")
        elif not db_name.startswith(("postgres://", "postgresql://")):
            raise StoreError("postgres dialect needs a postgres:// connection string")
        logger.debug("Using %s store at %s", dialect_.value, db_name)
        return NeonizeStore(dialect_, db_name, logger, self._device_name)
