import logging

from anvbot.adapters.mock import MockClient
from anvbot.dispatcher import EventDispatcher
from anvbot.domain import (
    JID,
    Connected,
    Device,
    MessageReceived,
    Presence,
    PushNameSetting,
    UnhandledEvent,
)
from anvbot.errors import SendError


def _message(i: int) -> MessageReceived:
    chat = JID(user="120363000000000000", server="g.us")
    sender = JID(user="6281234567890", server="s.whatsapp.net")
    return MessageReceived(id=f"MSG{i}", chat=chat, sender=sender, is_group=True, content={"conversation": "hi"})


def test_connected_with_push_name_marks_available(caplog):
    caplog.set_level(logging.INFO)
    client = MockClient(Device(push_name="Bot"))
    dispatcher = EventDispatcher(client)

    dispatcher.handle_event(Connected())

    assert client.presence_calls == [Presence.AVAILABLE]
    assert any(r.levelno == logging.INFO and "Marked self as available" in r.getMessage() for r in caplog.records)
    assert "Connected to WhatsApp" in caplog.text


def test_connected_without_push_name_does_nothing(caplog):
    caplog.set_level(logging.DEBUG)
    client = MockClient(Device(push_name=""))
    EventDispatcher(client).handle_event(Connected())

    assert client.presence_calls == []
    assert "Marked self as available" not in caplog.text


def test_push_name_setting_without_push_name_does_nothing(caplog):
    caplog.set_level(logging.DEBUG)
    client = MockClient(Device(push_name=""))
    EventDispatcher(client).handle_event(PushNameSetting(push_name=""))

    assert client.presence_calls == []
    assert "Marked self as available" not in caplog.text


def test_push_name_setting_marks_available():
    client = MockClient(Device(push_name="Bot"))
    EventDispatcher(client).handle_event(PushNameSetting(push_name="Bot"))
    assert client.presence_calls == [Presence.AVAILABLE]


def test_presence_failure_is_logged_not_raised(caplog):
    caplog.set_level(logging.INFO)
    client = MockClient(Device(push_name="Bot"), presence_error=SendError("socket closed"))

    EventDispatcher(client).handle_event(Connected())

    assert len(client.presence_calls) == 1
    assert "Failed to send available presence: socket closed" in caplog.text
    assert "Marked self as available" not in caplog.text


def test_messages_never_trigger_replies(caplog):
    caplog.set_level(logging.INFO)
    client = MockClient(Device(push_name="Bot"))
    client.connected = True
    dispatcher = EventDispatcher(client)

    for i in range(5):
        dispatcher.handle_event(_message(i))

    assert client.sent == []
    assert client.presence_calls == []
    assert "Received message MSG4 from 6281234567890@s.whatsapp.net in 120363000000000000@g.us" in caplog.text


def test_unhandled_events_are_ignored():
    client = MockClient(Device(push_name="Bot"))
    EventDispatcher(client).handle_event(UnhandledEvent(name="ReceiptEv"))
    assert client.get_state_snapshot() == {"presence": 0, "sent": 0, "handlers": 0}


def test_injected_logger_is_used(caplog):
    caplog.set_level(logging.INFO, logger="custom.dispatch")
    client = MockClient(Device(push_name="Bot"))
    EventDispatcher(client, logging.getLogger("custom.dispatch")).handle_event(Connected())
    assert [r.name for r in caplog.records if "Marked self" in r.getMessage()] == ["custom.dispatch"]


def test_source_string_for_direct_chat():
    jid = JID(user="1", server="s.whatsapp.net")
    assert MessageReceived(id="X", chat=jid, sender=jid).source_string() == "1@s.whatsapp.net"
