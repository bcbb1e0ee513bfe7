import pytest

from anvbot.domain import JID, ExtendedTextEnvelope, MessageReceived, TextEnvelope
from anvbot.errors import RecipientError
from anvbot.outbound import build_envelope, parse_recipient


def test_parse_recipient_splits_user_and_server():
    jid = parse_recipient("6281234567890@s.whatsapp.net")
    assert jid.user == "6281234567890"
    assert jid.server == "s.whatsapp.net"
    assert str(jid) == "6281234567890@s.whatsapp.net"


@pytest.mark.parametrize("to", ["", "6281234567890", "a@b@c", "@s.whatsapp.net", "6281234567890@"])
def test_parse_recipient_rejects_malformed(to):
    with pytest.raises(RecipientError):
        parse_recipient(to)


def test_recipient_error_is_value_error():
    with pytest.raises(ValueError):
        parse_recipient("nobody")


def test_plain_envelope_without_quote():
    env = build_envelope("hello")
    assert env == TextEnvelope(text="hello")


def test_extended_envelope_carries_quoted_content():
    chat = JID(user="6281234567890", server="s.whatsapp.net")
    quoted = MessageReceived(id="3EB0ABC", chat=chat, sender=chat, content={"conversation": "ping"})

    env = build_envelope("pong", quoted)

    assert isinstance(env, ExtendedTextEnvelope)
    assert env.text == "pong"
    assert env.quoted == {"conversation": "ping"}
