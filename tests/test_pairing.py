import io
import logging

from anvbot import pairing
from anvbot.domain import QRItem


def test_drain_renders_codes_in_order_and_logs_results(monkeypatch, caplog):
    caplog.set_level(logging.INFO)
    rendered: list[str] = []
    monkeypatch.setattr(pairing, "render_qr", lambda code, out=None: rendered.append(code))
    channel = [
        QRItem(event="code", code="2@a"),
        QRItem(event="code", code="2@b"),
        QRItem(event="code", code="2@c"),
        QRItem(event="success"),
    ]

    pairing.drain_qr_channel(channel, logging.getLogger("test.qr"))

    assert rendered == ["2@a", "2@b", "2@c"]
    assert "QR channel result: success" in caplog.text


def test_qr_loop_thread_exits_when_channel_closes():
    out = io.StringIO()
    thread = pairing.start_qr_loop(iter([QRItem(event="code", code="2@abc"), QRItem(event="timeout")]), logging.getLogger("test.qr"), out)
    thread.join(timeout=5)

    assert thread.daemon is True
    assert not thread.is_alive()
    assert "Scan this QR" in out.getvalue()


def test_render_qr_writes_terminal_code():
    out = io.StringIO()
    pairing.render_qr("2@Qw9x,ab+cd==,ef==,gh==", out)
    lines = out.getvalue().splitlines()
    assert len(lines) > 10
