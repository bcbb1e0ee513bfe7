from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Iterable
from typing import TextIO

import segno

from anvbot.domain import QRItem


def render_qr(code: str, out: TextIO | None = None) -> None:
    """Print ``code`` as a scannable QR code on the terminal."""
    stream = out or sys.stdout
    stream.write("\nScan this QR in WhatsApp -> Settings -> Linked devices -> Link a device\n")
    segno.make_qr(code, error="l").terminal(out=stream, compact=True)
    stream.flush()


def drain_qr_channel(channel: Iterable[QRItem], logger: logging.Logger, out: TextIO | None = None) -> None:
    for item in channel:
        logger.debug("QR channel event: %s", item.event)
        if item.is_code and item.code:
            render_qr(item.code, out)
        else:
            logger.info("QR channel result: %s", item.event)


def start_qr_loop(channel: Iterable[QRItem], logger: logging.Logger, out: TextIO | None = None) -> threading.Thread:
    """Drain ``channel`` on a daemon thread; the thread ends when the channel closes."""
    thread = threading.Thread(
        target=drain_qr_channel,
        args=(channel, logger, out),
        name="qr-channel",
        daemon=True,
    )
    thread.start()
    return thread
