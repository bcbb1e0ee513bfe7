"""AnvBot - a minimal WhatsApp chat bot.

The multi-device protocol is handled by an external client library reached
through the adapter interface in :mod:`anvbot.adapters.base`. This package
only wires configuration, session bootstrap, event dispatch, QR pairing and
text replies around it.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
