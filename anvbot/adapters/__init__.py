from .base import ProtocolAdapter, ProtocolClient, SessionStore
from .mock import MockAdapter

# The neonize adapter loads a native library on import; see anvbot.cli._build_adapter.
__all__ = ["ProtocolAdapter", "ProtocolClient", "SessionStore", "MockAdapter"]
