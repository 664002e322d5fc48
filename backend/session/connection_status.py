"""
Connection status for a realtime session.

DISCONNECTED --connect--> CONNECTING --transport:connected--> CONNECTED
CONNECTED/CONNECTING --disconnect|transport error--> DISCONNECTED

Transitions are decided exclusively by the reducer.
"""
from __future__ import annotations

from enum import Enum


class ConnectionStatus(str, Enum):
    """
    Transport connection lifecycle status.

    Independent of transcript state: conversation content may still be
    reconciled while not CONNECTED, but nothing is sent outbound.
    """
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"

    @classmethod
    def from_transport(cls, raw: str | None) -> ConnectionStatus:
        """Map a transport status string; anything unknown means DISCONNECTED."""
        if raw == "connected":
            return cls.CONNECTED
        if raw == "connecting":
            return cls.CONNECTING
        return cls.DISCONNECTED
