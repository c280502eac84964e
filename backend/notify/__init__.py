"""
Observer notification exports.
"""

from .broadcaster import BroadcastReport, Broadcaster, Connection, MessageType, ObserverRegistry

__all__ = [
    "Broadcaster",
    "BroadcastReport",
    "Connection",
    "MessageType",
    "ObserverRegistry",
]
