from .engine import EconomyEngine, get_engine
from .errors import EconomyError
from .notifications import (
    EconomyEvent, NotificationDispatcher, NullDispatcher, RecordingDispatcher, SocketIODispatcher,
)

__all__ = [
    "EconomyEngine", "get_engine", "EconomyError",
    "EconomyEvent", "NotificationDispatcher", "NullDispatcher", "RecordingDispatcher", "SocketIODispatcher",
]
