"""Fire-and-forget events emitted after a unit of work commits."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

EVENT_KINDS = ("balance", "inventory", "task", "contract")


@dataclass(frozen=True)
class EconomyEvent:
    character_id: str
    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"character_id": self.character_id, "kind": self.kind, "payload": dict(self.payload)}


class NotificationDispatcher:
    """Interface; concrete transports override ``dispatch``."""

    def dispatch(self, event: EconomyEvent) -> None:
        raise NotImplementedError

    def dispatch_all(self, events: List[EconomyEvent]) -> None:
        for event in events:
            try:
                self.dispatch(event)
            except Exception:
                logger.exception(
                    "notify_failed character_id=%s kind=%s", event.character_id, event.kind
                )


class NullDispatcher(NotificationDispatcher):
    def dispatch(self, event: EconomyEvent) -> None:
        return None


class RecordingDispatcher(NotificationDispatcher):
    """Keeps every event in memory; handy for tests and the dev console."""

    def __init__(self):
        self.events: List[EconomyEvent] = []

    def dispatch(self, event: EconomyEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> List[EconomyEvent]:
        return [e for e in self.events if e.kind == kind]


class SocketIODispatcher(NotificationDispatcher):
    """Push events to the character's Socket.IO room (``economy:<kind>``)."""

    def __init__(self, socketio):
        self.socketio = socketio

    def dispatch(self, event: EconomyEvent) -> None:
        self.socketio.emit(f"economy:{event.kind}", event.as_dict(), to=str(event.character_id))
