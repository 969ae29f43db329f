"""Unit of work keyed by character (or any set of entities).

``TransactionCoordinator.execute(character_id, fn)`` takes the per-character
lock, row-locks the character, runs ``fn(uow)`` and commits, or rolls back
everything ``fn`` did if it raises. Events and progress feeds queued on the
unit are only delivered after a successful commit.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError

from ..config import LOCK_TIMEOUT_SECONDS
from ..db import db
from ..models import BloodContract, Character, Gang
from .errors import (
    Busy,
    CharacterNotFound,
    ContractNotFound,
    GangNotFound,
    TransactionRequired,
)
from .inventory import InventoryStore
from .ledger import Ledger
from .locks import LockKey, LockRegistry
from .notifications import EVENT_KINDS, EconomyEvent, NotificationDispatcher, NullDispatcher

logger = logging.getLogger(__name__)

# lockable entity kinds -> (model, not-found error)
LOCKABLE = {
    "character": (Character, CharacterNotFound),
    "contract": (BloodContract, ContractNotFound),
    "gang": (Gang, GangNotFound),
}


def _is_lock_timeout(exc: OperationalError) -> bool:
    if getattr(exc.orig, "pgcode", None) in ("55P03", "40P01"):
        return True
    msg = str(exc.orig).lower()
    return "database is locked" in msg or "lock wait timeout" in msg


class UnitOfWork:
    """Handle given to the function run inside ``execute``."""

    def __init__(self, coordinator: "TransactionCoordinator", keys: List[LockKey], session):
        self.coordinator = coordinator
        self.keys = keys
        self.session = session
        self.ledger = Ledger(self)
        self.inventory = InventoryStore(self)
        self._open = True
        self._rows: Dict[LockKey, Any] = {}
        self._events: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._progress: List[Tuple[str, str, int]] = []

    @property
    def catalog(self):
        return self.coordinator.catalog

    @property
    def is_open(self) -> bool:
        return self._open

    def ensure_open(self) -> None:
        if not self.is_open:
            raise TransactionRequired("economy mutation outside an open unit of work")

    def lock(self, kind: str, ident):
        """Row-lock (SELECT ... FOR UPDATE) an entity covered by this unit."""
        self.ensure_open()
        key = (kind, ident)
        if key in self._rows:
            return self._rows[key]
        if key not in self.keys:
            raise TransactionRequired(f"{kind} {ident} is not locked by this unit of work")
        model, not_found = LOCKABLE[kind]
        pk = model.__mapper__.primary_key[0]
        stmt = (
            select(model)
            .where(pk == ident)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = self.session.scalars(stmt).first()
        if row is None:
            raise not_found(ident)
        self._rows[key] = row
        return row

    def character(self, character_id: str) -> Character:
        return self.lock("character", character_id)

    def emit(self, character_id: str, kind: str, payload: Optional[Dict[str, Any]] = None) -> None:
        if kind not in EVENT_KINDS:
            raise ValueError(f"unknown event kind {kind!r}")
        # one event per (character, kind); later payload keys win
        self._events.setdefault((character_id, kind), {}).update(payload or {})

    def track(self, character_id: str, metric: str, value: int) -> None:
        self._progress.append((character_id, metric, value))

    @property
    def events(self) -> List[EconomyEvent]:
        return [EconomyEvent(cid, kind, payload) for (cid, kind), payload in self._events.items()]

    @property
    def progress(self) -> List[Tuple[str, str, int]]:
        return list(self._progress)

    def close(self) -> None:
        self._open = False


class TransactionCoordinator:
    def __init__(
        self,
        catalog=None,
        dispatcher: NotificationDispatcher | None = None,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
        locks: LockRegistry | None = None,
    ):
        self.catalog = catalog
        self.dispatcher = dispatcher or NullDispatcher()
        self.lock_timeout = lock_timeout
        self.locks = locks or LockRegistry(lock_timeout)
        # set by the engine: callable(list of (character_id, metric, value))
        self.progress_sink: Optional[Callable[[List[Tuple[str, str, int]]], None]] = None
        self._local = threading.local()

    @property
    def current(self) -> Optional[UnitOfWork]:
        return getattr(self._local, "unit", None)

    def execute(self, character_id: str, fn: Callable[[UnitOfWork], Any]):
        return self.execute_many([("character", character_id)], fn)

    def execute_many(self, keys: Iterable[LockKey], fn: Callable[[UnitOfWork], Any]):
        if self.current is not None:
            raise RuntimeError("nested unit of work; compose operations inside one execute() call")
        keys = self.locks.ordered(keys)
        session = db.session
        with self.locks.hold(*keys, timeout=self.lock_timeout):
            uow = UnitOfWork(self, keys, session)
            self._local.unit = uow
            try:
                self._set_db_lock_timeout(session)
                # row locks in the same ascending order as the process locks
                for kind, ident in keys:
                    uow.lock(kind, ident)
                result = fn(uow)
                session.commit()
            except OperationalError as exc:
                session.rollback()
                if _is_lock_timeout(exc):
                    raise Busy(keys, self.lock_timeout) from exc
                raise
            except Exception:
                session.rollback()
                raise
            finally:
                uow.close()
                self._local.unit = None
        self._after_commit(uow)
        return result

    def _set_db_lock_timeout(self, session) -> None:
        if session.get_bind().dialect.name == "postgresql":
            ms = int(self.lock_timeout * 1000)
            session.execute(text(f"SET LOCAL lock_timeout = '{ms}ms'"))

    def _after_commit(self, uow: UnitOfWork) -> None:
        self.dispatcher.dispatch_all(uow.events)
        entries = uow.progress
        if entries and self.progress_sink is not None:
            try:
                self.progress_sink(entries)
            except Exception:
                logger.exception("progress_feed_failed keys=%s", uow.keys)
