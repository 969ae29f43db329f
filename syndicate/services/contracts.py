"""Blood contracts and the background expiration sweeper.

A contract is open until either an assassin fulfils it or its expiry passes.
Both transitions are conditional updates guarded on ``status = 'open'`` so
that a player's fulfil and the sweeper can never both win.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Any, Dict, List

from sqlalchemy import select, update

from ..config import CONTRACT_SWEEP_INTERVAL, CONTRACT_TTL_HOURS, MONEY
from ..db import db
from ..models import (
    CONTRACT_EXPIRED,
    CONTRACT_FULFILLED,
    CONTRACT_OPEN,
    BloodContract,
    Character,
    utcnow,
)
from .errors import CharacterNotFound, Conflict, InvalidTarget
from .ledger import check_amount
from .notifications import EconomyEvent

logger = logging.getLogger(__name__)

_EXPIRED = object()


def _contract_dict(c: BloodContract) -> Dict[str, Any]:
    return {
        "id": c.id,
        "poster_id": c.poster_id,
        "target_id": c.target_id,
        "price": int(c.price),
        "status": c.status,
        "expires_at": c.expires_at.isoformat() if c.expires_at else None,
        "assassin_id": c.assassin_id,
    }


def _guarded(contract_id: str, *criteria):
    return (
        update(BloodContract)
        .where(BloodContract.id == contract_id, BloodContract.status == CONTRACT_OPEN, *criteria)
        .execution_options(synchronize_session=False)
    )


class ContractBoard:
    def __init__(self, coordinator, ttl_hours: float = CONTRACT_TTL_HOURS):
        self.coordinator = coordinator
        self.ttl_hours = ttl_hours

    def post(self, poster_id: str, target_id: str, price: int, ttl_hours: float | None = None) -> Dict[str, Any]:
        """Escrow ``price`` money from the poster and open a contract on the target."""
        check_amount(price, "price")
        if poster_id == target_id:
            raise InvalidTarget("you cannot target yourself")
        ttl = dt.timedelta(hours=self.ttl_hours if ttl_hours is None else ttl_hours)

        def open_contract(uow):
            if uow.session.get(Character, target_id) is None:
                raise CharacterNotFound(target_id)
            uow.ledger.debit(poster_id, MONEY, price)
            contract = BloodContract(
                poster_id=poster_id,
                target_id=target_id,
                price=price,
                status=CONTRACT_OPEN,
                expires_at=utcnow() + ttl,
            )
            uow.session.add(contract)
            uow.session.flush()
            data = _contract_dict(contract)
            uow.emit(poster_id, "contract", {"posted": data})
            logger.info("contract_posted id=%s poster_id=%s target_id=%s price=%s", contract.id, poster_id, target_id, price)
            return data

        return self.coordinator.execute(poster_id, open_contract)

    def fulfill(self, contract_id: str, assassin_id: str) -> Dict[str, Any]:
        """Close an open contract in the assassin's favour and pay them the price.

        Raises ``Conflict`` if the contract is no longer open, including when
        it turns out to be past expiry (it is marked expired in that case).
        """

        def close(uow):
            contract = uow.lock("contract", contract_id)
            if contract.status != CONTRACT_OPEN:
                raise Conflict(f"contract {contract_id} is {contract.status}")
            if assassin_id in (contract.poster_id, contract.target_id):
                raise InvalidTarget("you cannot fulfil your own contract or one on yourself")
            now = utcnow()
            if contract.expires_at <= now:
                res = uow.session.execute(_guarded(contract_id).values(status=CONTRACT_EXPIRED))
                if res.rowcount == 1:
                    uow.emit(contract.poster_id, "contract", {"expired": contract_id})
                return _EXPIRED

            res = uow.session.execute(
                _guarded(contract_id, BloodContract.expires_at > now).values(
                    status=CONTRACT_FULFILLED, assassin_id=assassin_id, fulfilled_at=now
                )
            )
            if res.rowcount != 1:
                raise Conflict(f"contract {contract_id} was closed concurrently")
            price = int(contract.price)
            money = uow.ledger.credit(assassin_id, MONEY, price)
            payload = {"fulfilled": contract_id, "assassin_id": assassin_id, "price": price}
            uow.emit(contract.poster_id, "contract", payload)
            uow.emit(contract.target_id, "contract", payload)
            uow.emit(assassin_id, "contract", payload)
            logger.info("contract_fulfilled id=%s assassin_id=%s price=%s", contract_id, assassin_id, price)
            return {"contract_id": contract_id, "status": CONTRACT_FULFILLED, "reward": price, "money": money}

        result = self.coordinator.execute_many([("character", assassin_id), ("contract", contract_id)], close)
        if result is _EXPIRED:
            raise Conflict(f"contract {contract_id} has expired")
        return result

    def list_open(self, now: dt.datetime | None = None) -> List[Dict[str, Any]]:
        now = now or utcnow()
        stmt = (
            select(BloodContract)
            .where(BloodContract.status == CONTRACT_OPEN, BloodContract.expires_at > now)
            .order_by(BloodContract.expires_at)
        )
        return [_contract_dict(c) for c in db.session.scalars(stmt)]

    def sweep_expired(self, now: dt.datetime | None = None) -> List[str]:
        """Move every open contract past its expiry to ``expired``; returns the ids this call expired."""
        now = now or utcnow()
        session = db.session
        candidates = session.execute(
            select(BloodContract.id, BloodContract.poster_id).where(
                BloodContract.status == CONTRACT_OPEN, BloodContract.expires_at <= now
            )
        ).all()
        session.commit()

        expired = []
        for contract_id, poster_id in candidates:
            try:
                res = session.execute(
                    _guarded(contract_id, BloodContract.expires_at <= now).values(status=CONTRACT_EXPIRED)
                )
                session.commit()
            except Exception:
                session.rollback()
                raise
            if res.rowcount != 1:
                # fulfilled or expired by someone else in the meantime
                continue
            expired.append(contract_id)
            self.coordinator.dispatcher.dispatch_all(
                [EconomyEvent(poster_id, "contract", {"expired": contract_id})]
            )
        if expired:
            logger.info("contracts_expired count=%s ids=%s", len(expired), expired)
        return expired


class ExpirationSweeper(threading.Thread):
    """Runs ``sweep_expired`` every ``interval`` seconds until stopped.

    Usage:
        sweeper = ExpirationSweeper(app, engine.contracts)
        sweeper.start()
        ...
        sweeper.stop()
    """

    def __init__(self, app, board: ContractBoard, interval: float = CONTRACT_SWEEP_INTERVAL):
        super().__init__(daemon=True, name="ExpirationSweeper")
        self.app = app
        self.board = board
        self.interval = interval
        self._stop_event = threading.Event()

    def tick(self) -> List[str]:
        with self.app.app_context():
            try:
                return self.board.sweep_expired()
            except Exception:
                logger.exception("sweep_failed")
                return []

    def run(self) -> None:
        logger.info("sweeper_started interval=%s", self.interval)
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self.interval)
        logger.info("sweeper_stopped")

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self.is_alive():
            self.join(timeout)
