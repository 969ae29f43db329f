"""EconomyEngine: the one object controllers talk to.

It owns the coordinator, the progress tracker and the contract board, and
wraps each gameplay operation in the right unit of work. Read-only views
(balances, inventory) run outside any lock against committed data.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List

from flask import current_app
from sqlalchemy import select

from ..config import BANK_INTEREST_RATE, CONTRACT_TTL_HOURS, LEVELS, LOCK_TIMEOUT_SECONDS, SLOT_COLUMNS
from ..db import db
from ..models import BankAccount, Character, InventoryEntry
from . import bank, gangs, shop
from .catalog import CatalogLookup, default_catalog
from .contracts import ContractBoard
from .errors import CharacterNotFound
from .notifications import NotificationDispatcher
from .progress import ProgressTracker
from .transactions import TransactionCoordinator

logger = logging.getLogger(__name__)


class EconomyEngine:
    def __init__(
        self,
        catalog: CatalogLookup | None = None,
        dispatcher: NotificationDispatcher | None = None,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
        interest_rate: float = BANK_INTEREST_RATE,
        contract_ttl_hours: float = CONTRACT_TTL_HOURS,
    ):
        self.catalog = catalog or default_catalog()
        self.coordinator = TransactionCoordinator(self.catalog, dispatcher, lock_timeout)
        self.progress = ProgressTracker(self.coordinator)
        self.contracts = ContractBoard(self.coordinator, contract_ttl_hours)
        self.interest_rate = interest_rate
        self.coordinator.progress_sink = self.progress.feed

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self.coordinator.dispatcher

    @dispatcher.setter
    def dispatcher(self, value: NotificationDispatcher) -> None:
        self.coordinator.dispatcher = value

    def execute(self, character_id: str, fn):
        return self.coordinator.execute(character_id, fn)

    # ---------------------- shop ----------------------

    def purchase(self, character_id: str, item_type: str, item_id: int, quantity: int = 1) -> Dict[str, Any]:
        return self.execute(character_id, lambda uow: shop.purchase(uow, character_id, item_type, item_id, quantity))

    def sell(self, character_id: str, item_type: str, item_id: int) -> Dict[str, Any]:
        return self.execute(character_id, lambda uow: shop.sell(uow, character_id, item_type, item_id))

    def use_item(self, character_id: str, item_id: int) -> Dict[str, Any]:
        return self.execute(character_id, lambda uow: shop.use_item(uow, character_id, item_id))

    # ---------------------- equipment ----------------------

    def equip(self, character_id: str, item_type: str, item_id: int, slot: str) -> Dict[str, Any]:
        def run(uow):
            uow.inventory.equip(character_id, item_type, item_id, slot)
            return self._loadout(uow.character(character_id))

        return self.execute(character_id, run)

    def unequip(self, character_id: str, slot: str) -> Dict[str, Any]:
        def run(uow):
            released = uow.inventory.unequip(character_id, slot)
            return {
                "released": {"item_type": released[0], "item_id": released[1]} if released else None,
                "equipped": self._loadout(uow.character(character_id)),
            }

        return self.execute(character_id, run)

    # ---------------------- bank ----------------------

    def deposit(self, character_id: str, amount: int) -> Dict[str, Any]:
        return self.execute(character_id, lambda uow: bank.deposit(uow, character_id, amount))

    def withdraw(self, character_id: str, amount: int) -> Dict[str, Any]:
        return self.execute(character_id, lambda uow: bank.withdraw(uow, character_id, amount))

    def transfer(self, sender_id: str, recipient_id: str, amount: int) -> Dict[str, Any]:
        keys = [("character", sender_id), ("character", recipient_id)]
        return self.coordinator.execute_many(keys, lambda uow: bank.transfer(uow, sender_id, recipient_id, amount))

    def apply_interest(self, character_id: str, now: dt.datetime | None = None) -> int:
        return self.execute(character_id, lambda uow: bank.apply_interest(uow, character_id, self.interest_rate, now))

    def apply_daily_interest(self, now: dt.datetime | None = None) -> Dict[str, int]:
        """Pay interest on every account that is due, one unit of work per account."""
        paid = {}
        for character_id in list(db.session.scalars(select(BankAccount.character_id))):
            interest = self.apply_interest(character_id, now)
            if interest:
                paid[character_id] = interest
        logger.info("daily_interest accounts=%s", len(paid))
        return paid

    # ---------------------- gangs ----------------------

    def contribute_to_gang(self, character_id: str, gang_id: int, amount: int) -> Dict[str, Any]:
        keys = [("character", character_id), ("gang", gang_id)]
        return self.coordinator.execute_many(keys, lambda uow: gangs.contribute(uow, character_id, gang_id, amount))

    # ---------------------- progression ----------------------

    def update_progress(self, character_id: str, metric: str, value: int) -> List[Dict[str, Any]]:
        return self.progress.update_progress(character_id, metric, value)

    def claim_task_reward(self, character_id: str, task_id: int) -> Dict[str, Any]:
        return self.progress.claim_reward(character_id, task_id)

    def list_tasks(self, character_id: str) -> List[Dict[str, Any]]:
        return self.progress.list_tasks(character_id)

    def unclaimed_count(self, character_id: str) -> int:
        return self.progress.unclaimed_count(character_id)

    # ---------------------- contracts ----------------------

    def post_contract(self, poster_id: str, target_id: str, price: int, ttl_hours: float | None = None) -> Dict[str, Any]:
        return self.contracts.post(poster_id, target_id, price, ttl_hours)

    def fulfill_contract(self, contract_id: str, assassin_id: str) -> Dict[str, Any]:
        return self.contracts.fulfill(contract_id, assassin_id)

    def list_contracts(self) -> List[Dict[str, Any]]:
        return self.contracts.list_open()

    def sweep_expired(self, now: dt.datetime | None = None) -> List[str]:
        return self.contracts.sweep_expired(now)

    # ---------------------- read views ----------------------

    def _character(self, character_id: str) -> Character:
        char = db.session.get(Character, character_id)
        if char is None:
            raise CharacterNotFound(character_id)
        return char

    def get_balances(self, character_id: str) -> Dict[str, Any]:
        char = self._character(character_id)
        acc = db.session.get(BankAccount, character_id)
        return {
            "character_id": char.character_id,
            "money": int(char.money),
            "blackcoins": int(char.blackcoins),
            "bank_balance": int(acc.balance) if acc else 0,
            "level": char.level,
            "exp": int(char.exp),
            "next_level_exp": LEVELS.exp_needed(char.level),
            "progress_points": char.progress_points,
            "hp": char.hp,
            "max_hp": char.max_hp,
            "energy": char.energy,
            "max_energy": char.max_energy,
        }

    def _loadout(self, char: Character) -> Dict[str, Any]:
        loadout: Dict[str, Any] = {}
        for slot, column in SLOT_COLUMNS.items():
            item_id = getattr(char, column)
            if item_id is None:
                loadout[slot] = None
                continue
            kind = "weapon" if slot.startswith("weapon") else slot
            entry = self.catalog.get(kind, item_id)
            loadout[slot] = entry.as_dict() if entry else {"item_type": kind, "item_id": item_id}
        return loadout

    def get_inventory(self, character_id: str) -> Dict[str, Any]:
        char = self._character(character_id)
        rows = db.session.scalars(
            select(InventoryEntry)
            .where(InventoryEntry.character_id == character_id)
            .order_by(InventoryEntry.item_type, InventoryEntry.item_id, InventoryEntry.id)
        )
        items = []
        for row in rows:
            entry = self.catalog.get(row.item_type, row.item_id)
            items.append({
                "id": row.id,
                "item_type": row.item_type,
                "item_id": row.item_id,
                "quantity": row.quantity,
                "equipped": bool(row.equipped),
                "slot": row.slot,
                "name": entry.name if entry else None,
                "bonuses": dict(entry.bonuses) if entry else {},
            })
        return {"character_id": char.character_id, "items": items, "equipped": self._loadout(char)}


def get_engine() -> EconomyEngine:
    return current_app.extensions["economy"]
