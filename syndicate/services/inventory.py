"""Inventory and equipment slots.

Unequipped units of an item live in one stack row (``slot IS NULL``); every
equipped unit is its own row with ``quantity == 1``. Equip/unequip move units
between the stack and slot rows and never change the total owned quantity.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select

from ..config import EQUIP_SLOTS, SLOT_COLUMNS, SLOT_KINDS
from ..models import InventoryEntry
from .errors import ItemNotOwned, SlotInvalid
from .ledger import check_amount

logger = logging.getLogger(__name__)


def check_slot(slot: str) -> str:
    if slot not in EQUIP_SLOTS:
        raise SlotInvalid(str(slot))
    return slot


class InventoryStore:
    def __init__(self, uow):
        self.uow = uow

    @property
    def session(self):
        return self.uow.session

    # ---------------------- reads ----------------------

    def rows(self, character_id: str, item_type: str | None = None, item_id: int | None = None) -> List[InventoryEntry]:
        stmt = select(InventoryEntry).where(InventoryEntry.character_id == character_id)
        if item_type is not None:
            stmt = stmt.where(InventoryEntry.item_type == item_type)
        if item_id is not None:
            stmt = stmt.where(InventoryEntry.item_id == item_id)
        stmt = stmt.order_by(InventoryEntry.id).execution_options(populate_existing=True)
        return list(self.session.scalars(stmt))

    def held(self, character_id: str, item_type: str, item_id) -> List[InventoryEntry]:
        """Rows of one concrete item; nothing for a missing or non-integer id."""
        if isinstance(item_id, bool) or not isinstance(item_id, int):
            return []
        return self.rows(character_id, item_type, item_id)

    def owned(self, character_id: str, item_type: str, item_id: int) -> int:
        return sum(int(r.quantity) for r in self.held(character_id, item_type, item_id))

    def _stack(self, rows) -> Optional[InventoryEntry]:
        for row in rows:
            if row.slot is None:
                return row
        return None

    def in_slot(self, character_id: str, slot: str) -> Optional[InventoryEntry]:
        for row in self.rows(character_id):
            if row.slot == slot:
                return row
        return None

    # ---------------------- mutations ----------------------

    def grant(self, character_id: str, item_type: str, item_id: int, qty: int = 1) -> int:
        self.uow.ensure_open()
        check_amount(qty, "quantity")
        self.uow.character(character_id)
        rows = self.rows(character_id, item_type, item_id)
        stack = self._stack(rows)
        if stack:
            stack.quantity = int(stack.quantity) + qty
        else:
            stack = InventoryEntry(
                character_id=character_id, item_type=item_type, item_id=item_id, quantity=qty, equipped=False
            )
            self.session.add(stack)
        self.session.flush()
        total = self.owned(character_id, item_type, item_id)
        self.uow.emit(character_id, "inventory", {"item_type": item_type, "item_id": item_id, "quantity": total})
        return total

    def consume(self, character_id: str, item_type: str, item_id: int, qty: int = 1) -> int:
        """Remove ``qty`` units, unequipped stack first, then equipped units."""
        self.uow.ensure_open()
        check_amount(qty, "quantity")
        self.uow.character(character_id)
        rows = self.held(character_id, item_type, item_id)
        owned = sum(int(r.quantity) for r in rows)
        if owned < qty:
            raise ItemNotOwned(item_type, item_id, qty, owned)

        remaining = qty
        # stack rows sort before slot rows
        for row in sorted(rows, key=lambda r: r.slot is not None):
            if remaining == 0:
                break
            take = min(int(row.quantity), remaining)
            if row.slot is not None:
                self._clear_slot_ref(character_id, row.slot)
            row.quantity = int(row.quantity) - take
            remaining -= take
            if row.quantity == 0:
                self.session.delete(row)
        self.session.flush()
        left = owned - qty
        self.uow.emit(character_id, "inventory", {"item_type": item_type, "item_id": item_id, "quantity": left})
        return left

    def equip(self, character_id: str, item_type: str, item_id: int, slot: str) -> InventoryEntry:
        self.uow.ensure_open()
        check_slot(slot)
        if item_type not in SLOT_KINDS[slot]:
            raise SlotInvalid(slot, item_type)
        char = self.uow.character(character_id)

        rows = self.held(character_id, item_type, item_id)
        if not rows:
            raise ItemNotOwned(item_type, item_id)
        for row in rows:
            if row.slot == slot:
                return row

        occupant = self.in_slot(character_id, slot)
        replaced = None
        if occupant is not None:
            replaced = (occupant.item_type, occupant.item_id)
            self._release(occupant)
            rows = self.held(character_id, item_type, item_id)

        source = self._stack(rows)
        if source is None:
            # only equipped units left: move one from its current slot
            source = rows[0]
            self._clear_slot_ref(character_id, source.slot)
            source.slot = None
            source.equipped = False
            self.session.flush()

        if int(source.quantity) > 1:
            source.quantity = int(source.quantity) - 1
            target = InventoryEntry(
                character_id=character_id, item_type=item_type, item_id=item_id,
                quantity=1, equipped=True, slot=slot,
            )
            self.session.add(target)
        else:
            target = source
            target.equipped = True
            target.slot = slot
        setattr(char, SLOT_COLUMNS[slot], item_id)
        self.session.flush()

        logger.info(
            "equip character_id=%s slot=%s item=%s:%s replaced=%s",
            character_id, slot, item_type, item_id, replaced,
        )
        self.uow.emit(character_id, "inventory", {"slot": slot, "item_type": item_type, "item_id": item_id})
        return target

    def unequip(self, character_id: str, slot: str) -> Optional[tuple]:
        """Clear ``slot``; returns the released (item_type, item_id) or None."""
        self.uow.ensure_open()
        check_slot(slot)
        self.uow.character(character_id)
        row = self.in_slot(character_id, slot)
        if row is None:
            self._clear_slot_ref(character_id, slot)
            return None
        released = (row.item_type, row.item_id)
        self._release(row)
        logger.info("unequip character_id=%s slot=%s item=%s:%s", character_id, slot, *released)
        self.uow.emit(character_id, "inventory", {"slot": slot, "item_type": None, "item_id": None})
        return released

    def _release(self, row: InventoryEntry) -> None:
        """Move an equipped unit back into the item's stack."""
        slot = row.slot
        stack = self._stack(self.rows(row.character_id, row.item_type, row.item_id))
        if stack is not None:
            stack.quantity = int(stack.quantity) + 1
            self.session.delete(row)
        else:
            row.slot = None
            row.equipped = False
        self._clear_slot_ref(row.character_id, slot)
        self.session.flush()

    def _clear_slot_ref(self, character_id: str, slot: str) -> None:
        char = self.uow.character(character_id)
        setattr(char, SLOT_COLUMNS[slot], None)
