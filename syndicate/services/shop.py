"""Buying, selling and using catalog items inside a unit of work."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict

from ..config import SELL_RATES
from .errors import InvalidAmount, ItemNotFound
from .ledger import check_amount

logger = logging.getLogger(__name__)


def sell_price(price: int, item_type: str) -> int:
    rate = SELL_RATES.get(item_type)
    if rate is None:
        raise ItemNotFound(item_type, None)
    # half-up rounding
    return int(math.floor(price * rate + 0.5))


def purchase(uow, character_id: str, item_type: str, item_id: int, quantity: int = 1) -> Dict[str, Any]:
    check_amount(quantity, "quantity")
    entry = uow.catalog.resolve(item_type, item_id)
    if entry.price <= 0:
        raise InvalidAmount(entry.price, "price")
    total = entry.price * quantity
    remaining = uow.ledger.debit(character_id, entry.currency, total)
    owned = uow.inventory.grant(character_id, item_type, entry.ref.id, quantity)
    uow.track(character_id, "items_bought", quantity)
    if entry.currency == "blackcoins":
        uow.track(character_id, "blackmarket_items_bought", quantity)
    logger.info(
        "purchase character_id=%s item=%s qty=%s total=%s %s remaining=%s",
        character_id, entry.ref, quantity, total, entry.currency, remaining,
    )
    return {
        "remaining_balance": remaining,
        "currency": entry.currency,
        "total_price": total,
        "quantity": quantity,
        "owned": owned,
        "item": entry.as_dict(),
    }


def sell(uow, character_id: str, item_type: str, item_id: int) -> Dict[str, Any]:
    # ownership first: selling something you don't have is ItemNotOwned
    # even when the catalog id is unknown
    left = uow.inventory.consume(character_id, item_type, item_id, 1)
    entry = uow.catalog.resolve(item_type, item_id)
    price = sell_price(entry.price, item_type)
    balance = uow.ledger.balance(character_id, entry.currency)
    if price > 0:
        balance = uow.ledger.credit(character_id, entry.currency, price)
    uow.track(character_id, "items_sold", 1)
    if entry.currency == "blackcoins":
        uow.track(character_id, "blackmarket_items_sold", 1)
    logger.info(
        "sell character_id=%s item=%s price=%s %s",
        character_id, entry.ref, price, entry.currency,
    )
    return {
        "sell_price": price,
        "currency": entry.currency,
        "balance": balance,
        "owned": left,
        "item": entry.as_dict(),
    }


def use_item(uow, character_id: str, item_id: int) -> Dict[str, Any]:
    """Consume one special item and apply its effects."""
    entry = uow.catalog.resolve("special", item_id)
    uow.inventory.consume(character_id, "special", item_id, 1)
    char = uow.character(character_id)
    effects = entry.bonuses
    applied: Dict[str, Any] = {}

    health = effects.get("health")
    if health:
        before = char.hp
        char.hp = char.max_hp if health == "full" else min(char.hp + int(health), char.max_hp)
        applied["health"] = char.hp - before
    energy = effects.get("energy")
    if energy:
        before = char.energy
        char.energy = char.max_energy if energy == "full" else min(char.energy + int(energy), char.max_energy)
        applied["energy"] = char.energy - before
    exp = effects.get("exp")
    if exp:
        applied["level"] = uow.ledger.add_experience(character_id, int(exp)).as_dict()

    uow.emit(character_id, "balance", {"hp": char.hp, "energy": char.energy})
    logger.info("use_item character_id=%s item=%s applied=%s", character_id, entry.ref, applied)
    return {"item": entry.as_dict(), "applied": applied, "hp": char.hp, "energy": char.energy}
