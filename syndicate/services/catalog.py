"""Catalog lookup keyed by item kind.

Each kind (weapon, armor, house, special, car, dog) lives in its own table;
callers only ever see an ``ItemRef`` and a ``CatalogEntry``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ..db import db
from ..models import Weapon, Armor, House, SpecialItem, Car, Dog
from .errors import ItemNotFound


@dataclass(frozen=True)
class ItemRef:
    kind: str
    id: int

    def __str__(self) -> str:
        return f"{self.kind}:{self.id}"


@dataclass(frozen=True)
class CatalogEntry:
    ref: ItemRef
    name: str
    price: int
    currency: str
    rarity: str = "common"
    bonuses: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "item_type": self.ref.kind,
            "item_id": self.ref.id,
            "name": self.name,
            "price": self.price,
            "currency": self.currency,
            "rarity": self.rarity,
            "bonuses": dict(self.bonuses),
        }


Resolver = Callable[[int], Optional[CatalogEntry]]


def _model_resolver(kind: str, model, bonus_fields) -> Resolver:
    def resolve(item_id: int) -> Optional[CatalogEntry]:
        row = db.session.get(model, item_id)
        if row is None:
            return None
        if callable(bonus_fields):
            bonuses = bonus_fields(row)
        else:
            bonuses = {f: getattr(row, f) for f in bonus_fields}
        return CatalogEntry(
            ref=ItemRef(kind, row.id),
            name=row.name,
            price=int(row.price),
            currency=row.currency,
            rarity=row.rarity,
            bonuses=bonuses,
        )
    return resolve


class CatalogLookup:
    """Resolve ``ItemRef`` -> ``CatalogEntry`` through per-kind resolvers."""

    def __init__(self):
        self._resolvers: Dict[str, Resolver] = {}

    def register(self, kind: str, resolver: Resolver) -> None:
        self._resolvers[kind] = resolver

    @property
    def kinds(self):
        return tuple(self._resolvers)

    def get(self, kind: str, item_id) -> Optional[CatalogEntry]:
        resolver = self._resolvers.get(kind)
        if resolver is None:
            return None
        try:
            item_id = int(item_id)
        except (TypeError, ValueError):
            return None
        return resolver(item_id)

    def resolve(self, kind: str, item_id) -> CatalogEntry:
        entry = self.get(kind, item_id)
        if entry is None:
            raise ItemNotFound(kind, item_id)
        return entry


def default_catalog() -> CatalogLookup:
    """Catalog backed by the shop tables."""
    catalog = CatalogLookup()
    catalog.register("weapon", _model_resolver("weapon", Weapon, ("type", "damage", "energy_bonus")))
    catalog.register("armor", _model_resolver("armor", Armor, ("defense", "hp_bonus")))
    catalog.register("house", _model_resolver("house", House, ("energy_regen", "defense_bonus", "hp_bonus")))
    catalog.register("special", _model_resolver("special", SpecialItem, lambda row: dict(row.effects or {})))
    catalog.register("car", _model_resolver("car", Car, ("speed",)))
    catalog.register("dog", _model_resolver("dog", Dog, ("power",)))
    return catalog
