"""Read-only shop catalog, one table per item kind."""

from .base import db, Model


class _CatalogColumns:
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    price = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(16), nullable=False, default="money")  # money | blackcoins
    rarity = db.Column(db.String(16), nullable=False, default="common")


class Weapon(_CatalogColumns, Model):
    __tablename__ = "weapons"

    type = db.Column(db.String(16), nullable=False, default="melee")  # melee/pistol/rifle/sniper
    damage = db.Column(db.Integer, nullable=False, default=0)
    energy_bonus = db.Column(db.Integer, nullable=False, default=0)


class Armor(_CatalogColumns, Model):
    __tablename__ = "armors"

    defense = db.Column(db.Integer, nullable=False, default=0)
    hp_bonus = db.Column(db.Integer, nullable=False, default=0)


class House(_CatalogColumns, Model):
    __tablename__ = "houses"

    energy_regen = db.Column(db.Integer, nullable=False, default=0)
    defense_bonus = db.Column(db.Integer, nullable=False, default=0)
    hp_bonus = db.Column(db.Integer, nullable=False, default=0)


class SpecialItem(_CatalogColumns, Model):
    __tablename__ = "special_items"

    # {"health": 50} / {"energy": "full"} / {"exp": 200}
    effects = db.Column(db.JSON, nullable=False, default=dict)


class Car(_CatalogColumns, Model):
    __tablename__ = "cars"

    speed = db.Column(db.Integer, nullable=False, default=0)


class Dog(_CatalogColumns, Model):
    __tablename__ = "dogs"

    power = db.Column(db.Integer, nullable=False, default=0)
