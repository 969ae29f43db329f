import uuid

from sqlalchemy import CheckConstraint

from .base import db, Model, utcnow
from ..config import LEVELS, START_MONEY, START_BLACKCOINS


def gen_uuid() -> str:
    return str(uuid.uuid4())


class Character(Model):
    __tablename__ = "character"

    character_id = db.Column(db.String(64), primary_key=True, default=gen_uuid)
    user_id = db.Column(db.String(64), db.ForeignKey("users.user_id"), nullable=False, unique=True)
    name = db.Column(db.String(40), nullable=False, index=True)

    # progression
    level = db.Column(db.Integer, nullable=False, default=1)
    exp = db.Column(db.BigInteger, nullable=False, default=0)
    progress_points = db.Column(db.Integer, nullable=False, default=0)
    fame = db.Column(db.Integer, nullable=False, default=0)

    # balances
    money = db.Column(db.BigInteger, nullable=False, default=START_MONEY)
    blackcoins = db.Column(db.BigInteger, nullable=False, default=START_BLACKCOINS)

    # derived pools, recomputed on level-up
    max_hp = db.Column(db.Integer, nullable=False, default=LEVELS.max_hp(1))
    hp = db.Column(db.Integer, nullable=False, default=LEVELS.max_hp(1))
    max_energy = db.Column(db.Integer, nullable=False, default=LEVELS.max_energy(1))
    energy = db.Column(db.Integer, nullable=False, default=LEVELS.max_energy(1))

    # equipped slots hold catalog ids
    equipped_weapon1_id = db.Column(db.Integer)
    equipped_weapon2_id = db.Column(db.Integer)
    equipped_armor_id = db.Column(db.Integer)
    equipped_house_id = db.Column(db.Integer)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="character")
    inventory = db.relationship(
        "InventoryEntry", back_populates="character", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("money >= 0", name="ck_character_money_nonneg"),
        CheckConstraint("blackcoins >= 0", name="ck_character_blackcoins_nonneg"),
        CheckConstraint("exp >= 0", name="ck_character_exp_nonneg"),
        CheckConstraint("level >= 1", name="ck_character_level_pos"),
    )

    def __repr__(self) -> str:
        return f"<Character {self.character_id} lvl={self.level}>"
