import uuid

from sqlalchemy import CheckConstraint

from .base import db, Model, utcnow

CONTRACT_OPEN = "open"
CONTRACT_FULFILLED = "fulfilled"
CONTRACT_EXPIRED = "expired"
CONTRACT_STATUSES = (CONTRACT_OPEN, CONTRACT_FULFILLED, CONTRACT_EXPIRED)


def gen_uuid() -> str:
    return str(uuid.uuid4())


class BloodContract(Model):
    __tablename__ = "blood_contracts"

    id = db.Column(db.String(64), primary_key=True, default=gen_uuid)
    poster_id = db.Column(db.String(64), db.ForeignKey("character.character_id"), nullable=False, index=True)
    target_id = db.Column(db.String(64), db.ForeignKey("character.character_id"), nullable=False, index=True)
    price = db.Column(db.BigInteger, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=CONTRACT_OPEN, index=True)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    assassin_id = db.Column(db.String(64), db.ForeignKey("character.character_id"))
    fulfilled_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_contract_price_pos"),
        CheckConstraint(
            "status IN (%s)" % ", ".join(f"'{s}'" for s in CONTRACT_STATUSES), name="ck_contract_status"
        ),
    )
