from sqlalchemy import CheckConstraint

from .base import db, Model, utcnow


class BankAccount(Model):
    __tablename__ = "bank_accounts"

    character_id = db.Column(db.String(64), db.ForeignKey("character.character_id"), primary_key=True)
    balance = db.Column(db.BigInteger, nullable=False, default=0)
    last_interest_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (CheckConstraint("balance >= 0", name="ck_bank_balance_nonneg"),)


class BankTxn(Model):
    __tablename__ = "bank_txns"

    id = db.Column(db.Integer, primary_key=True)
    character_id = db.Column(db.String(64), db.ForeignKey("character.character_id"), nullable=False, index=True)
    amount = db.Column(db.BigInteger, nullable=False)
    type = db.Column(db.String(16), nullable=False)  # deposit | withdraw | interest
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
