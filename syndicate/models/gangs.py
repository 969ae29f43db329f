from sqlalchemy import CheckConstraint

from .base import db, Model, utcnow


class Gang(Model):
    __tablename__ = "gangs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    money = db.Column(db.BigInteger, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (CheckConstraint("money >= 0", name="ck_gang_money_nonneg"),)


class GangMember(Model):
    __tablename__ = "gang_members"

    id = db.Column(db.Integer, primary_key=True)
    gang_id = db.Column(db.Integer, db.ForeignKey("gangs.id"), nullable=False, index=True)
    character_id = db.Column(db.String(64), db.ForeignKey("character.character_id"), nullable=False, unique=True)
    role = db.Column(db.String(16), nullable=False, default="MEMBER")  # LEADER | OFFICER | MEMBER
    contributed = db.Column(db.BigInteger, nullable=False, default=0)
