"""Items a character holds.

One row per (item_type, item_id) unequipped stack, plus one row with
``quantity == 1`` for every unit committed to an equipment slot.
"""

from sqlalchemy import CheckConstraint, UniqueConstraint

from .base import db, Model, utcnow


class InventoryEntry(Model):
    __tablename__ = "inventory_entries"

    id = db.Column(db.Integer, primary_key=True)
    character_id = db.Column(
        db.String(64), db.ForeignKey("character.character_id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_type = db.Column(db.String(16), nullable=False)
    item_id = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    equipped = db.Column(db.Boolean, nullable=False, default=False)
    slot = db.Column(db.String(16))
    acquired_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    character = db.relationship("Character", back_populates="inventory")

    __table_args__ = (
        UniqueConstraint("character_id", "slot", name="uq_inventory_character_slot"),
        CheckConstraint("quantity >= 1", name="ck_inventory_qty_pos"),
        CheckConstraint(
            "(NOT equipped AND slot IS NULL) OR (equipped AND slot IS NOT NULL AND quantity = 1)",
            name="ck_inventory_equipped_slot",
        ),
        db.Index("ix_inventory_character_item", "character_id", "item_type", "item_id"),
    )

    def __repr__(self) -> str:
        return f"<InventoryEntry {self.item_type}:{self.item_id} x{self.quantity} slot={self.slot}>"
