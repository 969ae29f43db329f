import uuid

from flask_login import UserMixin

from .base import db, Model, utcnow


def gen_uuid() -> str:
    return str(uuid.uuid4())


class User(Model, UserMixin):
    __tablename__ = "users"

    user_id = db.Column(db.String(64), primary_key=True, default=gen_uuid)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    handle = db.Column(db.String(32), unique=True, index=True)
    display_name = db.Column(db.String(64))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_login_at = db.Column(db.DateTime)

    # one character per account
    character = db.relationship("Character", back_populates="user", uselist=False)

    def get_id(self):
        return self.user_id
