import pytest

from syndicate import create_app
from syndicate.models import db, User, Character
from syndicate.services import RecordingDispatcher


def make_app(uri="sqlite:///:memory:", **overrides):
    config = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": uri,
        "AUTO_CREATE_TABLES": "1",
        "START_SWEEPER": "0",
        "ECONOMY_LOCK_TIMEOUT": 2.0,
    }
    config.update(overrides)
    return create_app(config, dispatcher=RecordingDispatcher())


def add_character(name="Hero", **fields):
    """Create a user plus character; returns the character id."""
    user = User(email=f"{name.lower()}@example.com", handle=name.lower())
    db.session.add(user)
    db.session.flush()
    char = Character(user_id=user.user_id, name=name, **fields)
    db.session.add(char)
    db.session.commit()
    return char.character_id


def character(cid):
    return db.session.get(Character, cid)


@pytest.fixture
def app():
    app = make_app()
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def file_app(tmp_path):
    """File-backed SQLite so several threads can each open their own connection."""
    app = make_app(f"sqlite:///{tmp_path / 'economy.db'}", ECONOMY_LOCK_TIMEOUT=10.0)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def engine(app):
    return app.extensions["economy"]


@pytest.fixture
def events(engine):
    return engine.dispatcher
