# syndicate/__init__.py
import os
import logging
from flask import Flask, jsonify

# Use an alias for the real SQLAlchemy instance to avoid shadowing by a module named "syndicate.db"
from .models.base import db as SA_DB  # <- single SQLAlchemy() instance
from flask_migrate import Migrate
migrate = Migrate()

from .auth import auth_bp, login_manager
from .api_economy import bp as economy_api_bp
from .config import BANK_INTEREST_RATE, CONTRACT_SWEEP_INTERVAL, CONTRACT_TTL_HOURS, LOCK_TIMEOUT_SECONDS
from .seed import register_cli
from .services import EconomyEngine


def _env_config(base_dir: str) -> dict:
    db_path = os.path.join(base_dir, "syndicate.db")
    return dict(
        SECRET_KEY=os.environ.get("SECRET_KEY", "dev"),
        SQLALCHEMY_DATABASE_URI=os.environ.get("DATABASE_URL", f"sqlite:///{db_path}"),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SESSION_COOKIE_SAMESITE="Lax",
        AUTO_CREATE_TABLES=os.environ.get("AUTO_CREATE_TABLES", "1"),
        ECONOMY_LOCK_TIMEOUT=float(os.environ.get("ECONOMY_LOCK_TIMEOUT", LOCK_TIMEOUT_SECONDS)),
        CONTRACT_SWEEP_INTERVAL=float(os.environ.get("CONTRACT_SWEEP_INTERVAL", CONTRACT_SWEEP_INTERVAL)),
        CONTRACT_TTL_HOURS=float(os.environ.get("CONTRACT_TTL_HOURS", CONTRACT_TTL_HOURS)),
        BANK_INTEREST_RATE=float(os.environ.get("BANK_INTEREST_RATE", BANK_INTEREST_RATE)),
        START_SWEEPER=os.environ.get("START_SWEEPER", "0"),
    )


def create_app(config=None, dispatcher=None):
    app = Flask(__name__)

    BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    app.config.update(_env_config(BASE_DIR))
    if config:
        app.config.update(config)

    # Init core extensions with the un-shadowable alias
    SA_DB.init_app(app)
    migrate.init_app(app, SA_DB)
    login_manager.init_app(app)

    # Helpful startup log
    app.logger.setLevel(logging.INFO)
    app.logger.info("DB URI: %s", app.config["SQLALCHEMY_DATABASE_URI"])
    app.logger.info("AUTO_CREATE_TABLES=%s", app.config["AUTO_CREATE_TABLES"])

    with app.app_context():
        # Ensure all models are imported so metadata is complete
        from . import models as _models  # noqa: F401

        if str(app.config["AUTO_CREATE_TABLES"]) == "1":
            SA_DB.create_all()

    engine = EconomyEngine(
        dispatcher=dispatcher,
        lock_timeout=float(app.config["ECONOMY_LOCK_TIMEOUT"]),
        interest_rate=float(app.config["BANK_INTEREST_RATE"]),
        contract_ttl_hours=float(app.config["CONTRACT_TTL_HOURS"]),
    )
    app.extensions["economy"] = engine

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(economy_api_bp)
    register_cli(app)

    @app.get("/healthz")
    def healthz():
        return jsonify(ok=True)

    if str(app.config["START_SWEEPER"]) == "1":
        start_sweeper(app)

    return app


def start_sweeper(app):
    """Start the contract expiration thread once per app."""
    from .services.contracts import ExpirationSweeper

    sweeper = app.extensions.get("economy_sweeper")
    if sweeper is None or not sweeper.is_alive():
        sweeper = ExpirationSweeper(
            app, app.extensions["economy"].contracts, float(app.config["CONTRACT_SWEEP_INTERVAL"])
        )
        app.extensions["economy_sweeper"] = sweeper
        sweeper.start()
    return sweeper
