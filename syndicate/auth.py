import re
from flask import Blueprint, request, jsonify
from flask_login import LoginManager, login_user, logout_user, login_required, current_user
from .models import db, User, Character, utcnow

auth_bp = Blueprint("auth_bp", __name__)
login_manager = LoginManager()

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HANDLE_RE = re.compile(r"^[a-z0-9_]{3,32}$", re.I)


@login_manager.user_loader
def load_user(user_id):  # called by Flask-Login using session cookie
    return db.session.get(User, user_id)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(code="E_AUTH", message="login required", retryable=False), 401


def _me(u: User):
    char = u.character
    return dict(
        user_id=u.user_id, email=u.email, handle=u.handle, display_name=u.display_name,
        character_id=(char.character_id if char else None),
        last_login_at=(u.last_login_at.isoformat() if u.last_login_at else None),
    )


@auth_bp.route("/register", methods=["POST"])
def register():
    """Create an account together with its one character."""
    data = request.get_json(force=True, silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    handle = (data.get("handle") or "").strip()
    name = (data.get("character_name") or data.get("display_name") or handle).strip()

    if not EMAIL_RE.match(email): return jsonify(error="Invalid email."), 400
    if not HANDLE_RE.match(handle): return jsonify(error="Handle must be 3-32 letters, digits, underscores."), 400
    if not name: return jsonify(error="Character name required."), 400

    if db.session.query(User).filter_by(email=email).first():
        return jsonify(error="Email already registered."), 409
    if db.session.query(User).filter_by(handle=handle).first():
        return jsonify(error="Handle already taken."), 409

    u = User(email=email, handle=handle, display_name=data.get("display_name") or handle)
    db.session.add(u)
    db.session.flush()
    db.session.add(Character(user_id=u.user_id, name=name[:40]))
    u.last_login_at = utcnow()
    db.session.commit()
    login_user(u, remember=True)
    return jsonify(_me(u)), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(force=True, silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    if not EMAIL_RE.match(email): return jsonify(error="Invalid email."), 400

    u = db.session.query(User).filter_by(email=email).first()
    if not u:
        return jsonify(error="User not found."), 404
    if not u.is_active:
        return jsonify(error="Account disabled."), 403

    login_user(u, remember=True)
    u.last_login_at = utcnow()
    db.session.commit()
    return jsonify(_me(u)), 200


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify(_me(current_user)), 200


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify(ok=True), 200
