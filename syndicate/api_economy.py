"""Economy API used by the game client.

Routes live under ``/api``. Every mutating route acts on behalf of the
logged-in user's own character; the engine does the actual work and raises
``EconomyError`` subclasses which are rendered as ``{code, message, retryable}``.
"""
import logging

from flask import Blueprint, abort, jsonify, make_response, request
from flask_login import current_user, login_required

from .services import EconomyError, get_engine

logger = logging.getLogger(__name__)

bp = Blueprint("economy_api", __name__, url_prefix="/api")


@bp.errorhandler(EconomyError)
def _economy_error(err: EconomyError):
    return jsonify(err.to_dict()), err.status


def _body() -> dict:
    return request.get_json(force=True, silent=True) or {}


def _int(data: dict, key: str, default=None):
    """Integer field from the body; non-integers are passed through for the engine to reject."""
    val = data.get(key, default)
    if isinstance(val, str) and val.strip().lstrip("-").isdigit():
        return int(val)
    return val


def _own_character_id() -> str:
    char = current_user.character
    if char is None:
        abort(make_response(jsonify(code="E_NO_CHAR", message="no character for this account", retryable=False), 404))
    return char.character_id


def _require_owner(character_id: str) -> None:
    if _own_character_id() != character_id:
        logger.warning("forbidden user_id=%s character_id=%s", current_user.get_id(), character_id)
        abort(make_response(jsonify(code="E_FORBIDDEN", message="not your character", retryable=False), 403))


# ---------------------- reads ----------------------

@bp.get("/characters/<character_id>/balances")
def balances(character_id: str):
    return jsonify(get_engine().get_balances(character_id))


@bp.get("/characters/<character_id>/inventory")
def inventory(character_id: str):
    return jsonify(get_engine().get_inventory(character_id))


@bp.get("/characters/<character_id>/tasks")
def tasks(character_id: str):
    engine = get_engine()
    items = engine.list_tasks(character_id)
    return jsonify({
        "character_id": character_id,
        "tasks": items,
        "unclaimed": sum(1 for t in items if t["is_completed"] and not t["reward_collected"]),
    })


@bp.get("/contracts")
def contracts():
    return jsonify({"contracts": get_engine().list_contracts()})


# ---------------------- shop & equipment ----------------------

@bp.post("/characters/<character_id>/purchase")
@login_required
def purchase(character_id: str):
    _require_owner(character_id)
    data = _body()
    result = get_engine().purchase(
        character_id, data.get("item_type"), _int(data, "item_id"), _int(data, "quantity", 1)
    )
    return jsonify(result)


@bp.post("/characters/<character_id>/sell")
@login_required
def sell(character_id: str):
    _require_owner(character_id)
    data = _body()
    return jsonify(get_engine().sell(character_id, data.get("item_type"), _int(data, "item_id")))


@bp.post("/characters/<character_id>/equip")
@login_required
def equip(character_id: str):
    """Equip one unit of an owned item.

    Body: { item_type: str, item_id: int, slot: "weapon1"|"weapon2"|"armor"|"house" }

    Whatever occupied the slot goes back to the inventory first.
    """
    _require_owner(character_id)
    data = _body()
    slot = (data.get("slot") or "").strip().lower()
    equipped = get_engine().equip(character_id, data.get("item_type"), _int(data, "item_id"), slot)
    return jsonify({"character_id": character_id, "equipped": equipped})


@bp.post("/characters/<character_id>/unequip")
@login_required
def unequip(character_id: str):
    _require_owner(character_id)
    slot = (_body().get("slot") or "").strip().lower()
    result = get_engine().unequip(character_id, slot)
    return jsonify({"character_id": character_id, **result})


@bp.post("/characters/<character_id>/use")
@login_required
def use(character_id: str):
    _require_owner(character_id)
    return jsonify(get_engine().use_item(character_id, _int(_body(), "item_id")))


# ---------------------- bank ----------------------

@bp.post("/characters/<character_id>/bank/deposit")
@login_required
def deposit(character_id: str):
    _require_owner(character_id)
    return jsonify(get_engine().deposit(character_id, _int(_body(), "amount")))


@bp.post("/characters/<character_id>/bank/withdraw")
@login_required
def withdraw(character_id: str):
    _require_owner(character_id)
    return jsonify(get_engine().withdraw(character_id, _int(_body(), "amount")))


# ---------------------- tasks ----------------------

@bp.post("/characters/<character_id>/tasks/<int:task_id>/claim")
@login_required
def claim(character_id: str, task_id: int):
    _require_owner(character_id)
    return jsonify(get_engine().claim_task_reward(character_id, task_id))


# ---------------------- contracts ----------------------

@bp.post("/contracts")
@login_required
def post_contract():
    data = _body()
    target_id = str(data.get("target_id") or "").strip()
    if not target_id:
        return jsonify(code="E_INVALID_TARGET", message="target_id is required", retryable=False), 400
    result = get_engine().post_contract(_own_character_id(), target_id, _int(data, "price"))
    return jsonify(result), 201


@bp.post("/contracts/<contract_id>/fulfill")
@login_required
def fulfill_contract(contract_id: str):
    return jsonify(get_engine().fulfill_contract(contract_id, _own_character_id()))
