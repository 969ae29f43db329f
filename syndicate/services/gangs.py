"""Gang treasury contributions (character and gang locked together)."""

from __future__ import annotations

import logging
from typing import Any, Dict

from sqlalchemy import select

from ..config import MONEY
from ..models import GangMember
from .errors import NotAGangMember
from .ledger import check_amount

logger = logging.getLogger(__name__)


def contribute(uow, character_id: str, gang_id: int, amount: int) -> Dict[str, Any]:
    check_amount(amount)
    gang = uow.lock("gang", gang_id)
    member = uow.session.scalars(
        select(GangMember).where(GangMember.gang_id == gang_id, GangMember.character_id == character_id)
    ).first()
    if member is None:
        raise NotAGangMember(character_id, gang_id)
    money = uow.ledger.debit(character_id, MONEY, amount)
    gang.money = int(gang.money) + amount
    member.contributed = int(member.contributed or 0) + amount
    uow.track(character_id, "gang_money_contributed", amount)
    logger.info("gang_contribute character_id=%s gang_id=%s amount=%s vault=%s", character_id, gang_id, amount, gang.money)
    return {"gang_money": int(gang.money), "character_money": money}
