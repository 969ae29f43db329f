"""Bank accounts: deposit, withdraw, interest, and character-to-character transfers."""

from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Any, Dict

from sqlalchemy import select

from ..config import BANK_INTEREST_PERIOD_SECONDS, MONEY
from ..models import BankAccount, BankTxn, utcnow
from .errors import InsufficientFunds, InvalidTarget
from .ledger import check_amount

logger = logging.getLogger(__name__)


def account(uow, character_id: str) -> BankAccount:
    """Locked bank account row, created on first use."""
    uow.character(character_id)
    stmt = (
        select(BankAccount)
        .where(BankAccount.character_id == character_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    acc = uow.session.scalars(stmt).first()
    if acc is None:
        acc = BankAccount(character_id=character_id, balance=0, last_interest_at=utcnow())
        uow.session.add(acc)
        uow.session.flush()
    return acc


def deposit(uow, character_id: str, amount: int) -> Dict[str, Any]:
    check_amount(amount)
    acc = account(uow, character_id)
    money = uow.ledger.debit(character_id, MONEY, amount)
    acc.balance = int(acc.balance) + amount
    uow.session.add(BankTxn(character_id=character_id, amount=amount, type="deposit"))
    uow.emit(character_id, "balance", {"bank_balance": acc.balance})
    uow.track(character_id, "money_deposited", amount)
    uow.track(character_id, "bank_balance", acc.balance)
    logger.info("bank_deposit character_id=%s amount=%s balance=%s", character_id, amount, acc.balance)
    return {"bank_balance": int(acc.balance), "money": money}


def withdraw(uow, character_id: str, amount: int) -> Dict[str, Any]:
    check_amount(amount)
    acc = account(uow, character_id)
    if int(acc.balance) < amount:
        raise InsufficientFunds("bank_balance", amount, int(acc.balance))
    acc.balance = int(acc.balance) - amount
    money = uow.ledger.credit(character_id, MONEY, amount)
    uow.session.add(BankTxn(character_id=character_id, amount=amount, type="withdraw"))
    uow.emit(character_id, "balance", {"bank_balance": acc.balance})
    uow.track(character_id, "money_withdrawn", amount)
    uow.track(character_id, "bank_balance", acc.balance)
    logger.info("bank_withdraw character_id=%s amount=%s balance=%s", character_id, amount, acc.balance)
    return {"bank_balance": int(acc.balance), "money": money}


def apply_interest(uow, character_id: str, rate: float, now: dt.datetime | None = None) -> int:
    """Credit one period of interest if a full period has elapsed; returns the interest paid."""
    now = now or utcnow()
    acc = account(uow, character_id)
    elapsed = (now - acc.last_interest_at).total_seconds()
    if elapsed < BANK_INTEREST_PERIOD_SECONDS:
        return 0
    interest = int(math.floor(int(acc.balance) * rate))
    acc.last_interest_at = now
    if interest > 0:
        acc.balance = int(acc.balance) + interest
        uow.session.add(BankTxn(character_id=character_id, amount=interest, type="interest"))
        uow.emit(character_id, "balance", {"bank_balance": acc.balance, "interest": interest})
        uow.track(character_id, "bank_balance", acc.balance)
    return interest


def transfer(uow, sender_id: str, recipient_id: str, amount: int) -> Dict[str, Any]:
    check_amount(amount)
    if sender_id == recipient_id:
        raise InvalidTarget("cannot transfer money to yourself")
    sender_money = uow.ledger.debit(sender_id, MONEY, amount)
    recipient_money = uow.ledger.credit(recipient_id, MONEY, amount)
    logger.info("transfer sender_id=%s recipient_id=%s amount=%s", sender_id, recipient_id, amount)
    return {"sender_money": sender_money, "recipient_money": recipient_money, "amount": amount}
