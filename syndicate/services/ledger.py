"""Scalar balances of a character: money, black coins, experience, level.

All mutations go through a ``UnitOfWork``; the Ledger never commits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import CURRENCIES, EXPERIENCE, LEVELS, MONEY, LevelCurve
from .errors import InsufficientFunds, InvalidAmount

logger = logging.getLogger(__name__)


@dataclass
class LevelUpResult:
    old_level: int
    new_level: int
    exp: int

    @property
    def levels_gained(self) -> int:
        return self.new_level - self.old_level

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level

    def as_dict(self) -> dict:
        return {
            "old_level": self.old_level,
            "new_level": self.new_level,
            "levels_gained": self.levels_gained,
            "exp": self.exp,
        }


def check_amount(amount, what: str = "amount") -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount, what)
    return amount


def apply_level_ups(char, curve: LevelCurve = LEVELS) -> int:
    """Consume experience into levels; returns the number of levels gained.

    Each iteration subtracts a strictly positive threshold, so the loop runs
    once per level gained.
    """
    gained = 0
    needed = curve.exp_needed(char.level)
    while char.exp >= needed and char.level < curve.max_level:
        char.exp -= needed
        char.level += 1
        gained += 1
        needed = curve.exp_needed(char.level)
    if gained:
        char.max_hp = curve.max_hp(char.level)
        char.hp = char.max_hp
        char.max_energy = curve.max_energy(char.level)
        char.energy = char.max_energy
    return gained


class Ledger:
    def __init__(self, uow, curve: LevelCurve = LEVELS):
        self.uow = uow
        self.curve = curve

    def balance(self, character_id: str, currency: str = MONEY) -> int:
        self._check_currency(currency)
        char = self.uow.character(character_id)
        return int(getattr(char, currency) or 0)

    def credit(self, character_id: str, currency: str, amount: int) -> int:
        self.uow.ensure_open()
        check_amount(amount)
        if currency == EXPERIENCE:
            return self.add_experience(character_id, amount).exp
        self._check_currency(currency)
        char = self.uow.character(character_id)
        new_balance = int(getattr(char, currency) or 0) + amount
        setattr(char, currency, new_balance)
        self._balance_changed(char, currency)
        return new_balance

    def debit(self, character_id: str, currency: str, amount: int) -> int:
        self.uow.ensure_open()
        check_amount(amount)
        self._check_currency(currency)
        char = self.uow.character(character_id)
        current = int(getattr(char, currency) or 0)
        if current < amount:
            raise InsufficientFunds(currency, amount, current)
        setattr(char, currency, current - amount)
        self._balance_changed(char, currency)
        return current - amount

    def add_experience(self, character_id: str, amount: int) -> LevelUpResult:
        self.uow.ensure_open()
        check_amount(amount, "experience")
        char = self.uow.character(character_id)
        old_level = char.level
        char.exp = int(char.exp or 0) + amount
        gained = apply_level_ups(char, self.curve)
        result = LevelUpResult(old_level=old_level, new_level=char.level, exp=char.exp)
        payload = {"exp": char.exp, "level": char.level, "next_level_exp": self.curve.exp_needed(char.level)}
        if gained:
            payload.update(max_hp=char.max_hp, hp=char.hp, max_energy=char.max_energy, energy=char.energy)
            self.uow.track(char.character_id, "level", char.level)
            logger.info(
                "level_up character_id=%s old_level=%s new_level=%s",
                char.character_id, old_level, char.level,
            )
        self.uow.emit(char.character_id, "balance", payload)
        return result

    def _balance_changed(self, char, currency: str) -> None:
        value = int(getattr(char, currency))
        self.uow.emit(char.character_id, "balance", {currency: value})
        self.uow.track(char.character_id, currency, value)

    @staticmethod
    def _check_currency(currency: str) -> None:
        if currency not in CURRENCIES:
            raise ValueError(f"unknown currency {currency!r}")
