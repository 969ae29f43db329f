"""Shared game-balance constants for the economy engine."""

import math
from dataclasses import dataclass

# Starting balances for a freshly created character
START_MONEY = 1500
START_BLACKCOINS = 0

# Currency kinds
MONEY = "money"
BLACKCOINS = "blackcoins"
EXPERIENCE = "exp"
CURRENCIES = (MONEY, BLACKCOINS)


@dataclass(frozen=True)
class LevelCurve:
    base_exp: int = 100
    exp_growth: float = 1.15
    base_hp: int = 100
    hp_per_level: int = 10
    base_energy: int = 100
    energy_per_level: int = 5
    # exp_needed(max_level - 1) must fit the 64-bit exp column
    max_level: int = 250

    def exp_needed(self, level: int) -> int:
        return int(math.floor(self.base_exp * self.exp_growth ** (level - 1)))

    def max_hp(self, level: int) -> int:
        return self.base_hp + (level - 1) * self.hp_per_level

    def max_energy(self, level: int) -> int:
        return self.base_energy + (level - 1) * self.energy_per_level


LEVELS = LevelCurve()

# Equipment slots -> item kinds allowed in them
SLOT_KINDS = {
    "weapon1": ("weapon",),
    "weapon2": ("weapon",),
    "armor": ("armor",),
    "house": ("house",),
}
EQUIP_SLOTS = tuple(SLOT_KINDS)

# Character column holding the catalog id of the item in each slot
SLOT_COLUMNS = {
    "weapon1": "equipped_weapon1_id",
    "weapon2": "equipped_weapon2_id",
    "armor": "equipped_armor_id",
    "house": "equipped_house_id",
}

# Fraction of catalog price paid back when selling, per item class
SELL_RATES = {
    "weapon": 0.5,
    "armor": 0.5,
    "house": 0.7,
    "special": 0.25,
    "car": 0.25,
    "dog": 0.25,
}

# Bank
BANK_INTEREST_RATE = 0.05
BANK_INTEREST_PERIOD_SECONDS = 86_400

# Contracts
CONTRACT_TTL_HOURS = 24
CONTRACT_SWEEP_INTERVAL = 30

# Per-character lock wait before giving up with Busy
LOCK_TIMEOUT_SECONDS = 5.0
