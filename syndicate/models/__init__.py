from .base import db, Model, metadata, utcnow

# Import model modules so tables register with metadata
from .users import User                                         # noqa: F401
from .characters import Character                               # noqa: F401
from .inventory import InventoryEntry                           # noqa: F401
from .catalog import Weapon, Armor, House, SpecialItem, Car, Dog  # noqa: F401
from .tasks import Task, UserTaskProgress                       # noqa: F401
from .bank import BankAccount, BankTxn                          # noqa: F401
from .gangs import Gang, GangMember                             # noqa: F401
from .contracts import (                                        # noqa: F401
    BloodContract, CONTRACT_OPEN, CONTRACT_FULFILLED, CONTRACT_EXPIRED,
)

__all__ = [
    "db", "Model", "metadata", "utcnow",
    "User", "Character", "InventoryEntry",
    "Weapon", "Armor", "House", "SpecialItem", "Car", "Dog",
    "Task", "UserTaskProgress",
    "BankAccount", "BankTxn",
    "Gang", "GangMember",
    "BloodContract", "CONTRACT_OPEN", "CONTRACT_FULFILLED", "CONTRACT_EXPIRED",
]
