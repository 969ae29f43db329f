"""Error taxonomy for the economy engine.

Every error here is recoverable by the caller and leaves persisted state
untouched: the unit of work that raised it has been rolled back. Only
``Busy`` and ``Conflict`` are worth retrying automatically.
"""


class EconomyError(Exception):
    code = "E_ECONOMY"
    status = 400
    retryable = False

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "retryable": self.retryable}


class InvalidAmount(EconomyError):
    code = "E_INVALID_AMOUNT"

    def __init__(self, amount, what: str = "amount"):
        self.amount = amount
        super().__init__(f"{what} must be a positive integer (got {amount!r})")


class InsufficientFunds(EconomyError):
    code = "E_INSUFFICIENT_FUNDS"

    def __init__(self, currency: str, required: int, available: int):
        self.currency = currency
        self.required = required
        self.available = available
        super().__init__(f"not enough {currency}: need {required}, have {available}")


class ItemNotOwned(EconomyError):
    code = "E_ITEM_NOT_OWNED"

    def __init__(self, item_type: str, item_id: int, required: int = 1, owned: int = 0):
        self.item_type = item_type
        self.item_id = item_id
        self.required = required
        self.owned = owned
        super().__init__(f"{item_type}:{item_id} not owned (need {required}, have {owned})")


class ItemNotFound(EconomyError):
    code = "E_ITEM_NOT_FOUND"
    status = 404

    def __init__(self, item_type: str, item_id):
        self.item_type = item_type
        self.item_id = item_id
        super().__init__(f"unknown catalog item {item_type}:{item_id}")


class SlotInvalid(EconomyError):
    code = "E_SLOT_INVALID"

    def __init__(self, slot: str, item_type: str | None = None):
        self.slot = slot
        self.item_type = item_type
        if item_type:
            super().__init__(f"{item_type} cannot be equipped to {slot}")
        else:
            super().__init__(f"invalid slot {slot!r}")


class AlreadyClaimed(EconomyError):
    code = "E_ALREADY_CLAIMED"
    status = 409

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"reward for task {task_id} already collected")


class NotCompleted(EconomyError):
    code = "E_NOT_COMPLETED"

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"task {task_id} is not completed")


class Busy(EconomyError):
    code = "E_BUSY"
    status = 503
    retryable = True

    def __init__(self, key, timeout: float | None = None):
        self.key = key
        self.timeout = timeout
        super().__init__(f"{key} is busy, try again")


class Conflict(EconomyError):
    code = "E_CONFLICT"
    status = 409
    retryable = True


class CharacterNotFound(EconomyError):
    code = "E_NO_CHAR"
    status = 404

    def __init__(self, character_id: str):
        self.character_id = character_id
        super().__init__(f"character {character_id} not found")


class TaskNotFound(EconomyError):
    code = "E_NO_TASK"
    status = 404

    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__(f"task {task_id} not found")


class ContractNotFound(EconomyError):
    code = "E_NO_CONTRACT"
    status = 404

    def __init__(self, contract_id):
        self.contract_id = contract_id
        super().__init__(f"contract {contract_id} not found")


class GangNotFound(EconomyError):
    code = "E_NO_GANG"
    status = 404

    def __init__(self, gang_id):
        self.gang_id = gang_id
        super().__init__(f"gang {gang_id} not found")


class NotAGangMember(EconomyError):
    code = "E_NOT_MEMBER"
    status = 403

    def __init__(self, character_id: str, gang_id):
        self.character_id = character_id
        self.gang_id = gang_id
        super().__init__(f"character {character_id} is not a member of gang {gang_id}")


class InvalidTarget(EconomyError):
    code = "E_INVALID_TARGET"


class TransactionRequired(RuntimeError):
    """Ledger/inventory mutation attempted outside an open unit of work."""
