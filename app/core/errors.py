"""Domain errors raised by the inventory services.

Every error carries a ``kind`` string that callers can switch on without
importing the class hierarchy. Routers translate kinds into HTTP status codes;
the services never deal in transport concerns.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

INVALID_INPUT = "InvalidInput"
NOT_FOUND = "NotFound"
INSUFFICIENT_STOCK = "InsufficientStock"
CONCURRENT_MODIFICATION = "ConcurrentModification"
STORE_UNAVAILABLE = "StoreUnavailable"
BARCODE_CONFLICT = "BarcodeConflict"


@dataclass(frozen=True)
class StockProblem:
    """One offending cart line found while validating stock under lock."""

    kind: str
    inventory_item_id: int
    available: Optional[int] = None
    requested: Optional[int] = None

    def describe(self) -> str:
        if self.kind == NOT_FOUND:
            return "Item with ID {} not found".format(self.inventory_item_id)
        return "Insufficient quantity for item ID {}. Available: {}, Requested: {}".format(
            self.inventory_item_id,
            self.available,
            self.requested,
        )

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["message"] = self.describe()
        return payload


class InventoryError(Exception):
    kind = "InventoryError"
    retryable = False

    def __init__(self, message: str, *, problems: Optional[list[StockProblem]] = None):
        super().__init__(message)
        self.message = message
        self.problems = list(problems or [])

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "message": self.message,
            "retryable": self.retryable,
            "problems": [problem.to_dict() for problem in self.problems],
        }


class InvalidInput(InventoryError):
    kind = INVALID_INPUT


class NotFound(InventoryError):
    kind = NOT_FOUND

    def __init__(self, message: str, *, resource_id=None, problems=None):
        super().__init__(message, problems=problems)
        self.resource_id = resource_id


class InsufficientStock(InventoryError):
    kind = INSUFFICIENT_STOCK

    def __init__(self, inventory_item_id: int, available: int, requested: int, *, problems=None):
        problem = StockProblem(INSUFFICIENT_STOCK, inventory_item_id, available, requested)
        super().__init__(problem.describe(), problems=problems or [problem])
        self.inventory_item_id = inventory_item_id
        self.available = available
        self.requested = requested


class ConcurrentModification(InventoryError):
    kind = CONCURRENT_MODIFICATION


class StoreUnavailable(InventoryError):
    kind = STORE_UNAVAILABLE
    retryable = True


class BarcodeConflict(InventoryError):
    kind = BARCODE_CONFLICT


def error_for_problem(problem: StockProblem, problems: list[StockProblem]) -> InventoryError:
    if problem.kind == NOT_FOUND:
        return NotFound(
            problem.describe(),
            resource_id=problem.inventory_item_id,
            problems=problems,
        )
    return InsufficientStock(
        problem.inventory_item_id,
        problem.available,
        problem.requested,
        problems=problems,
    )


__all__ = [
    "BARCODE_CONFLICT",
    "CONCURRENT_MODIFICATION",
    "INSUFFICIENT_STOCK",
    "INVALID_INPUT",
    "NOT_FOUND",
    "STORE_UNAVAILABLE",
    "BarcodeConflict",
    "ConcurrentModification",
    "InsufficientStock",
    "InvalidInput",
    "InventoryError",
    "NotFound",
    "StockProblem",
    "StoreUnavailable",
    "error_for_problem",
]
