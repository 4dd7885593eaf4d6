from typing import Any, Dict, Optional


class FinanceError(Exception):
    """Base class for failures of a single core operation."""


class Unauthenticated(FinanceError):
    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class NotFound(FinanceError):
    def __init__(self, kind: str, key: Any):
        self.kind = kind
        self.key = key
        super().__init__(f"No {kind} found for {key}")


class InsufficientFunds(FinanceError):
    def __init__(self, goal_id: str, available, requested):
        self.goal_id = goal_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient funds in goal {goal_id}: requested {requested}, available {available}"
        )


class InvalidInput(FinanceError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.details = details or {}
        super().__init__(message)

    @classmethod
    def from_left(cls, payload: Dict[str, Any]) -> "InvalidInput":
        return cls(payload.get("message", "invalid input"), details=payload)
