"""Domain layer definitions."""

from .aggregates import AssignmentAggregate, DebtAggregate, PaymentAggregate
from .sessions import SessionScope

__all__ = [
    "AssignmentAggregate",
    "DebtAggregate",
    "PaymentAggregate",
    "SessionScope",
]
