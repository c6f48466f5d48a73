"""Infrastructure layer exports."""

from .records import (
    AssignmentQuery,
    DebtQuery,
    InMemoryRecordStore,
    PaymentQuery,
    PitakQuery,
    RecordStore,
    WorkerQuery,
)
from .sessions import (
    EnvironmentSessionResolver,
    SessionResolver,
    StaticSessionResolver,
    configure_session_resolver,
    get_session_resolver,
    reset_session_resolver,
)
from .snapshot import SnapshotLoadResult, load_snapshot

__all__ = [
    "AssignmentQuery",
    "DebtQuery",
    "EnvironmentSessionResolver",
    "InMemoryRecordStore",
    "PaymentQuery",
    "PitakQuery",
    "RecordStore",
    "SessionResolver",
    "SnapshotLoadResult",
    "StaticSessionResolver",
    "WorkerQuery",
    "configure_session_resolver",
    "get_session_resolver",
    "load_snapshot",
    "reset_session_resolver",
]
