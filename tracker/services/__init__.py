from tracker.services import (
    check_in_engine,
    ledger_service,
    task_service,
    user_service,
)


__all__ = [
    "check_in_engine",
    "ledger_service",
    "task_service",
    "user_service",
]
