"""Persistence errors."""


class PersistenceError(Exception):
    """A single store write failed and was rolled back.

    Attributes:
        operation: Repository operation name (e.g., "upsert_odds")
        key: Identifying key of the row being written
    """

    def __init__(self, operation: str, key: str, cause: Exception | None = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "failed"
        super().__init__(f"{operation} {key}: {detail}")
