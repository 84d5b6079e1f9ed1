"""Application errors.

Store-side and validation failures are raised as ``AppError`` subclasses
and translated into JSON responses by the handler registered in
``app.main``.  ``CacheUnavailableError`` is the exception: it is raised
and caught inside ``CacheManager`` and never reaches a caller.
"""


class AppError(Exception):
    """Base application error carrying a stable code and an HTTP status."""

    def __init__(self, code: int, message: str, http_status: int = 500) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class TransactionNotFoundError(AppError):
    def __init__(self, transaction_id: int) -> None:
        super().__init__(1001, "Transaction not found", 404)
        self.transaction_id = transaction_id


class TransactionValidationError(AppError):
    def __init__(self, message: str, details: list | None = None) -> None:
        super().__init__(1002, message, 422)
        self.details = details or []


class StoreUnavailableError(AppError):
    def __init__(self, operation: str) -> None:
        super().__init__(9001, f"Transaction store unavailable during {operation}", 503)
        self.operation = operation


class CacheUnavailableError(Exception):
    """A cache round trip failed or timed out."""

    def __init__(self, operation: str, key: str, reason: str) -> None:
        self.operation = operation
        self.key = key
        self.reason = reason
        super().__init__(f"{operation} {key!r}: {reason}")
