"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    status_code = 400

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when a business invariant is violated."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class LedgerCapExceededError(AppError):
    """Raised when a user's ledger is larger than the unpaginated fetch cap."""

    status_code = 422

    def __init__(self, user_id: str, cap: int):
        super().__init__(
            f"Ledger for user {user_id} exceeds the fetch cap of {cap} transactions",
            code="LEDGER_CAP_EXCEEDED",
        )


class AtomicWriteAbortedError(AppError):
    """Raised when the ledger/cash unit of work fails and is rolled back.

    Retryable: nothing from the aborted unit was persisted.
    """

    status_code = 503

    def __init__(self, message: str):
        super().__init__(message, code="ATOMIC_WRITE_ABORTED")


class PriceUnavailableError(AppError):
    """Raised when neither the stream cache nor the REST quote has a price.

    Distinct from a zero price: callers must treat the value as unknown.
    """

    status_code = 503

    def __init__(self, symbol: str, reason: str = "no quote available"):
        self.symbol = symbol
        super().__init__(f"Price unavailable for {symbol}: {reason}", code="PRICE_UNAVAILABLE")
