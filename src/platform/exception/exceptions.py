class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class InvalidInputError(DomainError):
    """Bad quantities, bad date ranges, or a discount code that fails validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class ForbiddenError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class InsufficientCapacityError(CustomBaseError):
    """Slot cannot hold the requested seats; `remaining` lets callers suggest other slots."""

    def __init__(self, message: str, *, remaining: int | None = None) -> None:
        self.remaining = remaining
        super().__init__(message, 409)


class ExternalFailureError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message, status_code)


class PaymentsGatewayError(ExternalFailureError):
    def __init__(self, message: str, *, code: str | None = None, status_code: int = 502) -> None:
        self.code = code
        super().__init__(message, status_code)


class RefundWindowExceededError(PaymentsGatewayError):
    def __init__(self, message: str = 'Refund window of 48 hours has passed') -> None:
        super().__init__(message, code='refund_window_exceeded', status_code=422)
