"""
Exception hierarchy for Bookshelf.

Every error the API reports to a client is a BookshelfException carrying
an error code and HTTP status. The exception handlers in
``bookshelf.api.middleware.error_handler`` translate them into responses.
"""


class BookshelfException(Exception):
    """Base exception for Bookshelf errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: str = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ValidationError(BookshelfException):
    """Input validation failed."""

    def __init__(self, message: str, detail: str = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


class UnauthorizedError(BookshelfException):
    """No valid session."""

    def __init__(self, message: str = "Unauthorized", detail: str = None):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            detail=detail,
        )


class ForbiddenError(BookshelfException):
    """Session is valid but lacks the required role."""

    def __init__(self, message: str = "Forbidden", detail: str = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            detail=detail,
        )


class NotFoundError(BookshelfException):
    """Resource not found."""

    def __init__(self, resource: str, identifier):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource} with identifier '{identifier}' exists",
        )


class ConflictError(BookshelfException):
    """Request conflicts with existing state."""

    def __init__(self, message: str, detail: str = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            detail=detail,
        )


class TransientStoreError(BookshelfException):
    """A backing store could not be reached. Safe for the caller to retry."""

    def __init__(self, store: str, detail: str = None):
        super().__init__(
            message=f"{store} store unavailable",
            code="STORE_UNAVAILABLE",
            status_code=503,
            detail=detail,
        )
