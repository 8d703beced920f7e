from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ConflictError(AppError):
    pass


class ValidationError(AppError):
    pass


class ConcurrencyError(ConflictError):
    """Commit hit a row whose version changed since it was loaded."""


class UniqueConstraintViolationError(ConflictError):
    """Commit violated a unique constraint (SQLSTATE 23505)."""


class IdentityProviderError(AppError):
    """The external identity provider rejected or failed a request."""


class AuthenticationError(AppError):
    """The identity provider rejected the credentials or refresh token."""
