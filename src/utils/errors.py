"""
Operational errors raised by services and translated to HTTP responses.

Services raise AppError through the named constructors; the handlers in
src/web/errors.py turn them into the standard error body.
"""

from http import HTTPStatus


class AppError(Exception):
    """An expected failure carrying the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.status = "fail" if 400 <= self.status_code < 500 else "error"

    def __repr__(self) -> str:
        return f"AppError({self.status_code}, {self.message!r})"

    @classmethod
    def bad_request(cls, message: str = HTTPStatus.BAD_REQUEST.phrase) -> "AppError":
        return cls(message, HTTPStatus.BAD_REQUEST)

    @classmethod
    def unauthorized(cls, message: str = HTTPStatus.UNAUTHORIZED.phrase) -> "AppError":
        return cls(message, HTTPStatus.UNAUTHORIZED)

    @classmethod
    def forbidden(cls, message: str = HTTPStatus.FORBIDDEN.phrase) -> "AppError":
        return cls(message, HTTPStatus.FORBIDDEN)

    @classmethod
    def not_found(cls, message: str = HTTPStatus.NOT_FOUND.phrase) -> "AppError":
        return cls(message, HTTPStatus.NOT_FOUND)

    @classmethod
    def conflict(cls, message: str = HTTPStatus.CONFLICT.phrase) -> "AppError":
        return cls(message, HTTPStatus.CONFLICT)

    @classmethod
    def unprocessable(cls, message: str = HTTPStatus.UNPROCESSABLE_ENTITY.phrase) -> "AppError":
        return cls(message, HTTPStatus.UNPROCESSABLE_ENTITY)

    @classmethod
    def too_many_requests(cls, message: str = HTTPStatus.TOO_MANY_REQUESTS.phrase) -> "AppError":
        return cls(message, HTTPStatus.TOO_MANY_REQUESTS)

    @classmethod
    def internal(cls, message: str = HTTPStatus.INTERNAL_SERVER_ERROR.phrase) -> "AppError":
        return cls(message, HTTPStatus.INTERNAL_SERVER_ERROR)
