"""Base error types shared by the domain apps.

Each app defines its own subclasses next to the services that raise them.
Views translate any ``DomainError`` into ``{"detail": ...}`` with the
error's ``status_code``.
"""

from rest_framework import status
from rest_framework.response import Response


class DomainError(Exception):
    """Business-rule failure surfaced to API clients."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."


def error_response(exc: DomainError) -> Response:
    return Response({"detail": exc.detail}, status=exc.status_code)
