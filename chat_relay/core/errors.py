from __future__ import annotations

from typing import Any


class RelayError(Exception):
    code = "internal_error"
    status_code = 500

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return error


class ValidationError(RelayError):
    code = "invalid_request"
    status_code = 400


class UpstreamError(RelayError):
    """Non-success response from the completion provider.

    The upstream status and body are passed through to the caller.
    """

    code = "upstream_error"

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"upstream returned status {status}", details=body)
        self.status = status
        self.body = body
        # redirects and other non-error statuses are not meaningful to the caller
        self.status_code = status if status >= 400 else 502


class UpstreamTimeoutError(RelayError):
    code = "timeout"
    status_code = 504


class TransportError(RelayError):
    code = "transport_error"
    status_code = 500
