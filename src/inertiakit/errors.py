from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    COMPONENT_NOT_FOUND = "COMPONENT_NOT_FOUND"
    INVALID_PROP = "INVALID_PROP"
    STATE_NOT_INITIALIZED = "STATE_NOT_INITIALIZED"


class InertiaError(Exception):
    """Raised for configuration and usage errors detected by the adapter.

    Business-logic failures raised by prop callbacks are never wrapped in
    this type; they propagate to the host unchanged.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
            }
        }
