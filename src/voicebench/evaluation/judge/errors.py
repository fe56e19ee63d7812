"""Judge error type."""

from __future__ import annotations

from enum import Enum


class JudgeErrorCode(str, Enum):
    """Why a judge evaluation failed."""

    API_ERROR = "API_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    PARSE_ERROR = "PARSE_ERROR"
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_INPUT = "INVALID_INPUT"


class JudgeError(Exception):
    """Raised when the LLM judge cannot produce a valid evaluation.

    Attributes:
        code: Failure category.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        code: JudgeErrorCode,
        cause: BaseException | None = None,
    ) -> None:
        self.code = code
        self.cause = cause
        super().__init__(message)
