"""Application error taxonomy and its mapping to HTTP responses.

Every error carries a stable code, a user-facing message and an HTTP status.
Internal detail (upstream payloads, stack traces) is kept on the exception for
logging and never rendered to API clients.
"""
from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes exposed to API clients."""

    # Polymarket API
    POLYMARKET_API_ERROR = "POLYMARKET_API_ERROR"
    POLYMARKET_FETCH_FAILED = "POLYMARKET_FETCH_FAILED"
    POLYMARKET_TIMEOUT = "POLYMARKET_TIMEOUT"
    POLYMARKET_RATE_LIMIT = "POLYMARKET_RATE_LIMIT"
    POLYMARKET_INVALID_RESPONSE = "POLYMARKET_INVALID_RESPONSE"

    # Cache
    CACHE_ERROR = "CACHE_ERROR"
    CACHE_READ_FAILED = "CACHE_READ_FAILED"
    CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    INVALID_LIMIT = "INVALID_LIMIT"
    INVALID_OFFSET = "INVALID_OFFSET"
    INVALID_ORDER = "INVALID_ORDER"

    # Transformation
    TRANSFORMATION_ERROR = "TRANSFORMATION_ERROR"
    DATA_PARSING_ERROR = "DATA_PARSING_ERROR"

    # General
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"


_FETCH_MESSAGE = "Unable to fetch market data. Please try again later."

ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.POLYMARKET_API_ERROR: _FETCH_MESSAGE,
    ErrorCode.POLYMARKET_FETCH_FAILED: _FETCH_MESSAGE,
    ErrorCode.POLYMARKET_TIMEOUT: "Request timed out. Please try again later.",
    ErrorCode.POLYMARKET_RATE_LIMIT: "Too many requests. Please try again in a moment.",
    ErrorCode.POLYMARKET_INVALID_RESPONSE: (
        "Received invalid data from market service. Please try again later."
    ),
    ErrorCode.CACHE_ERROR: "Cache service error. Please try again.",
    ErrorCode.CACHE_READ_FAILED: "Unable to retrieve cached data. Please try again.",
    ErrorCode.CACHE_WRITE_FAILED: "Unable to cache data. Please try again.",
    ErrorCode.VALIDATION_ERROR: "Invalid request parameters. Please check your input.",
    ErrorCode.INVALID_CATEGORY: (
        "Invalid category. Valid categories are: trending, politics, crypto, finance, sports."
    ),
    ErrorCode.INVALID_LIMIT: "Invalid limit. Limit must be between 20 and 50.",
    ErrorCode.INVALID_OFFSET: "Invalid offset. Offset must be a non-negative number.",
    ErrorCode.INVALID_ORDER: "Invalid order. Valid orders are: volume24hr, volume, featuredOrder.",
    ErrorCode.TRANSFORMATION_ERROR: "Data processing error. Please try again later.",
    ErrorCode.DATA_PARSING_ERROR: "Data parsing error. Please try again later.",
    ErrorCode.INTERNAL_SERVER_ERROR: "Internal server error. Please try again later.",
    ErrorCode.NOT_FOUND: "Resource not found.",
    ErrorCode.BAD_REQUEST: "Bad request. Please check your input.",
}

ERROR_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.POLYMARKET_API_ERROR: 503,
    ErrorCode.POLYMARKET_FETCH_FAILED: 503,
    ErrorCode.POLYMARKET_TIMEOUT: 504,
    ErrorCode.POLYMARKET_RATE_LIMIT: 429,
    ErrorCode.POLYMARKET_INVALID_RESPONSE: 502,
    ErrorCode.CACHE_ERROR: 503,
    ErrorCode.CACHE_READ_FAILED: 503,
    ErrorCode.CACHE_WRITE_FAILED: 503,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_CATEGORY: 400,
    ErrorCode.INVALID_LIMIT: 400,
    ErrorCode.INVALID_OFFSET: 400,
    ErrorCode.INVALID_ORDER: 400,
    ErrorCode.TRANSFORMATION_ERROR: 500,
    ErrorCode.DATA_PARSING_ERROR: 500,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.BAD_REQUEST: 400,
}


class AppError(Exception):
    """Base application error.

    Args:
        code: Stable error code; selects the user message and HTTP status.
        internal_message: Detail for logs only, never sent to clients.
    """

    def __init__(self, code: ErrorCode, internal_message: str | None = None) -> None:
        self.code = code
        self.status_code = ERROR_STATUS_CODES[code]
        self.user_message = ERROR_MESSAGES[code]
        self.internal_message = internal_message
        super().__init__(self.user_message)

    def __str__(self) -> str:
        if self.internal_message:
            return f"{self.code.value}: {self.internal_message}"
        return f"{self.code.value}: {self.user_message}"

    def to_response(self) -> dict:
        """Client-safe payload: code, message and status only."""
        return {
            "code": self.code.value,
            "message": self.user_message,
            "statusCode": self.status_code,
        }


class PolymarketError(AppError):
    """Upstream Gamma API failure (network, status, payload)."""


class InvalidRequestError(AppError):
    """Request parameters rejected before any upstream call."""


class CacheError(AppError):
    """Cache backend failure that cannot be treated as a miss."""


class TransformationError(AppError):
    """A market or event could not be transformed."""


class BatchTransformError(TransformationError):
    """The batch itself is malformed (e.g. not a list); nothing to salvage."""


def error_response(exc: Exception) -> dict:
    """Build the client payload for any exception; unknown errors become generic 500s."""
    if isinstance(exc, AppError):
        return exc.to_response()
    return AppError(ErrorCode.INTERNAL_SERVER_ERROR).to_response()
