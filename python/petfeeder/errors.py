"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_MISSING_CODE = "E_MISSING_CODE"
    E_AUTH_EXCHANGE_FAILED = "E_AUTH_EXCHANGE_FAILED"
    E_MISSING_ACCESS_TOKEN = "E_MISSING_ACCESS_TOKEN"
    E_USERNAME_TAKEN = "E_USERNAME_TAKEN"
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"

    # Authentication errors (401)
    E_UNAUTHENTICATED = "E_UNAUTHENTICATED"
    E_BAD_CREDENTIAL = "E_BAD_CREDENTIAL"
    E_TOKEN_INVALID = "E_TOKEN_INVALID"
    E_TOKEN_EXPIRED = "E_TOKEN_EXPIRED"

    # Authorization errors (403)
    E_FORBIDDEN = "E_FORBIDDEN"

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_ACCOUNT_NOT_FOUND = "E_ACCOUNT_NOT_FOUND"
    E_FOLDER_NOT_FOUND = "E_FOLDER_NOT_FOUND"
    E_SCHEDULE_NOT_FOUND = "E_SCHEDULE_NOT_FOUND"

    # Range errors (416)
    E_RANGE_REQUIRED = "E_RANGE_REQUIRED"
    E_RANGE_NOT_SATISFIABLE = "E_RANGE_NOT_SATISFIABLE"

    # Server errors (500)
    E_PROVIDER_ERROR = "E_PROVIDER_ERROR"
    E_MALFORMED_IDENTITY = "E_MALFORMED_IDENTITY"
    E_UPSTREAM_ERROR = "E_UPSTREAM_ERROR"
    E_INTERNAL = "E_INTERNAL"


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_MISSING_CODE: 400,
    ApiErrorCode.E_AUTH_EXCHANGE_FAILED: 400,
    ApiErrorCode.E_MISSING_ACCESS_TOKEN: 400,
    ApiErrorCode.E_USERNAME_TAKEN: 400,
    ApiErrorCode.E_USER_NOT_FOUND: 400,
    ApiErrorCode.E_UNAUTHENTICATED: 401,
    ApiErrorCode.E_BAD_CREDENTIAL: 401,
    ApiErrorCode.E_TOKEN_INVALID: 401,
    ApiErrorCode.E_TOKEN_EXPIRED: 401,
    ApiErrorCode.E_FORBIDDEN: 403,
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_ACCOUNT_NOT_FOUND: 404,
    ApiErrorCode.E_FOLDER_NOT_FOUND: 404,
    ApiErrorCode.E_SCHEDULE_NOT_FOUND: 404,
    ApiErrorCode.E_RANGE_REQUIRED: 416,
    ApiErrorCode.E_RANGE_NOT_SATISFIABLE: 416,
    ApiErrorCode.E_PROVIDER_ERROR: 500,
    ApiErrorCode.E_MALFORMED_IDENTITY: 500,
    ApiErrorCode.E_UPSTREAM_ERROR: 500,
    ApiErrorCode.E_INTERNAL: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class UnauthenticatedError(ApiError):
    """Missing, invalid, or expired credentials."""

    def __init__(
        self,
        code: ApiErrorCode = ApiErrorCode.E_UNAUTHENTICATED,
        message: str = "Authentication required",
    ):
        super().__init__(code, message)


class ForbiddenError(ApiError):
    """Authorization failure error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_FORBIDDEN, message: str = "Forbidden"):
        super().__init__(code, message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class UpstreamError(ApiError):
    """Identity provider or remote object API failure."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_UPSTREAM_ERROR, message: str = "Upstream error"
    ):
        super().__init__(code, message)


class RangeNotSatisfiableError(ApiError):
    """Requested byte range cannot be served.

    When total_size is known the response carries ``Content-Range: bytes */<size>``
    and no body.
    """

    def __init__(
        self,
        message: str = "Requested range not satisfiable",
        total_size: int | None = None,
        code: ApiErrorCode = ApiErrorCode.E_RANGE_NOT_SATISFIABLE,
    ):
        self.total_size = total_size
        super().__init__(code, message)
