"""
Error Codes
Flat taxonomy of the errors a client can record as its last error.
"""

import enum
import functools
import operator
from typing import Any, Optional


class ErrorCode(enum.IntFlag):
    """Bitwise compatible error codes, so several can be combined."""

    NONE = 0
    HTTP_404 = 1
    HTTP_500 = 2
    HTTP_401 = 4
    HTTP_UNKNOWN = 8
    INVALID_METHOD = 16
    ERRONEOUS_ERROR = 32  # a non-enumerated code was set
    AUTH_REQUIRED = 64
    NOT_IMPLEMENTED_YET = 128
    OOB_PIN_NAN = 256
    HTTP_403 = 512
    DESKTOP_CANNOT_AUTHENTICATE = 1024


_ALL_CODES = functools.reduce(operator.or_, (code.value for code in ErrorCode), 0)

HTTP_STATUS_ERRORS = {
    404: ErrorCode.HTTP_404,
    401: ErrorCode.HTTP_401,
    403: ErrorCode.HTTP_403,
    500: ErrorCode.HTTP_500,
}


def error_for_status(status: int) -> ErrorCode:
    """Map a non-200 HTTP status to its error code."""
    return HTTP_STATUS_ERRORS.get(status, ErrorCode.HTTP_UNKNOWN)


def coerce_error_code(value: Any) -> Optional[ErrorCode]:
    """Return value as an ErrorCode, or None if it is not a valid one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    if number < 0 or number & ~_ALL_CODES:
        return None
    return ErrorCode(number)
