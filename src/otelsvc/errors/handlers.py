"""Error handling utilities."""

import traceback
from typing import Any

from otelsvc.errors.base import OtelsvcError
from otelsvc.errors.codes import ErrorCode


def format_error(error: Exception, include_traceback: bool = False) -> dict[str, Any]:
    """Format any exception into a standardized error response.

    Args:
        error: The exception to format
        include_traceback: Attach the formatted traceback for non-otelsvc errors

    Returns:
        Dictionary containing error details
    """
    if isinstance(error, OtelsvcError):
        return error.to_dict()

    details: dict[str, Any] = {}
    if include_traceback:
        details["traceback"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )

    return {
        "error": error.__class__.__name__,
        "code": str(ErrorCode.UNKNOWN),
        "message": str(error),
        "details": details,
    }
