"""
Utilities Package

Shared helpers: the business clock and the JSON response envelope.
"""

from app.utils.helpers import (
    now,
    day_range,
    today_range,
    add_months,
    parse_datetime,
    format_datetime,
)

from app.utils.response import (
    ErrorCode,
    CRMError,
    NotFoundError,
    InvalidParamsError,
    ValidationError,
    DatabaseError,
    success_response,
    list_response,
    error_response,
)

__all__ = [
    'now',
    'day_range',
    'today_range',
    'add_months',
    'parse_datetime',
    'format_datetime',
    'ErrorCode',
    'CRMError',
    'NotFoundError',
    'InvalidParamsError',
    'ValidationError',
    'DatabaseError',
    'success_response',
    'list_response',
    'error_response',
]
