"""
JSON response envelope shared by every API blueprint.

Every response has the shape:
    {"code": 0, "message": "操作成功", "data": ..., "total": N, "timestamp": 1700000000}

`data` is omitted when there is none and `total` only appears on list responses.
"""

import time
from enum import IntEnum

from flask import jsonify


class ErrorCode(IntEnum):
    SUCCESS = 0
    INVALID_PARAMS = 1
    DATABASE_ERROR = 2
    NOT_FOUND = 3
    INTERNAL_ERROR = 4
    VALIDATION_ERROR = 5


CODE_MESSAGES = {
    ErrorCode.SUCCESS: '操作成功',
    ErrorCode.INVALID_PARAMS: '参数错误',
    ErrorCode.DATABASE_ERROR: '数据库操作失败',
    ErrorCode.NOT_FOUND: '资源未找到',
    ErrorCode.INTERNAL_ERROR: '服务器内部错误',
    ErrorCode.VALIDATION_ERROR: '数据验证失败',
}


def http_status_for(code):
    """Map an envelope error code to its HTTP status."""
    if code == ErrorCode.SUCCESS:
        return 200
    if code == ErrorCode.NOT_FOUND:
        return 404
    if code in (ErrorCode.INVALID_PARAMS, ErrorCode.VALIDATION_ERROR):
        return 400
    return 500


def build_envelope(code, message=None, data=None, total=None):
    """Build the envelope dict without wrapping it in a Flask response."""
    body = {
        'code': int(code),
        'message': message or CODE_MESSAGES.get(code, ''),
        'timestamp': int(time.time()),
    }
    if data is not None:
        body['data'] = data
    if total is not None:
        body['total'] = total
    return body


def success_response(data=None, message=None, status=200):
    return jsonify(build_envelope(ErrorCode.SUCCESS, message, data)), status


def list_response(items, total):
    """Success envelope for paged lists."""
    return jsonify(build_envelope(ErrorCode.SUCCESS, data=items, total=total)), 200


def error_response(code, message=None):
    return jsonify(build_envelope(code, message)), http_status_for(code)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class CRMError(Exception):
    """Base error raised by services; rendered as an error envelope."""
    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message=None):
        self.message = message or CODE_MESSAGES[self.code]
        super().__init__(self.message)


class InvalidParamsError(CRMError):
    code = ErrorCode.INVALID_PARAMS


class DatabaseError(CRMError):
    code = ErrorCode.DATABASE_ERROR


class NotFoundError(CRMError):
    code = ErrorCode.NOT_FOUND


class ValidationError(CRMError):
    code = ErrorCode.VALIDATION_ERROR
