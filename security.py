"""
Security Utilities & Middleware
CORS, response headers, request logging and the JSON error envelope handlers
"""
from typing import Dict, Any
from flask import Flask, request, Response
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
import logging

from app.utils.response import ErrorCode, CRMError, error_response

logger = logging.getLogger(__name__)

# Paths excluded from request logging
QUIET_PATHS = ('/health', '/ping')

HTTP_ERROR_CODES = {
    400: ErrorCode.INVALID_PARAMS,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.INVALID_PARAMS,
    413: ErrorCode.INVALID_PARAMS,
}

HTTP_ERROR_MESSAGES = {
    400: '请求参数错误',
    404: '资源未找到',
    405: '请求方法不允许',
    413: '上传文件过大',
}


def setup_security_headers(app: Flask):
    """
    Add security headers to all responses

    Args:
        app: Flask application instance
    """
    @app.after_request
    def add_security_headers(response: Response) -> Response:
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-XSS-Protection'] = '1; mode=block'

        # Strict Transport Security (HTTPS only in production)
        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    logger.info("Security headers configured")


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Configure CORS for the web and mobile frontends

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    cors_origins = config.get('CORS_ORIGINS', ['*'])
    cors_methods = config.get('CORS_METHODS', ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'])
    cors_headers = config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'Authorization'])

    if not app.debug and '*' in cors_origins:
        logger.warning("Using wildcard CORS in production! Set CORS_ORIGINS environment variable.")

    CORS(
        app,
        origins=cors_origins,
        methods=cors_methods,
        allow_headers=cors_headers,
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def setup_error_handlers(app: Flask):
    """
    Render every error as a JSON envelope without exposing stack traces

    Args:
        app: Flask application instance
    """

    @app.errorhandler(CRMError)
    def handle_crm_error(error: CRMError):
        """Errors raised on purpose by the repositories and services"""
        logger.info(f"{request.method} {request.path} -> {error.code.name}: {error.message}")
        return error_response(error.code, error.message)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error: SQLAlchemyError):
        logger.error(f"Database error on {request.method} {request.path}: {error}", exc_info=True)
        return error_response(ErrorCode.DATABASE_ERROR)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        """Werkzeug errors (unknown route, wrong method, bad body...)"""
        code = HTTP_ERROR_CODES.get(error.code)
        if code is None:
            body, _ = error_response(ErrorCode.INTERNAL_ERROR, error.description)
            return body, error.code
        body, _ = error_response(code, HTTP_ERROR_MESSAGES.get(error.code))
        return body, error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.error(f"Internal server error on {request.method} {request.path}: {error}", exc_info=True)
        return error_response(ErrorCode.INTERNAL_ERROR)

    logger.info("Error handlers registered")


def setup_request_logging(app: Flask):
    """
    Setup request/response logging

    Args:
        app: Flask application instance
    """
    @app.before_request
    def log_request():
        if request.path in QUIET_PATHS:
            return

        logger.info(
            f"Request: {request.method} {request.path} "
            f"from {request.remote_addr}"
        )

    @app.after_request
    def log_response(response: Response) -> Response:
        if request.path in QUIET_PATHS:
            return response

        logger.info(
            f"Response: {request.method} {request.path} "
            f"status={response.status_code} "
            f"size={response.content_length}"
        )

        return response

    logger.info("Request logging configured")


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    logger.info("Configuring application security...")

    setup_cors(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    logger.info("Security configuration complete")
