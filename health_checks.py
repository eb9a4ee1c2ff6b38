"""
Health Check & Monitoring Endpoints
Liveness, readiness (database) and process metrics for the CRM service
"""
import os
import sys
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from flask import Blueprint, jsonify
import logging

from database.connection import check_db_connection, is_db_configured

logger = logging.getLogger(__name__)

# Create Blueprint for health check routes
health_bp = Blueprint('health', __name__)

SERVICE_NAME = 'CRM API'

# Track application start time
START_TIME = time.time()


def get_system_metrics() -> Dict[str, Any]:
    """
    Get basic process metrics

    Returns:
        Dictionary of system metrics
    """
    try:
        process = psutil.Process()

        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': round(process.memory_info().rss / 1024 / 1024, 2),
            'memory_percent': round(process.memory_percent(), 2),
            'threads': process.num_threads(),
        }
    except psutil.Error as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    uptime_seconds = time.time() - START_TIME

    return {
        'uptime_seconds': round(uptime_seconds, 2),
        'uptime_minutes': round(uptime_seconds / 60, 2),
        'uptime_hours': round(uptime_seconds / 3600, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def check_database() -> Dict[str, Any]:
    """
    Run SELECT 1 against the configured database

    Returns:
        Dictionary with configured/healthy flags and the error, if any
    """
    if not is_db_configured():
        return {'configured': False, 'healthy': False, 'error': 'database not configured'}
    try:
        check_db_connection()
        return {'configured': True, 'healthy': True}
    except RuntimeError as e:
        return {'configured': True, 'healthy': False, 'error': str(e)}


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint
    Returns 200 if application is running
    """
    return jsonify({'status': 'healthy', 'service': SERVICE_NAME}), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness probe endpoint
    Returns 200 when the database answers, 503 otherwise
    """
    database = check_database()
    is_ready = database['healthy']

    response = {
        'status': 'ready' if is_ready else 'not_ready',
        'timestamp': datetime.now().isoformat(),
        'checks': {'database': database}
    }
    return jsonify(response), 200 if is_ready else 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """
    Basic metrics endpoint
    Returns process metrics and uptime
    """
    from services.scheduler import get_scheduler

    response = {
        'timestamp': datetime.now().isoformat(),
        'service': SERVICE_NAME,
        'environment': os.environ.get('FLASK_ENV', 'development'),
        'uptime': get_uptime(),
        'system': get_system_metrics(),
        'scheduler': get_scheduler().get_job_status(),
        'python_version': sys.version.split()[0]
    }
    return jsonify(response), 200


@health_bp.route('/ping', methods=['GET'])
def ping():
    """Simple ping endpoint"""
    return 'pong', 200


def register_health_checks(app):
    """
    Register health check blueprint with Flask app

    Args:
        app: Flask application instance
    """
    app.register_blueprint(health_bp)
    logger.info("Health check endpoints registered: /health, /ready, /metrics, /ping")
