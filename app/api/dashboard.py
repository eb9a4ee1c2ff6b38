"""
Dashboard Routes Blueprint

- /api/v1/dashboard/search: grouped follow-up board for one salesperson
"""

import logging
from flask import Blueprint, request

from app.utils.response import success_response
from database.connection import get_db_session
from services.dashboard_service import DashboardService
from validators import parse_json_body

logger = logging.getLogger(__name__)

# Create blueprint
dashboard_bp = Blueprint('dashboard_bp', __name__)


@dashboard_bp.route('/api/v1/dashboard/search', methods=['POST'])
def dashboard_search():
    """Search open todos by time and status filters, grouped per customer"""
    data = parse_json_body(request)
    with get_db_session() as session:
        return success_response(DashboardService(session).search(data))
