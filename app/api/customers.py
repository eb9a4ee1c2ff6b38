"""
Customer API Routes Blueprint

- /api/v1/customers              - list / create
- /api/v1/customers/<id>         - read / update / delete
- /api/v1/customers/<id>/favors, /remark, /system-tags - field updates
- /api/v1/customers/search       - body search (POST) and quick search (GET)
- /api/v1/customers/special      - half-year / never ordered customers
- /api/v1/upload-excel, /api/v1/export-excel - Excel import and export
"""

import logging
from flask import Blueprint, request, send_file

from app.utils.helpers import now
from app.utils.response import success_response, list_response, InvalidParamsError
from database.connection import get_db_session
from services.customer_repository import CustomerRepository, SEARCH_DEFAULT_LIMIT
from services.excel_service import ExcelService, EXPORT_MIMETYPE
from validators import (
    ensure_valid, parse_json_body, parse_pagination, parse_id_list, parse_int,
    validate_required_fields, validate_excel_upload
)

logger = logging.getLogger(__name__)

# Create blueprint
customers_bp = Blueprint('customers_bp', __name__)


# ============================================================================
# CRUD
# ============================================================================

@customers_bp.route('/api/v1/customers', methods=['GET'])
def list_customers():
    """Paged customer list, newest first"""
    page, limit = parse_pagination(request.args, size_key='limit')
    with get_db_session() as session:
        items, total = CustomerRepository(session).list_customers(
            page=page, limit=limit, search=request.args.get('search')
        )
        return list_response(items, total)


@customers_bp.route('/api/v1/customers', methods=['POST'])
def create_customer():
    data = parse_json_body(request)
    with get_db_session() as session:
        customer = CustomerRepository(session).create_customer(data)
        return success_response(customer, message='客户创建成功', status=201)


@customers_bp.route('/api/v1/customers/<int:customer_id>', methods=['GET'])
def get_customer(customer_id):
    with get_db_session() as session:
        return success_response(CustomerRepository(session).get_customer(customer_id))


@customers_bp.route('/api/v1/customers/<int:customer_id>', methods=['PUT'])
def update_customer(customer_id):
    data = parse_json_body(request)
    with get_db_session() as session:
        customer = CustomerRepository(session).update_customer(customer_id, data)
        return success_response(customer, message='客户更新成功')


@customers_bp.route('/api/v1/customers/<int:customer_id>', methods=['DELETE'])
def delete_customer(customer_id):
    with get_db_session() as session:
        CustomerRepository(session).delete_customer(customer_id)
        return success_response(message='客户删除成功')


# ============================================================================
# FIELD UPDATES
# ============================================================================

@customers_bp.route('/api/v1/customers/<int:customer_id>/favors', methods=['PUT'])
def update_favors(customer_id):
    """Replace the customer's product preferences"""
    data = parse_json_body(request)
    if 'favors' not in data or data['favors'] is None:
        raise InvalidParamsError('缺少必填字段: favors')
    with get_db_session() as session:
        customer = CustomerRepository(session).update_favors(customer_id, data['favors'])
        return success_response(customer, message='偏好更新成功')


@customers_bp.route('/api/v1/customers/<int:customer_id>/remark', methods=['PUT'])
def update_remark(customer_id):
    data = parse_json_body(request)
    remark = data.get('remark')
    if remark is None:
        raise InvalidParamsError('缺少必填字段: remark')
    with get_db_session() as session:
        customer = CustomerRepository(session).update_remark(customer_id, remark)
        return success_response(customer, message='备注更新成功')


@customers_bp.route('/api/v1/customers/<int:customer_id>/system-tags', methods=['PUT'])
def update_system_tags(customer_id):
    data = parse_json_body(request)
    ensure_valid(validate_required_fields(data, ['system_tags']))
    with get_db_session() as session:
        customer = CustomerRepository(session).update_system_tags(customer_id, data['system_tags'])
        return success_response(customer, message='系统标签更新成功')


# ============================================================================
# SEARCH
# ============================================================================

@customers_bp.route('/api/v1/customers/search', methods=['POST'])
def search_customers():
    """Full text search with system tag overlap"""
    data = parse_json_body(request, required=False)
    system_tags = data.get('system_tags') or []
    if not isinstance(system_tags, list):
        raise InvalidParamsError('system_tags必须是数组')

    page = parse_int(data.get('page'), 'page', 1)
    limit = parse_int(data.get('limit'), 'limit', SEARCH_DEFAULT_LIMIT)
    with get_db_session() as session:
        items, total = CustomerRepository(session).search_customers(
            search=data.get('search'), system_tags=system_tags, page=page, limit=limit
        )
        return list_response(items, total)


@customers_bp.route('/api/v1/customers/search', methods=['GET'])
def quick_search_customers():
    """Keyword search box; system_tags is a comma separated id list"""
    system_tags = parse_id_list(request.args.get('system_tags'), 'system_tags')
    with get_db_session() as session:
        items = CustomerRepository(session).quick_search(request.args.get('keyword'), system_tags)
        return success_response(items)


@customers_bp.route('/api/v1/customers/special', methods=['GET'])
def special_customers():
    customer_type = request.args.get('type')
    if not customer_type:
        raise InvalidParamsError('缺少客户类型')
    page, page_size = parse_pagination(request.args)
    with get_db_session() as session:
        items, total = CustomerRepository(session).special_customers(customer_type, page, page_size)
        return list_response(items, total)


# ============================================================================
# EXCEL
# ============================================================================

@customers_bp.route('/api/v1/upload-excel', methods=['POST'])
def upload_excel():
    """Import customers from an uploaded xlsx workbook"""
    file = request.files.get('file')
    is_valid, error = validate_excel_upload(file)
    if not is_valid:
        raise InvalidParamsError(error)

    with get_db_session() as session:
        result = ExcelService(session).import_customers(file.stream)
        return success_response(result, message=f"成功导入{result['imported']}个客户")


@customers_bp.route('/api/v1/export-excel', methods=['GET'])
def export_excel():
    with get_db_session() as session:
        output = ExcelService(session).export_customers()

    filename = f"customers_{now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return send_file(output, mimetype=EXPORT_MIMETYPE, as_attachment=True, download_name=filename)
