"""
Tag API Routes Blueprint

- /api/v1/tag-dimensions[/<id>]        - dimension CRUD
- /api/v1/tags[/<id>]                  - tag CRUD
- /api/v1/tags/active                  - every live tag, unpaged
- /api/v1/tags/dimension/<dimension_id>
"""

import logging
from flask import Blueprint, request

from app.utils.response import success_response, list_response
from database.connection import get_db_session
from services.tag_repository import TagRepository
from validators import parse_json_body, parse_pagination, parse_int

logger = logging.getLogger(__name__)

# Create blueprint
tags_bp = Blueprint('tags_bp', __name__)


# ============================================================================
# DIMENSIONS
# ============================================================================

@tags_bp.route('/api/v1/tag-dimensions', methods=['GET'])
def list_dimensions():
    with get_db_session() as session:
        items = TagRepository(session).list_dimensions()
        return list_response(items, len(items))


@tags_bp.route('/api/v1/tag-dimensions', methods=['POST'])
def create_dimension():
    data = parse_json_body(request)
    with get_db_session() as session:
        dimension = TagRepository(session).create_dimension(data)
        return success_response(dimension, message='标签维度创建成功', status=201)


@tags_bp.route('/api/v1/tag-dimensions/<int:dimension_id>', methods=['GET'])
def get_dimension(dimension_id):
    with get_db_session() as session:
        return success_response(TagRepository(session).get_dimension(dimension_id))


@tags_bp.route('/api/v1/tag-dimensions/<int:dimension_id>', methods=['PUT'])
def update_dimension(dimension_id):
    data = parse_json_body(request)
    with get_db_session() as session:
        dimension = TagRepository(session).update_dimension(dimension_id, data)
        return success_response(dimension, message='标签维度更新成功')


@tags_bp.route('/api/v1/tag-dimensions/<int:dimension_id>', methods=['DELETE'])
def delete_dimension(dimension_id):
    with get_db_session() as session:
        TagRepository(session).delete_dimension(dimension_id)
        return success_response(message='标签维度删除成功')


# ============================================================================
# TAGS
# ============================================================================

@tags_bp.route('/api/v1/tags', methods=['GET'])
def list_tags():
    page, page_size = parse_pagination(request.args)
    filters = {
        'dimension_id': parse_int(request.args.get('dimension_id'), 'dimension_id'),
        'name': request.args.get('name'),
    }
    with get_db_session() as session:
        items, total = TagRepository(session).list_tags(filters, page, page_size)
        return list_response(items, total)


@tags_bp.route('/api/v1/tags/active', methods=['GET'])
def active_tags():
    with get_db_session() as session:
        return success_response(TagRepository(session).active_tags())


@tags_bp.route('/api/v1/tags/dimension/<int:dimension_id>', methods=['GET'])
def tags_by_dimension(dimension_id):
    with get_db_session() as session:
        return success_response(TagRepository(session).tags_by_dimension(dimension_id))


@tags_bp.route('/api/v1/tags', methods=['POST'])
def create_tag():
    data = parse_json_body(request)
    with get_db_session() as session:
        tag = TagRepository(session).create_tag(data)
        return success_response(tag, message='标签创建成功', status=201)


@tags_bp.route('/api/v1/tags/<int:tag_id>', methods=['GET'])
def get_tag(tag_id):
    with get_db_session() as session:
        return success_response(TagRepository(session).get_tag(tag_id))


@tags_bp.route('/api/v1/tags/<int:tag_id>', methods=['PUT'])
def update_tag(tag_id):
    data = parse_json_body(request)
    with get_db_session() as session:
        tag = TagRepository(session).update_tag(tag_id, data)
        return success_response(tag, message='标签更新成功')


@tags_bp.route('/api/v1/tags/<int:tag_id>', methods=['DELETE'])
def delete_tag(tag_id):
    with get_db_session() as session:
        TagRepository(session).delete_tag(tag_id)
        return success_response(message='标签删除成功')
