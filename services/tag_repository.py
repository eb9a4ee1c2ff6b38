"""
Tag Repository - tag dimensions and the tags inside them.
Both tables are soft deleted.
"""

import logging
from typing import List, Dict, Any, Tuple
from sqlalchemy.orm import Session, joinedload, selectinload

from app.utils.helpers import now
from app.utils.response import NotFoundError, ValidationError
from database.models import TagDimension, Tag, DEFAULT_TAG_COLOR
from validators import ensure_valid, validate_required_fields, validate_string_length

logger = logging.getLogger(__name__)

DIMENSION_FIELDS = ('name', 'description', 'sort_order')
TAG_FIELDS = ('dimension_id', 'name', 'color', 'description', 'sort_order')


class TagRepository:
    """Repository for tag dimension and tag operations."""

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # DIMENSIONS
    # =========================================================================

    def _dimensions(self):
        return self.session.query(TagDimension).filter(TagDimension.is_deleted == False)  # noqa: E712

    def _get_dimension(self, dimension_id: int) -> TagDimension:
        dimension = self._dimensions().filter(TagDimension.id == dimension_id).first()
        if not dimension:
            raise NotFoundError('标签维度不存在')
        return dimension

    def _check_dimension_name(self, name: str, exclude_id: int = None):
        query = self._dimensions().filter(TagDimension.name == name)
        if exclude_id is not None:
            query = query.filter(TagDimension.id != exclude_id)
        if query.first():
            raise ValidationError('维度名称已存在')

    def list_dimensions(self) -> List[Dict]:
        dimensions = self._dimensions().options(selectinload(TagDimension.tags)) \
            .order_by(TagDimension.sort_order, TagDimension.id).all()
        return [d.to_dict(include_tags=True) for d in dimensions]

    def get_dimension(self, dimension_id: int) -> Dict:
        return self._get_dimension(dimension_id).to_dict(include_tags=True)

    def create_dimension(self, data: Dict) -> Dict:
        ensure_valid(validate_required_fields(data, ['name']))
        ensure_valid(validate_string_length(data['name'], 1, 128, '维度名称'))
        self._check_dimension_name(data['name'])

        dimension = TagDimension(
            name=data['name'],
            description=data.get('description', ''),
            sort_order=data.get('sort_order') or 0
        )
        self.session.add(dimension)
        self.session.flush()
        logger.info(f"Created tag dimension: {dimension.id}")
        return dimension.to_dict(include_tags=True)

    def update_dimension(self, dimension_id: int, data: Dict) -> Dict:
        dimension = self._get_dimension(dimension_id)
        if data.get('name') is not None:
            ensure_valid(validate_string_length(data['name'], 1, 128, '维度名称'))
            self._check_dimension_name(data['name'], exclude_id=dimension_id)

        for key in DIMENSION_FIELDS:
            if key in data and data[key] is not None:
                setattr(dimension, key, data[key])
        dimension.updated_at = now()
        self.session.flush()
        logger.info(f"Updated tag dimension: {dimension_id}")
        return dimension.to_dict(include_tags=True)

    def delete_dimension(self, dimension_id: int) -> bool:
        """Soft delete a dimension together with its tags."""
        dimension = self._get_dimension(dimension_id)
        current = now()
        dimension.is_deleted = True
        dimension.deleted_at = current
        self.session.query(Tag).filter(
            Tag.dimension_id == dimension_id,
            Tag.is_deleted == False  # noqa: E712
        ).update({'is_deleted': True, 'deleted_at': current}, synchronize_session=False)
        self.session.flush()
        logger.info(f"Deleted tag dimension: {dimension_id}")
        return True

    # =========================================================================
    # TAGS
    # =========================================================================

    def _tags(self):
        return self.session.query(Tag).options(joinedload(Tag.dimension)) \
            .filter(Tag.is_deleted == False)  # noqa: E712

    def _get_tag(self, tag_id: int) -> Tag:
        tag = self._tags().filter(Tag.id == tag_id).first()
        if not tag:
            raise NotFoundError('标签不存在')
        return tag

    def build_tag_query(self, filters: Dict[str, Any]):
        query = self._tags().join(TagDimension, Tag.dimension_id == TagDimension.id)
        if filters.get('dimension_id') is not None:
            query = query.filter(Tag.dimension_id == filters['dimension_id'])
        if filters.get('name'):
            query = query.filter(Tag.name.like(f"%{filters['name']}%"))
        return query.order_by(TagDimension.sort_order, Tag.sort_order, Tag.id)

    def list_tags(self, filters: Dict[str, Any], page: int = 1, page_size: int = 20) -> Tuple[List[Dict], int]:
        query = self.build_tag_query(filters)
        total = query.count()
        tags = query.offset((page - 1) * page_size).limit(page_size).all()
        return [t.to_dict() for t in tags], total

    def active_tags(self) -> List[Dict]:
        return [t.to_dict() for t in self.build_tag_query({}).all()]

    def tags_by_dimension(self, dimension_id: int) -> List[Dict]:
        tags = self._tags().filter(Tag.dimension_id == dimension_id) \
            .order_by(Tag.sort_order, Tag.id).all()
        return [t.to_dict() for t in tags]

    def get_tag(self, tag_id: int) -> Dict:
        return self._get_tag(tag_id).to_dict()

    def create_tag(self, data: Dict) -> Dict:
        ensure_valid(validate_required_fields(data, ['dimension_id', 'name']))
        ensure_valid(validate_string_length(data['name'], 1, 128, '标签名称'))
        self._get_dimension(data['dimension_id'])

        tag = Tag(
            dimension_id=data['dimension_id'],
            name=data['name'],
            color=data.get('color') or DEFAULT_TAG_COLOR,
            description=data.get('description', ''),
            sort_order=data.get('sort_order') or 0
        )
        self.session.add(tag)
        self.session.flush()
        logger.info(f"Created tag: {tag.id} in dimension {tag.dimension_id}")
        return self._get_tag(tag.id).to_dict()

    def update_tag(self, tag_id: int, data: Dict) -> Dict:
        tag = self._get_tag(tag_id)
        if data.get('name') is not None:
            ensure_valid(validate_string_length(data['name'], 1, 128, '标签名称'))
        if data.get('dimension_id') is not None and data['dimension_id'] != tag.dimension_id:
            self._get_dimension(data['dimension_id'])

        for key in TAG_FIELDS:
            if key in data and data[key] is not None:
                setattr(tag, key, data[key])
        tag.updated_at = now()
        self.session.flush()
        self.session.refresh(tag)
        logger.info(f"Updated tag: {tag_id}")
        return tag.to_dict()

    def delete_tag(self, tag_id: int) -> bool:
        tag = self._get_tag(tag_id)
        tag.is_deleted = True
        tag.deleted_at = now()
        self.session.flush()
        logger.info(f"Deleted tag: {tag_id}")
        return True
