"""
Database seeding for the CRM backend.
Creates the default user, reminder templates and a starter tag dimension if missing.
"""

import logging
from database.connection import get_db_session
from database.models import User, ReminderTemplate, TagDimension, Tag

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "系统管理员"
DEFAULT_USER_USERNAME = "admin"

TEMPLATE_VARIABLES = ['title', 'content', 'customer_name', 'planned_time', 'priority', 'status']

DEFAULT_TEMPLATES = [
    {
        'name': '微信待办提醒',
        'type': 'wechat',
        'title': '待办提醒：{{ title }}',
        'content': (
            '您有一个待办事项需要处理：\n\n'
            '标题：{{ title }}\n'
            '内容：{{ content }}\n'
            '客户：{{ customer_name }}\n'
            '计划时间：{{ planned_time }}\n\n'
            '请及时处理！'
        ),
    },
    {
        'name': '企业微信待办提醒',
        'type': 'enterprise_wechat',
        'title': '【待办提醒】{{ title }}',
        'content': (
            '待办事项提醒\n'
            '标题：{{ title }}\n'
            '客户：{{ customer_name }}\n'
            '优先级：{{ priority }}\n'
            '计划时间：{{ planned_time }}\n'
            '内容：{{ content }}'
        ),
    },
]

STARTER_DIMENSION = {
    'name': '客户类型',
    'description': '按经营形态划分客户',
    'tags': [
        ('实体店', '#2196F3'),
        ('网店', '#4CAF50'),
        ('批发商', '#FF9800'),
    ],
}


def seed_default_user(session):
    """Create the default user if the users table is empty."""
    user = session.query(User).order_by(User.id).first()
    if user:
        logger.info(f"Default user already exists: {user.name}")
        return user

    user = User(
        name=DEFAULT_USER_NAME,
        username=DEFAULT_USER_USERNAME,
        department='销售部',
        position='管理员',
        status='active'
    )
    session.add(user)
    session.flush()
    logger.info(f"Created default user: {user.id}")
    return user


def seed_reminder_templates(session):
    """Create one default template per reminder channel."""
    created = 0
    for template in DEFAULT_TEMPLATES:
        exists = session.query(ReminderTemplate).filter_by(
            type=template['type'], is_default=True
        ).first()
        if exists:
            continue
        session.add(ReminderTemplate(
            variables=TEMPLATE_VARIABLES,
            is_active=True,
            is_default=True,
            **template
        ))
        created += 1
    session.flush()
    logger.info(f"Created {created} default reminder templates")
    return created


def seed_tag_dimension(session):
    dimension = session.query(TagDimension).filter_by(name=STARTER_DIMENSION['name']).first()
    if dimension:
        logger.info(f"Tag dimension already exists: {dimension.name}")
        return dimension

    dimension = TagDimension(
        name=STARTER_DIMENSION['name'],
        description=STARTER_DIMENSION['description'],
        sort_order=1
    )
    session.add(dimension)
    session.flush()
    for index, (name, color) in enumerate(STARTER_DIMENSION['tags'], start=1):
        session.add(Tag(dimension_id=dimension.id, name=name, color=color, sort_order=index))
    session.flush()
    logger.info(f"Created tag dimension: {dimension.name}")
    return dimension


def seed_database():
    """
    Seed the database with default data if empty.
    Safe to run repeatedly.
    """
    try:
        with get_db_session() as session:
            seed_default_user(session)
            seed_reminder_templates(session)
            seed_tag_dimension(session)
        logger.info("Database seeding completed successfully")
        return True
    except Exception as e:
        logger.error(f"Database seeding failed: {e}")
        raise


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    seed_database()
