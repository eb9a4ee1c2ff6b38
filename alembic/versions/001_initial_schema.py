"""Initial database schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19

Creates all tables for the CRM backend: customers, users, todos, todo logs,
follow-up records (activities), reminders, reminder templates and configs,
tag dimensions and tags.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Customers table
    op.create_table('customers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(256)),
        sa.Column('contact_name', sa.String(256)),
        sa.Column('gender', sa.Integer(), default=0),
        sa.Column('avatar', sa.String(2048)),
        sa.Column('photos', postgresql.ARRAY(sa.String(2048))),
        sa.Column('remark', sa.Text()),
        sa.Column('source', sa.String(256)),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('created_by', sa.Integer()),
        sa.Column('updated_at', sa.DateTime()),
        sa.Column('updated_by', sa.Integer()),
        sa.Column('phones', postgresql.ARRAY(sa.String(128))),
        sa.Column('wechats', postgresql.ARRAY(sa.String(128))),
        sa.Column('douyins', postgresql.ARRAY(sa.String(128))),
        sa.Column('kwais', postgresql.ARRAY(sa.String(128))),
        sa.Column('redbooks', postgresql.ARRAY(sa.String(128))),
        sa.Column('wework_openids', postgresql.ARRAY(sa.String(128))),
        sa.Column('province', sa.String(256)),
        sa.Column('city', sa.String(256)),
        sa.Column('district', sa.String(256)),
        sa.Column('district_id', sa.Integer()),
        sa.Column('street', sa.String(256)),
        sa.Column('address', sa.String(2048)),
        sa.Column('lat', sa.Float()),
        sa.Column('lon', sa.Float()),
        sa.Column('category', sa.String(256)),
        sa.Column('flags', sa.Integer(), default=0),
        sa.Column('tags', postgresql.ARRAY(sa.String(128))),
        sa.Column('level', sa.Integer(), default=0),
        sa.Column('state', sa.Integer(), default=0),
        sa.Column('kind', sa.Integer(), default=0),
        sa.Column('added_wechat', sa.Boolean(), default=False),
        sa.Column('work_phone', postgresql.ARRAY(sa.String(256))),
        sa.Column('work_wechat', postgresql.ARRAY(sa.String(256))),
        sa.Column('credit_sale', sa.Numeric()),
        sa.Column('sellers', postgresql.ARRAY(sa.Integer())),
        sa.Column('last_visited', sa.DateTime()),
        sa.Column('last_called', sa.DateTime()),
        sa.Column('group_id', postgresql.ARRAY(sa.Integer())),
        sa.Column('birth_place', sa.String(256)),
        sa.Column('birth_year', sa.Integer()),
        sa.Column('birth_month', sa.Integer()),
        sa.Column('birth_date', sa.Integer()),
        sa.Column('favors', postgresql.JSONB),
        sa.Column('products', postgresql.ARRAY(sa.String(512))),
        sa.Column('annual_turnover', sa.String(512)),
        sa.Column('shipping_infos', postgresql.JSONB),
        sa.Column('extra_info', postgresql.JSONB),
        sa.Column('original_customer_id', sa.String(256)),
        sa.Column('import_source', sa.String(256)),
        sa.Column('saller_name', sa.String(256)),
        sa.Column('system_tags', postgresql.ARRAY(sa.Integer())),
        sa.Column('last_order_date', sa.DateTime()),
        sa.Column('order_count', sa.Integer(), default=0),
        sa.Column('avg_order_value', sa.Numeric()),
        sa.Column('preferred_delivery_method', sa.String(256)),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customers_name', 'customers', ['name'])
    op.create_index('ix_customers_created_at', 'customers', ['created_at'])
    op.create_index('ix_customers_last_order_date', 'customers', ['last_order_date'])
    op.create_index('ix_customers_system_tags', 'customers', ['system_tags'], postgresql_using='gin')

    # Users table
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('username', sa.String(100)),
        sa.Column('manager_id', sa.Integer()),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('department', sa.String(100)),
        sa.Column('department_leader_id', sa.Integer()),
        sa.Column('position', sa.String(100)),
        sa.Column('wechat_work_id', sa.String(100)),
        sa.Column('wechat_id', sa.String(100)),
        sa.Column('status', sa.String(20), default='active'),
        sa.Column('avatar_url', sa.String(2048)),
        sa.Column('last_login_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.Column('deleted_at', sa.DateTime()),
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.false()),
        sa.ForeignKeyConstraint(['manager_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_department', 'users', ['department'])
    op.create_index('ix_users_status', 'users', ['status'])

    # Todos table
    op.create_table('todos',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        sa.Column('executor_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text()),
        sa.Column('status', sa.String(20), default='pending'),
        sa.Column('planned_time', sa.DateTime(), nullable=False),
        sa.Column('completed_time', sa.DateTime()),
        sa.Column('is_reminder', sa.Boolean(), default=False),
        sa.Column('reminder_type', sa.String(30)),
        sa.Column('reminder_user_id', sa.Integer()),
        sa.Column('reminder_time', sa.DateTime()),
        sa.Column('priority', sa.String(10), default='medium'),
        sa.Column('tags', postgresql.JSONB),
        sa.Column('attachments', postgresql.JSONB),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.Column('deleted_at', sa.DateTime()),
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.false()),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id']),
        sa.ForeignKeyConstraint(['executor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['reminder_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_todos_customer', 'todos', ['customer_id'])
    op.create_index('ix_todos_executor', 'todos', ['executor_id'])
    op.create_index('ix_todos_creator', 'todos', ['creator_id'])
    op.create_index('ix_todos_status', 'todos', ['status'])
    op.create_index('ix_todos_planned_time', 'todos', ['planned_time'])
    op.create_index('ix_todos_is_deleted', 'todos', ['is_deleted'])

    # Todo audit log
    op.create_table('todo_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('todo_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer()),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('old_data', postgresql.JSONB),
        sa.Column('new_data', postgresql.JSONB),
        sa.Column('remark', sa.Text()),
        sa.Column('created_at', sa.DateTime()),
        sa.ForeignKeyConstraint(['todo_id'], ['todos.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_todo_logs_todo', 'todo_logs', ['todo_id'])

    # Follow-up records
    op.create_table('activities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(20), default='other'),
        sa.Column('title', sa.String(255)),
        sa.Column('data', postgresql.JSONB),
        sa.Column('remark', sa.Text()),
        sa.Column('duration', sa.Integer()),
        sa.Column('location', sa.String(255)),
        sa.Column('next_follow_time', sa.DateTime()),
        sa.Column('attachments', postgresql.JSONB),
        sa.Column('is_regular', sa.Boolean(), server_default=sa.false()),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.Column('deleted_at', sa.DateTime()),
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.false()),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activities_customer', 'activities', ['customer_id'])
    op.create_index('ix_activities_user', 'activities', ['user_id'])
    op.create_index('ix_activities_kind', 'activities', ['kind'])
    op.create_index('ix_activities_created_at', 'activities', ['created_at'])
    op.create_index('ix_activities_next_follow_time', 'activities', ['next_follow_time'])

    # Reminders
    op.create_table('reminders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('todo_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text()),
        sa.Column('status', sa.String(20), default='pending'),
        sa.Column('frequency', sa.String(20), default='once'),
        sa.Column('schedule_time', sa.DateTime(), nullable=False),
        sa.Column('sent_time', sa.DateTime()),
        sa.Column('fail_reason', sa.Text()),
        sa.Column('retry_count', sa.Integer(), default=0),
        sa.Column('max_retries', sa.Integer(), default=3),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.ForeignKeyConstraint(['todo_id'], ['todos.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_reminders_status_schedule', 'reminders', ['status', 'schedule_time'])
    op.create_index('ix_reminders_user', 'reminders', ['user_id'])
    op.create_index('ix_reminders_todo', 'reminders', ['todo_id'])

    # Reminder templates
    op.create_table('reminder_templates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('variables', postgresql.JSONB),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false()),
        sa.Column('created_by', sa.Integer()),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.PrimaryKeyConstraint('id')
    )

    # Per-user reminder settings
    op.create_table('reminder_configs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('enable_wechat', sa.Boolean(), server_default=sa.true()),
        sa.Column('enable_enterprise_wechat', sa.Boolean(), server_default=sa.true()),
        sa.Column('advance_minutes', sa.Integer(), server_default='30'),
        sa.Column('quiet_start', sa.String(5), server_default='22:00'),
        sa.Column('quiet_end', sa.String(5), server_default='08:00'),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )

    # Tag dimensions and tags
    op.create_table('tag_dimensions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(128), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('sort_order', sa.Integer(), server_default='0'),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.Column('deleted_at', sa.DateTime()),
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.false()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_tag_dimensions_name_live', 'tag_dimensions', ['name'], unique=True,
                    postgresql_where=sa.text('is_deleted = false'))

    op.create_table('tags',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('dimension_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(128), nullable=False),
        sa.Column('color', sa.String(20), server_default='#2196F3'),
        sa.Column('description', sa.Text()),
        sa.Column('sort_order', sa.Integer(), server_default='0'),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.Column('deleted_at', sa.DateTime()),
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.false()),
        sa.ForeignKeyConstraint(['dimension_id'], ['tag_dimensions.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tags_dimension', 'tags', ['dimension_id'])


def downgrade() -> None:
    # Drop tables in reverse order of creation (respecting foreign keys)
    op.drop_table('tags')
    op.drop_table('tag_dimensions')
    op.drop_table('reminder_configs')
    op.drop_table('reminder_templates')
    op.drop_table('reminders')
    op.drop_table('activities')
    op.drop_table('todo_logs')
    op.drop_table('todos')
    op.drop_table('users')
    op.drop_table('customers')
