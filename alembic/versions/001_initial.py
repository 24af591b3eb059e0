"""Initial database schema

Revision ID: 001_initial
Revises:
Create Date: 2026-09-28

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FUND_TABLES = (
    'trust_funds',
    'special_education_funds',
    'special_health_funds',
    'twenty_percent_df',
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _department_fk() -> sa.Column:
    return sa.Column(
        'department_id',
        sa.UUID(),
        sa.ForeignKey('departments.id', ondelete='SET NULL'),
        nullable=True,
    )


def upgrade() -> None:
    # Departments table
    op.create_table(
        'departments',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_department_id', sa.UUID(), nullable=True),
        sa.Column('head_user_id', sa.UUID(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
        sa.ForeignKeyConstraint(['parent_department_id'], ['departments.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_departments_parent_department_id', 'departments', ['parent_department_id'])

    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('middle_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('name_extension', sa.String(20), nullable=True),
        sa.Column('role', sa.String(50), nullable=False, server_default='user'),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        _department_fk(),
        sa.Column('position', sa.String(255), nullable=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_department_id', 'users', ['department_id'])

    # Implementing agencies table
    op.create_table(
        'implementing_agencies',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('agency_type', sa.String(50), nullable=False, server_default='internal'),
        sa.Column('description', sa.Text(), nullable=True),
        _department_fk(),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index(
        'ix_implementing_agencies_department_id', 'implementing_agencies', ['department_id']
    )

    # Budget items table
    op.create_table(
        'budget_items',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('particulars', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='ongoing'),
        sa.Column('total_budget_allocated', sa.Numeric(18, 2), nullable=True),
        _department_fk(),
        sa.Column('created_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_budget_items_year', 'budget_items', ['year'])
    op.create_index('ix_budget_items_department_id', 'budget_items', ['department_id'])

    # Projects table
    op.create_table(
        'projects',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('budget_item_id', sa.UUID(), nullable=True),
        sa.Column('particulars', sa.String(500), nullable=False),
        sa.Column('implementing_office', sa.String(255), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='ongoing'),
        sa.Column('total_budget_allocated', sa.Numeric(18, 2), nullable=True),
        _department_fk(),
        sa.Column('created_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['budget_item_id'], ['budget_items.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_projects_budget_item_id', 'projects', ['budget_item_id'])
    op.create_index('ix_projects_year', 'projects', ['year'])
    op.create_index('ix_projects_department_id', 'projects', ['department_id'])

    # Project breakdowns table
    op.create_table(
        'project_breakdowns',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('project_id', sa.UUID(), nullable=False),
        sa.Column('budget_item_id', sa.UUID(), nullable=True),
        sa.Column('project_name', sa.String(500), nullable=False),
        sa.Column('implementing_office', sa.String(255), nullable=True),
        sa.Column('municipality', sa.String(255), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='ongoing'),
        _department_fk(),
        sa.Column('created_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_project_breakdowns_project_id', 'project_breakdowns', ['project_id'])
    op.create_index('ix_project_breakdowns_department_id', 'project_breakdowns', ['department_id'])

    # Special fund tables share one shape
    for table in FUND_TABLES:
        op.create_table(
            table,
            sa.Column('id', sa.UUID(), nullable=False),
            sa.Column('project_title', sa.String(500), nullable=False),
            sa.Column('office_in_charge', sa.String(255), nullable=True),
            sa.Column('remarks', sa.Text(), nullable=True),
            sa.Column('year', sa.Integer(), nullable=True),
            sa.Column('status', sa.String(50), nullable=False, server_default='ongoing'),
            sa.Column('received', sa.Numeric(18, 2), nullable=True),
            sa.Column('utilized', sa.Numeric(18, 2), nullable=True),
            _department_fk(),
            sa.Column('created_by', sa.UUID(), nullable=True),
            *_timestamps(),
            sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index(f'ix_{table}_department_id', table, ['department_id'])

    # Search index records
    op.create_table(
        'search_index',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False),
        sa.Column('primary_text', sa.Text(), nullable=False),
        sa.Column('normalized_primary_text', sa.Text(), nullable=False),
        sa.Column('secondary_text', sa.Text(), nullable=True),
        sa.Column('normalized_secondary_text', sa.Text(), nullable=True),
        sa.Column('tokens', sa.JSON(), nullable=False),
        sa.Column('slug', sa.String(600), nullable=False),
        sa.Column('department_id', sa.String(64), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('parent_id', sa.String(64), nullable=True),
        sa.Column('parent_slug', sa.String(255), nullable=True),
        sa.Column('created_by', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('access_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('indexed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_reindexed_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('entity_type', 'entity_id', name='uq_search_index_entity'),
    )
    op.create_index('ix_search_index_entity_id', 'search_index', ['entity_id'])
    op.create_index('ix_search_index_department_id', 'search_index', ['department_id'])
    op.create_index('ix_search_index_type_deleted', 'search_index', ['entity_type', 'is_deleted'])

    # Inverted index postings
    op.create_table(
        'search_index_tokens',
        sa.Column('entry_id', sa.UUID(), nullable=False),
        sa.Column('token', sa.String(128), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('in_primary', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('in_secondary', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint('entry_id', 'token'),
        sa.ForeignKeyConstraint(['entry_id'], ['search_index.id'], ondelete='CASCADE'),
    )
    op.create_index(
        'ix_search_index_tokens_token_type', 'search_index_tokens', ['token', 'entity_type']
    )


def downgrade() -> None:
    op.drop_table('search_index_tokens')
    op.drop_table('search_index')
    for table in reversed(FUND_TABLES):
        op.drop_table(table)
    op.drop_table('project_breakdowns')
    op.drop_table('projects')
    op.drop_table('budget_items')
    op.drop_table('implementing_agencies')
    op.drop_table('users')
    op.drop_table('departments')
