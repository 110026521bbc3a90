"""Initial migration - create the session table.

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'shop_sessions',
        sa.Column('id', sa.String(255), nullable=False),
        sa.Column('shop', sa.String(255), nullable=False),
        sa.Column('state', sa.String(255), default=''),
        sa.Column('is_online', sa.Boolean(), default=False),
        sa.Column('scope', sa.Text()),
        sa.Column('expires', sa.DateTime(timezone=True)),
        sa.Column('access_token', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_shop_sessions_shop', 'shop_sessions', ['shop'])
    op.create_index('idx_shop_session_shop_online', 'shop_sessions', ['shop', 'is_online'])


def downgrade():
    op.drop_index('idx_shop_session_shop_online', table_name='shop_sessions')
    op.drop_index('ix_shop_sessions_shop', table_name='shop_sessions')
    op.drop_table('shop_sessions')
