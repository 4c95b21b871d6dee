"""create features and feature_overrides tables

Revision ID: 3c9e1f2a7b04
Revises:
Create Date: 2026-02-09 13:22:53.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c9e1f2a7b04'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('features',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('default_enabled', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_features_key'), 'features', ['key'], unique=True)

    op.create_table('feature_overrides',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('feature_id', sa.Integer(), nullable=False),
        sa.Column('target_type', sa.String(length=20), nullable=False),
        sa.Column('target_identifier', sa.String(length=255), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint("target_type IN ('User', 'Group')", name='ck_feature_overrides_target_type'),
        sa.ForeignKeyConstraint(['feature_id'], ['features.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('feature_id', 'target_type', 'target_identifier', name='uq_feature_overrides_target'),
        sqlite_autoincrement=True
    )
    # Evaluation looks overrides up by feature first
    op.create_index('ix_feature_overrides_feature_id', 'feature_overrides', ['feature_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_feature_overrides_feature_id', table_name='feature_overrides')
    op.drop_table('feature_overrides')
    op.drop_index(op.f('ix_features_key'), table_name='features')
    op.drop_table('features')
