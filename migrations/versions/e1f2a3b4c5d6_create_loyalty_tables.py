"""Create loyalty engine tables

Revision ID: e1f2a3b4c5d6
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'e1f2a3b4c5d6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create attribute vectors, perk catalog, action history and token tables."""
    op.create_table(
        'loyalty_attributes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(100), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('activity_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cumulative_spend', sa.Numeric(20, 2), nullable=False, server_default='0'),
        sa.Column('categorical_tier', sa.String(20), nullable=False, server_default='Standard'),
        sa.Column('derived_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('last_updated', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('points >= 0', name='ck_loyalty_attributes_non_negative_points'),
        sa.CheckConstraint('activity_count >= 0', name='ck_loyalty_attributes_non_negative_activity'),
        sa.CheckConstraint('cumulative_spend >= 0', name='ck_loyalty_attributes_non_negative_spend'),
        sa.CheckConstraint(
            'derived_level >= 0 AND derived_level <= 7',
            name='ck_loyalty_attributes_valid_derived_level'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_loyalty_attributes'),
    )
    op.create_index('ix_loyalty_attributes_user_id', 'loyalty_attributes', ['user_id'], unique=True)

    op.create_table(
        'brand_partners',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('brand_type', sa.String(50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_brand_partners'),
        sa.UniqueConstraint('name', name='uq_brand_partners_name'),
    )

    op.create_table(
        'perks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unlock_condition', sa.JSON(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('value_type', sa.String(50), nullable=True),
        sa.Column('value_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['brand_id'], ['brand_partners.id'], name='fk_perks_brand_id_brand_partners'),
        sa.PrimaryKeyConstraint('id', name='pk_perks'),
    )
    op.create_index('ix_perks_brand_id', 'perks', ['brand_id'])
    op.create_index('ix_perks_is_active', 'perks', ['is_active'])

    op.create_table(
        'user_actions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(100), nullable=False),
        sa.Column('action_type', sa.String(50), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('points_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('previous_level', sa.Integer(), nullable=True),
        sa.Column('new_level', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_user_actions'),
    )
    op.create_index('ix_user_actions_user_id', 'user_actions', ['user_id'])
    op.create_index('ix_user_actions_created_at', 'user_actions', ['created_at'])

    op.create_table(
        'loyalty_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(100), nullable=False),
        sa.Column('token_id', sa.String(100), nullable=False),
        sa.Column('transaction_hash', sa.String(100), nullable=True),
        sa.Column('token_uri', sa.String(500), nullable=False),
        sa.Column('minted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_loyalty_tokens'),
        sa.UniqueConstraint('user_id', name='uq_loyalty_tokens_user_id'),
        sa.UniqueConstraint('token_id', name='uq_loyalty_tokens_token_id'),
    )


def downgrade():
    """Drop loyalty engine tables."""
    op.drop_table('loyalty_tokens')
    op.drop_index('ix_user_actions_created_at', 'user_actions')
    op.drop_index('ix_user_actions_user_id', 'user_actions')
    op.drop_table('user_actions')
    op.drop_index('ix_perks_is_active', 'perks')
    op.drop_index('ix_perks_brand_id', 'perks')
    op.drop_table('perks')
    op.drop_table('brand_partners')
    op.drop_index('ix_loyalty_attributes_user_id', 'loyalty_attributes')
    op.drop_table('loyalty_attributes')
