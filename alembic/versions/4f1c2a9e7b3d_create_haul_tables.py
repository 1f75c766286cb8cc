"""create_haul_tables

Revision ID: 4f1c2a9e7b3d
Revises:
Create Date: 2026-10-19 10:12:41.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1c2a9e7b3d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('external_id', sa.String(length=255), nullable=False, comment='Identity assigned by the product-search service'),
        sa.Column('name', sa.String(length=500), nullable=False, comment='Product name'),
        sa.Column('brand', sa.String(length=200), nullable=True, comment='Brand name (optional for generic/unbranded items)'),
        sa.Column('image', sa.Text(), nullable=False, comment='URL to product image'),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False, comment='Price in major currency units. Example: 89.99'),
        sa.Column('currency', sa.String(length=3), nullable=False, comment='ISO 4217 currency code'),
        sa.Column('buy_link', sa.Text(), nullable=False, comment='External purchase URL'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('external_id', name='uq_products_external_id'),
    )
    op.create_index('ix_products_brand', 'products', ['brand'], unique=False)

    op.create_table(
        'styling_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False, comment='Owner user ID'),
        sa.Column('quiz_data', sa.JSON(), nullable=True, comment='Opaque quiz answers blob'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_styling_sessions_user_id', 'styling_sessions', ['user_id'], unique=False)

    op.create_table(
        'outfits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False, comment='Owner user ID'),
        sa.Column('name', sa.String(length=200), nullable=False, comment='Outfit name'),
        sa.Column('occasion', sa.String(length=200), nullable=True),
        sa.Column('stylist_blurb', sa.Text(), nullable=True),
        sa.Column('total_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('price_range_min', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('price_range_max', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('share_token', sa.String(length=64), nullable=False, comment='Opaque capability token for public sharing'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_outfits_user_id', 'outfits', ['user_id'], unique=False)
    op.create_index('ix_outfits_share_token', 'outfits', ['share_token'], unique=True)

    op.create_table(
        'outfit_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('outfit_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('reasoning', sa.Text(), nullable=True),
        sa.Column('is_main', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('position', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.ForeignKeyConstraint(['outfit_id'], ['outfits.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_outfit_items_outfit_id', 'outfit_items', ['outfit_id'], unique=False)
    op.create_index('ix_outfit_items_product_id', 'outfit_items', ['product_id'], unique=False)

    op.create_table(
        'product_variants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('outfit_item_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.ForeignKeyConstraint(['outfit_item_id'], ['outfit_items.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_product_variants_outfit_item_id', 'product_variants', ['outfit_item_id'], unique=False)

    op.create_table(
        'session_outfits',
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('outfit_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.ForeignKeyConstraint(['session_id'], ['styling_sessions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['outfit_id'], ['outfits.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('session_id', 'outfit_id'),
    )
    op.create_index('ix_session_outfits_outfit_id', 'session_outfits', ['outfit_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_session_outfits_outfit_id', table_name='session_outfits')
    op.drop_table('session_outfits')
    op.drop_index('ix_product_variants_outfit_item_id', table_name='product_variants')
    op.drop_table('product_variants')
    op.drop_index('ix_outfit_items_product_id', table_name='outfit_items')
    op.drop_index('ix_outfit_items_outfit_id', table_name='outfit_items')
    op.drop_table('outfit_items')
    op.drop_index('ix_outfits_share_token', table_name='outfits')
    op.drop_index('ix_outfits_user_id', table_name='outfits')
    op.drop_table('outfits')
    op.drop_index('ix_styling_sessions_user_id', table_name='styling_sessions')
    op.drop_table('styling_sessions')
    op.drop_index('ix_products_brand', table_name='products')
    op.drop_table('products')
