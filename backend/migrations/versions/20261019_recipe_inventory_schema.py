"""recipe-based inventory schema

Revision ID: 20261019_recipe_inventory
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the BrewPOS schema from scratch:
- inventory_items: raw materials keyed by SKU, with derived status and version_id
- inventory_adjustments: append-only stock adjustment log
- recipes / recipe_ingredients: bill of materials per product, ordered ingredients
- products: sellable catalog entries, optionally linked to a recipe
- sales / sale_lines: completed checkouts and their consumption summary
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_recipe_inventory'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    # ============================================================================
    # inventory_items: Raw materials
    # ============================================================================
    # status is 'low-stock' iff current_stock <= min_stock_level (default 10)
    # version_id guards read-compute-write stock updates (optimistic locking)
    # ============================================================================
    op.create_table(
        'inventory_items',
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('current_stock', sa.Numeric(14, 4), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(length=32), nullable=False),
        sa.Column('cost_per_unit_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock_level', sa.Numeric(14, 4), nullable=True),
        sa.Column('max_stock_level', sa.Numeric(14, 4), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('category', sa.String(length=64), nullable=False, server_default='Raw Material'),
        sa.Column('supplier', sa.String(length=255), nullable=True),
        sa.Column('location', sa.String(length=120), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('sku'),
    )
    op.create_index('ix_inventory_items_status', 'inventory_items', ['status'])
    op.create_index('ix_inventory_items_status_stock', 'inventory_items', ['status', 'current_stock'])
    op.create_index('ix_inventory_items_category', 'inventory_items', ['category'])

    # ============================================================================
    # inventory_adjustments: Append-only log (sku is deliberately not a FK)
    # ============================================================================
    op.create_table(
        'inventory_adjustments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('previous_stock', sa.Numeric(14, 4), nullable=False),
        sa.Column('new_stock', sa.Numeric(14, 4), nullable=False),
        sa.Column('quantity', sa.Numeric(14, 4), nullable=False),
        sa.Column('operation', sa.String(length=16), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False, server_default='manual'),
        sa.Column('recipe_id', sa.String(length=64), nullable=True),
        sa.Column('sale_id', sa.String(length=40), nullable=True),
        sa.Column('adjusted_by', sa.String(length=64), nullable=False, server_default='system'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_inventory_adjustments_sku_created', 'inventory_adjustments', ['sku', 'created_at'])
    op.create_index('ix_inventory_adjustments_sale_id', 'inventory_adjustments', ['sale_id'])
    op.create_index('ix_inventory_adjustments_created_at', 'inventory_adjustments', ['created_at'])

    # ============================================================================
    # recipes + recipe_ingredients: Bill of materials, keyed by product SKU
    # ============================================================================
    op.create_table(
        'recipes',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('product_sku', sa.String(length=64), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('yield_quantity', sa.Numeric(14, 4), nullable=False, server_default='1'),
        sa.Column('preparation_time', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('cost_per_unit_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('category', sa.String(length=64), nullable=False, server_default='Beverage'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_recipes_product_sku', 'recipes', ['product_sku'])
    op.create_index('ix_recipes_category_name', 'recipes', ['category', 'name'])

    op.create_table(
        'recipe_ingredients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('recipe_id', sa.String(length=64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Numeric(14, 4), nullable=False),
        sa.Column('unit', sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('recipe_id', 'position', name='uq_recipe_ingredients_position'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_recipe_ingredients_recipe_id', 'recipe_ingredients', ['recipe_id'])
    op.create_index('ix_recipe_ingredients_sku', 'recipe_ingredients', ['sku'])

    # ============================================================================
    # products: Sellable catalog (recipe link validated in the service layer)
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),  # Backend authority
        sa.Column('cost_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category', sa.String(length=64), nullable=False, server_default='Beverage'),
        sa.Column('subcategory', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('has_recipe', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('recipe_id', sa.String(length=64), nullable=True),
        sa.Column('preparation_time', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('sku'),
    )
    op.create_index('ix_products_category_status_name', 'products', ['category', 'status', 'name'])
    op.create_index('ix_products_has_recipe', 'products', ['has_recipe', 'status'])

    # ============================================================================
    # sales + sale_lines: Completed checkouts
    # ============================================================================
    # inventory_consumed is [] for sales recorded without inventory effects
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('sale_id', sa.String(length=40), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('payment_method', sa.String(length=16), nullable=False, server_default='Cash'),
        sa.Column('amount_received_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reference_number', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('inventory_consumed', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('sale_id'),
    )
    op.create_index('ix_sales_created_at', 'sales', ['created_at'])

    op.create_table(
        'sale_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.String(length=40), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=64), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),  # Price snapshot at time of sale
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('has_recipe', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('recipe_id', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.sale_id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sale_id', 'position', name='uq_sale_lines_position'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sale_lines_sale_id', 'sale_lines', ['sale_id'])
    op.create_index('ix_sale_lines_sku', 'sale_lines', ['sku'])


def downgrade():
    op.drop_table('sale_lines')
    op.drop_table('sales')
    op.drop_table('products')
    op.drop_table('recipe_ingredients')
    op.drop_table('recipes')
    op.drop_table('inventory_adjustments')
    op.drop_table('inventory_items')
