"""Initial schema: catalog tiers, movement ledger, storage box and grid

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. cashiers (identity anchor)
2. products, sack_prices, special_prices, per_kilo_prices (stock lives on tiers)
3. sales, sale_items, orders
4. deliveries, delivery_items, transfers
5. kahons, kahon_items, inventories, inventory_items
6. grid_sheets, grid_rows, grid_cells
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    # ==========================================================================
    # 1. CASHIERS
    # ==========================================================================
    op.create_table('cashiers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('cashiers', schema=None) as batch_op:
        batch_op.create_index('ix_cashiers_user_id', ['user_id'], unique=False)

    # ==========================================================================
    # 2. CATALOG AND STOCK TIERS
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('cashier_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cashier_id'], ['cashiers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_cashier_id', ['cashier_id'], unique=False)
        batch_op.create_index('ix_products_cashier_name', ['cashier_id', 'name'], unique=False)

    op.create_table('sack_prices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('profit', sa.Numeric(precision=12, scale=2), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'type', name='uq_sack_prices_product_type'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sack_prices', schema=None) as batch_op:
        batch_op.create_index('ix_sack_prices_product_id', ['product_id'], unique=False)

    op.create_table('special_prices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sack_price_id', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('minimum_qty', sa.Integer(), nullable=False),
        sa.Column('profit', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.ForeignKeyConstraint(['sack_price_id'], ['sack_prices.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sack_price_id'),
        sqlite_autoincrement=True
    )

    op.create_table('per_kilo_prices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('stock', sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column('profit', sa.Numeric(precision=12, scale=2), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 3. SALES AND ORDERS
    # ==========================================================================
    op.create_table('sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cashier_id', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('change_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('is_void', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('voided_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cashier_id'], ['cashiers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index('ix_sales_cashier_id', ['cashier_id'], unique=False)
        batch_op.create_index('ix_sales_cashier_created', ['cashier_id', 'created_at'], unique=False)

    op.create_table('sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('sack_price_id', sa.Integer(), nullable=True),
        sa.Column('per_kilo_price_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('discounted_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('is_special_price', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_discounted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_gantang', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            '(sack_price_id IS NULL) <> (per_kilo_price_id IS NULL)',
            name='ck_sale_items_one_tier',
        ),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['sack_price_id'], ['sack_prices.id'], ),
        sa.ForeignKeyConstraint(['per_kilo_price_id'], ['per_kilo_prices.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sale_items', schema=None) as batch_op:
        batch_op.create_index('ix_sale_items_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_sale_items_product_id', ['product_id'], unique=False)

    op.create_table('orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cashier_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cashier_id'], ['cashiers.id'], ),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sale_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index('ix_orders_cashier_id', ['cashier_id'], unique=False)
        batch_op.create_index('ix_orders_status', ['status'], unique=False)

    # ==========================================================================
    # 4. DELIVERIES AND TRANSFERS
    # ==========================================================================
    op.create_table('deliveries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cashier_id', sa.Integer(), nullable=False),
        sa.Column('driver_name', sa.String(length=255), nullable=False),
        sa.Column('delivery_time_start', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cashier_id'], ['cashiers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('deliveries', schema=None) as batch_op:
        batch_op.create_index('ix_deliveries_cashier_id', ['cashier_id'], unique=False)
        batch_op.create_index('ix_deliveries_cashier_created', ['cashier_id', 'created_at'], unique=False)

    op.create_table('delivery_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('delivery_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('sack_price_id', sa.Integer(), nullable=True),
        sa.Column('per_kilo_price_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            '(sack_price_id IS NULL) <> (per_kilo_price_id IS NULL)',
            name='ck_delivery_items_one_tier',
        ),
        sa.ForeignKeyConstraint(['delivery_id'], ['deliveries.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['sack_price_id'], ['sack_prices.id'], ),
        sa.ForeignKeyConstraint(['per_kilo_price_id'], ['per_kilo_prices.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('delivery_items', schema=None) as batch_op:
        batch_op.create_index('ix_delivery_items_delivery_id', ['delivery_id'], unique=False)
        batch_op.create_index('ix_delivery_items_product_id', ['product_id'], unique=False)

    op.create_table('transfers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cashier_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cashier_id'], ['cashiers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('transfers', schema=None) as batch_op:
        batch_op.create_index('ix_transfers_cashier_id', ['cashier_id'], unique=False)
        batch_op.create_index('ix_transfers_type', ['type'], unique=False)
        batch_op.create_index('ix_transfers_cashier_created', ['cashier_id', 'created_at'], unique=False)

    # ==========================================================================
    # 5. STORAGE BOX AND INVENTORY LEDGER
    # ==========================================================================
    op.create_table('kahons',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cashier_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cashier_id'], ['cashiers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cashier_id'),
        sqlite_autoincrement=True
    )

    op.create_table('kahon_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('kahon_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=14, scale=3), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['kahon_id'], ['kahons.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('kahon_items', schema=None) as batch_op:
        batch_op.create_index('ix_kahon_items_kahon_id', ['kahon_id'], unique=False)
        batch_op.create_index('ix_kahon_items_kahon_created', ['kahon_id', 'created_at'], unique=False)

    op.create_table('inventories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cashier_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cashier_id'], ['cashiers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cashier_id'),
        sqlite_autoincrement=True
    )

    op.create_table('inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('inventory_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=14, scale=3), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['inventory_id'], ['inventories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('inventory_items', schema=None) as batch_op:
        batch_op.create_index('ix_inventory_items_inventory_id', ['inventory_id'], unique=False)
        batch_op.create_index('ix_inventory_items_inventory_created', ['inventory_id', 'created_at'], unique=False)

    # ==========================================================================
    # 6. GRID
    # ==========================================================================
    op.create_table('grid_sheets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('columns', sa.Integer(), nullable=False, server_default='10'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('grid_sheets', schema=None) as batch_op:
        batch_op.create_index('ix_grid_sheets_owner', ['kind', 'owner_id'], unique=False)

    op.create_table('grid_rows',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sheet_id', sa.Integer(), nullable=False),
        sa.Column('row_index', sa.Integer(), nullable=False),
        sa.Column('is_item_row', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('item_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['sheet_id'], ['grid_sheets.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sheet_id', 'row_index', name='uq_grid_rows_sheet_index'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('grid_rows', schema=None) as batch_op:
        batch_op.create_index('ix_grid_rows_sheet_id', ['sheet_id'], unique=False)
        batch_op.create_index('ix_grid_rows_sheet_created', ['sheet_id', 'created_at'], unique=False)

    op.create_table('grid_cells',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('row_id', sa.Integer(), nullable=False),
        sa.Column('column_index', sa.Integer(), nullable=False),
        sa.Column('value', sa.Text(), nullable=False, server_default=''),
        sa.Column('formula', sa.Text(), nullable=True),
        sa.Column('is_calculated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('color', sa.String(length=32), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['row_id'], ['grid_rows.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('row_id', 'column_index', name='uq_grid_cells_row_column'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('grid_cells', schema=None) as batch_op:
        batch_op.create_index('ix_grid_cells_row_id', ['row_id'], unique=False)


def downgrade():
    for table in (
        'grid_cells', 'grid_rows', 'grid_sheets',
        'inventory_items', 'inventories', 'kahon_items', 'kahons',
        'transfers', 'delivery_items', 'deliveries',
        'orders', 'sale_items', 'sales',
        'per_kilo_prices', 'special_prices', 'sack_prices', 'products',
        'cashiers',
    ):
        op.drop_table(table)
