"""Initial schema: sales, expenses, employee payments, ledger, closures, config

Revision ID: 20261001_initial_schema
Revises:
Create Date: 2026-10-01 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column("min_stock", sa.Integer(), nullable=False),
        sa.Column("has_inventory_control", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_products_is_active", "products", ["is_active"], unique=False)

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("subtotal_cents", sa.Integer(), nullable=False),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        sa.Column("cash_amount_cents", sa.Integer(), nullable=False),
        sa.Column("transfer_amount_cents", sa.Integer(), nullable=False),
        sa.Column("cash_received_cents", sa.Integer(), nullable=False),
        sa.Column("cash_returned_cents", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_sales_status", "sales", ["status"], unique=False)
    op.create_index("ix_sales_created_at", "sales", ["created_at"], unique=False)
    op.create_index("ix_sales_status_created", "sales", ["status", "created_at"], unique=False)

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("payment_method", sa.String(length=16), nullable=False),
        sa.Column("from_cash_register", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_expenses_created_at", "expenses", ["created_at"], unique=False)

    op.create_table(
        "employee_payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("employee_name", sa.String(length=128), nullable=False),
        sa.Column("position", sa.String(length=64), nullable=True),
        sa.Column("base_amount_cents", sa.Integer(), nullable=False),
        sa.Column("final_amount_cents", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("payment_method", sa.String(length=16), nullable=False),
        sa.Column("from_cash_register", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_employee_payments_employee_id", "employee_payments", ["employee_id"], unique=False)
    op.create_index("ix_employee_payments_created_at", "employee_payments", ["created_at"], unique=False)

    op.create_table(
        "ledger_movements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account", sa.String(length=16), nullable=False),
        sa.Column("direction", sa.String(length=16), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount_cents > 0", name="ck_ledger_movements_amount_positive"),
        sa.CheckConstraint("account IN ('transfer', 'saved_cash')", name="ck_ledger_movements_account"),
        sa.CheckConstraint("direction IN ('income', 'expense')", name="ck_ledger_movements_direction"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_ledger_movements_account", "ledger_movements", ["account"], unique=False)
    op.create_index("ix_ledger_movements_created_at", "ledger_movements", ["created_at"], unique=False)
    op.create_index("ix_ledger_movements_account_created", "ledger_movements", ["account", "created_at"], unique=False)

    op.create_table(
        "daily_closures",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("sales", sa.JSON(), nullable=False),
        sa.Column("expenses", sa.JSON(), nullable=False),
        sa.Column("employee_payments", sa.JSON(), nullable=False),
        sa.Column("low_stock_products", sa.JSON(), nullable=False),
        sa.Column("total_sales_cents", sa.Integer(), nullable=False),
        sa.Column("total_cash_cents", sa.Integer(), nullable=False),
        sa.Column("total_transfer_cents", sa.Integer(), nullable=False),
        sa.Column("total_expenses_cents", sa.Integer(), nullable=False),
        sa.Column("total_payments_cents", sa.Integer(), nullable=False),
        sa.Column("cash_expenses_cents", sa.Integer(), nullable=False),
        sa.Column("cash_payments_cents", sa.Integer(), nullable=False),
        sa.Column("cash_before_closure_cents", sa.Integer(), nullable=False),
        sa.Column("cash_after_closure_cents", sa.Integer(), nullable=False),
        sa.Column("daily_base_cents", sa.Integer(), nullable=False),
        sa.Column("cash_excess_transferred_cents", sa.Integer(), nullable=False),
        sa.Column("excess_movement_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("date", name="uq_daily_closures_date"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "system_config",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("business_name", sa.String(length=128), nullable=False),
        sa.Column("business_address", sa.String(length=255), nullable=True),
        sa.Column("business_phone", sa.String(length=64), nullable=True),
        sa.Column("business_tax_id", sa.String(length=64), nullable=True),
        sa.Column("alert_email", sa.String(length=255), nullable=True),
        sa.Column("top_n", sa.Integer(), nullable=False),
        sa.Column("daily_base_cents", sa.Integer(), nullable=False),
        sa.Column("reopen_password_hash", sa.String(length=128), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("system_config")
    op.drop_table("daily_closures")

    op.drop_index("ix_ledger_movements_account_created", table_name="ledger_movements")
    op.drop_index("ix_ledger_movements_created_at", table_name="ledger_movements")
    op.drop_index("ix_ledger_movements_account", table_name="ledger_movements")
    op.drop_table("ledger_movements")

    op.drop_index("ix_employee_payments_created_at", table_name="employee_payments")
    op.drop_index("ix_employee_payments_employee_id", table_name="employee_payments")
    op.drop_table("employee_payments")

    op.drop_index("ix_expenses_created_at", table_name="expenses")
    op.drop_table("expenses")

    op.drop_index("ix_sales_status_created", table_name="sales")
    op.drop_index("ix_sales_created_at", table_name="sales")
    op.drop_index("ix_sales_status", table_name="sales")
    op.drop_table("sales")

    op.drop_index("ix_products_is_active", table_name="products")
    op.drop_table("products")
