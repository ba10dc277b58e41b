"""initial repair shop schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False, unique=True),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='Cashier'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_users_username', 'users', ['username'])
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False, unique=True),
        sa.Column('email', sa.String(length=128), nullable=True, unique=True),
        sa.Column('date_created', sa.Date(), nullable=False, server_default=sa.text('CURRENT_DATE')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_customers_name', 'customers', ['name'])
    op.create_index('ix_customers_phone', 'customers', ['phone'])

    op.create_table('products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False, server_default='General'),
        sa.Column('warranty_months', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('retail_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
    )
    op.create_index('ix_products_name', 'products', ['name'])

    op.create_table('sale_serials',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('serial_number', sa.String(length=64), nullable=False, unique=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('sale_date', sa.Date(), nullable=False),
    )
    op.create_index('ix_sale_serials_serial_number', 'sale_serials', ['serial_number'])

    op.create_table('repairs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('device_type', sa.String(length=80), nullable=False),
        sa.Column('device_model', sa.String(length=120), nullable=False),
        sa.Column('serial_number', sa.String(length=64), nullable=True),
        sa.Column('issue_description', sa.Text(), nullable=False),
        sa.Column('technician_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Pending'),
        sa.Column('date_received', sa.Date(), nullable=False, server_default=sa.text('CURRENT_DATE')),
        sa.Column('deadline', sa.Date(), nullable=False),
        sa.Column('date_completed', sa.Date(), nullable=True),
        sa.Column('estimated_cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('advance_payment', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('extra_expenses', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('device_password', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('additional_notes', sa.String(length=500), nullable=False, server_default=''),
        sa.Column('is_under_warranty', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_repairs_customer_id', 'repairs', ['customer_id'])
    op.create_index('ix_repairs_serial_number', 'repairs', ['serial_number'])
    op.create_index('ix_repairs_technician_id', 'repairs', ['technician_id'])
    op.create_index('ix_repairs_status', 'repairs', ['status'])

    op.create_table('repair_products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('repair_id', sa.Integer(), sa.ForeignKey('repairs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('condition_notes', sa.String(length=255), nullable=False, server_default=''),
    )
    op.create_index('ix_repair_products_repair_id', 'repair_products', ['repair_id'])

    op.create_table('notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('title', sa.String(length=160), nullable=False),
        sa.Column('message', sa.String(length=500), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False, server_default='system'),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('reference_type', sa.String(length=32), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_type', 'notifications', ['type'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('actor_role', sa.String(length=16), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_actor_user_id', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])


def downgrade():
    for table in ('audit_logs', 'notifications', 'repair_products', 'repairs',
                  'sale_serials', 'products', 'customers', 'users'):
        op.drop_table(table)
