"""Create documents and document_line_items tables

Revision ID: 001_documents
Revises: 
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_documents'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'documents',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('document_number', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),

        # Header
        sa.Column('counterparty_ref', sa.String(length=100), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('expected_delivery_date', sa.Date(), nullable=True),
        sa.Column('validity_period', sa.String(length=100), nullable=True),
        sa.Column('invoice_type', sa.String(length=10), nullable=True),
        sa.Column('payment_terms', sa.Integer(), nullable=True),
        sa.Column('delivery_terms', sa.Text(), nullable=True),
        sa.Column('conditions', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('duty_status', sa.String(length=50), nullable=True),
        sa.Column('discount_kind', sa.String(length=20), nullable=True),
        sa.Column('discount_value', sa.Numeric(precision=18, scale=4), nullable=True),
        sa.Column('source_document_id', sa.String(length=36), nullable=True),

        # Totals
        sa.Column('subtotal', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('net_amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=4), nullable=False),
        sa.Column('tax_amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('grand_total', sa.Numeric(precision=18, scale=2), nullable=False),

        # Timestamps
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),

        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['source_document_id'], ['documents.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('document_type', 'document_number', name='uq_documents_type_number'),
    )
    op.create_index('ix_documents_type_status', 'documents', ['document_type', 'status'])
    op.create_index('ix_documents_created_at', 'documents', ['created_at'])

    op.create_table(
        'document_line_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('document_id', sa.String(36), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('line_number', sa.Integer(), nullable=False),
        sa.Column('product_ref', sa.String(100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(18, 4), nullable=False),
        sa.Column('line_total', sa.Numeric(18, 2), nullable=False),
    )
    op.create_index('ix_document_line_items_document_id', 'document_line_items', ['document_id'])
    op.create_index('ix_document_line_items_line_number', 'document_line_items', ['document_id', 'line_number'])


def downgrade() -> None:
    op.drop_index('ix_document_line_items_line_number', table_name='document_line_items')
    op.drop_index('ix_document_line_items_document_id', table_name='document_line_items')
    op.drop_table('document_line_items')
    op.drop_index('ix_documents_created_at', table_name='documents')
    op.drop_index('ix_documents_type_status', table_name='documents')
    op.drop_table('documents')
