"""Utilities for converting between document snapshots and SQLAlchemy models"""

from datetime import datetime
from typing import List

from .document import DocumentHeader, DocumentSnapshot, SnapshotLineItem, SnapshotTotals
from .db_models import Document as DocumentDB, DocumentLineItem as DocumentLineItemDB


def line_items_to_db(line_items: List[SnapshotLineItem]) -> List[DocumentLineItemDB]:
    """Convert snapshot lines to ORM rows, numbered from 1 in document order"""
    return [
        DocumentLineItemDB(
            line_number=i + 1,
            product_ref=item.product_ref,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=item.line_total,
        )
        for i, item in enumerate(line_items)
    ]


def db_to_line_items(rows: List[DocumentLineItemDB]) -> List[SnapshotLineItem]:
    return [
        SnapshotLineItem(
            product_ref=row.product_ref,
            quantity=row.quantity,
            unit_price=row.unit_price,
            line_total=row.line_total,
        )
        for row in sorted(rows, key=lambda r: r.line_number)
    ]


def apply_snapshot_fields(document_db: DocumentDB, snapshot: DocumentSnapshot) -> DocumentDB:
    """Copy header and totals of a snapshot onto an ORM row (lines excluded)"""
    header = snapshot.header
    totals = snapshot.totals
    document_db.document_type = snapshot.document_type.value
    document_db.document_number = header.document_number
    document_db.status = header.status
    document_db.counterparty_ref = header.counterparty_ref
    document_db.issue_date = header.issue_date
    document_db.due_date = header.due_date
    document_db.expected_delivery_date = header.expected_delivery_date
    document_db.validity_period = header.validity_period
    document_db.invoice_type = header.invoice_type.value if header.invoice_type else None
    document_db.payment_terms = header.payment_terms
    document_db.delivery_terms = header.delivery_terms
    document_db.conditions = header.conditions
    document_db.notes = header.notes
    document_db.duty_status = header.duty_status
    document_db.discount_kind = header.discount_kind.value if header.discount_kind else None
    document_db.discount_value = header.discount_value
    document_db.source_document_id = header.source_document_id
    document_db.subtotal = totals.subtotal
    document_db.discount_amount = totals.discount_amount
    document_db.net_amount = totals.net_amount
    document_db.tax_rate = totals.tax_rate
    document_db.tax_amount = totals.tax_amount
    document_db.grand_total = totals.grand_total
    return document_db


def snapshot_to_db(snapshot: DocumentSnapshot) -> DocumentDB:
    """Convert a snapshot to a new ORM Document with its lines"""
    now = datetime.utcnow()
    document_db = DocumentDB(created_at=now, updated_at=now)
    if snapshot.id:
        document_db.id = snapshot.id
    apply_snapshot_fields(document_db, snapshot)
    document_db.line_items = line_items_to_db(snapshot.line_items)
    return document_db


def db_to_snapshot(document_db: DocumentDB) -> DocumentSnapshot:
    """Convert an ORM Document to a snapshot. Totals are taken as stored."""
    header = DocumentHeader(
        counterparty_ref=document_db.counterparty_ref,
        document_number=document_db.document_number,
        status=document_db.status,
        issue_date=document_db.issue_date,
        due_date=document_db.due_date,
        expected_delivery_date=document_db.expected_delivery_date,
        validity_period=document_db.validity_period,
        invoice_type=document_db.invoice_type,
        payment_terms=document_db.payment_terms,
        delivery_terms=document_db.delivery_terms,
        conditions=document_db.conditions,
        notes=document_db.notes,
        duty_status=document_db.duty_status,
        discount_kind=document_db.discount_kind,
        discount_value=document_db.discount_value,
        source_document_id=document_db.source_document_id,
    )
    totals = SnapshotTotals(
        subtotal=document_db.subtotal,
        discount_amount=document_db.discount_amount,
        net_amount=document_db.net_amount,
        tax_rate=document_db.tax_rate,
        tax_amount=document_db.tax_amount,
        grand_total=document_db.grand_total,
    )
    return DocumentSnapshot(
        id=document_db.id,
        document_type=document_db.document_type,
        header=header,
        line_items=db_to_line_items(document_db.line_items),
        totals=totals,
        created_at=document_db.created_at,
        updated_at=document_db.updated_at,
    )
