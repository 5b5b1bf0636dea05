"""SQLAlchemy ORM models for priced documents"""

from sqlalchemy import Column, String, Integer, DateTime, Date, Numeric, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from .database import Base


class Document(Base):
    """Quotation, purchase order or sales invoice header with its stored totals"""
    __tablename__ = "documents"
    
    # Primary key
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    document_type = Column(String(32), nullable=False)
    document_number = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="draft")
    
    # Header
    counterparty_ref = Column(String(100), nullable=False)
    issue_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    expected_delivery_date = Column(Date, nullable=True)
    validity_period = Column(String(100), nullable=True)
    invoice_type = Column(String(10), nullable=True)
    payment_terms = Column(Integer, nullable=True)
    delivery_terms = Column(Text, nullable=True)
    conditions = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    duty_status = Column(String(50), nullable=True)
    discount_kind = Column(String(20), nullable=True)
    discount_value = Column(Numeric(18, 4), nullable=True)
    source_document_id = Column(String(36), ForeignKey("documents.id", ondelete="SET NULL"), nullable=True)
    
    # Totals as computed at save time
    subtotal = Column(Numeric(18, 2), nullable=False)
    discount_amount = Column(Numeric(18, 2), nullable=True)
    net_amount = Column(Numeric(18, 2), nullable=False)
    tax_rate = Column(Numeric(5, 4), nullable=False)
    tax_amount = Column(Numeric(18, 2), nullable=False)
    grand_total = Column(Numeric(18, 2), nullable=False)
    
    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    line_items = relationship(
        "DocumentLineItem",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentLineItem.line_number",
        lazy="selectin",
    )
    
    __table_args__ = (
        UniqueConstraint('document_type', 'document_number', name='uq_documents_type_number'),
        Index('ix_documents_type_status', 'document_type', 'status'),
        Index('ix_documents_created_at', 'created_at'),
    )


class DocumentLineItem(Base):
    """Document line - separate table with foreign key to Document"""
    __tablename__ = "document_line_items"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    line_number = Column(Integer, nullable=False)
    product_ref = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(18, 4), nullable=False)
    line_total = Column(Numeric(18, 2), nullable=False)
    
    document = relationship("Document", back_populates="line_items")
    
    __table_args__ = (
        Index('ix_document_line_items_document_id', 'document_id'),
        Index('ix_document_line_items_line_number', 'document_id', 'line_number'),
    )
