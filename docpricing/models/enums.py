"""Document types and lifecycle states"""

from enum import Enum


class DocumentType(str, Enum):
    """Priced business documents"""
    QUOTATION = "quotation"
    PURCHASE_ORDER = "purchase_order"
    SALES_INVOICE = "sales_invoice"


class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class InvoiceType(str, Enum):
    """Sales invoice settlement type"""
    CASH = "cash"
    CREDIT = "credit"  # payment_terms (days) apply


STATUS_ENUMS = {
    DocumentType.QUOTATION: QuotationStatus,
    DocumentType.PURCHASE_ORDER: PurchaseOrderStatus,
    DocumentType.SALES_INVOICE: InvoiceStatus,
}

# Document types that accept a document-level discount
DISCOUNTABLE_TYPES = frozenset({DocumentType.QUOTATION, DocumentType.SALES_INVOICE})

# Documents a stored document can be turned into
CONVERSIONS = {
    DocumentType.QUOTATION: frozenset({DocumentType.PURCHASE_ORDER, DocumentType.SALES_INVOICE}),
    DocumentType.PURCHASE_ORDER: frozenset({DocumentType.SALES_INVOICE}),
}

# The counterparty of these types is a supplier; of the others, a customer
SUPPLIER_TYPES = frozenset({DocumentType.PURCHASE_ORDER})
