"""Pricing engine: line totals, discounts, tax policy and document totals"""

from .errors import ValidationError
from .engine import (
    LineItem,
    DiscountKind,
    DiscountSpec,
    DocumentTotals,
    build_discount,
    compute_line_total,
    compute_document_totals,
    resolve_tax_rate,
    round2,
)
from .tax_policy import TaxPolicy, TaxPolicyRegistry
from .line_items import LineItemStore

__all__ = [
    "ValidationError",
    "LineItem",
    "DiscountKind",
    "DiscountSpec",
    "DocumentTotals",
    "build_discount",
    "compute_line_total",
    "compute_document_totals",
    "resolve_tax_rate",
    "round2",
    "TaxPolicy",
    "TaxPolicyRegistry",
    "LineItemStore",
]
