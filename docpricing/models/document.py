"""Persisted document snapshot models"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional
from pydantic import BaseModel, Field, field_serializer, model_validator

from docpricing.models.enums import (
    DocumentType,
    InvoiceType,
    STATUS_ENUMS,
    DISCOUNTABLE_TYPES,
)
from docpricing.models.money import money_to_wire, rate_to_wire
from docpricing.pricing.engine import (
    DiscountKind,
    DiscountSpec,
    DocumentTotals,
    LineItem,
    ZERO,
)


class DocumentHeader(BaseModel):
    """Document header fields, as entered on the form"""
    counterparty_ref: str  # customer for quotations/invoices, supplier for purchase orders
    document_number: Optional[str] = None  # assigned on save
    status: str = "draft"
    issue_date: Optional[date] = None
    due_date: Optional[date] = None  # sales invoices
    expected_delivery_date: Optional[date] = None  # purchase orders
    validity_period: Optional[str] = None  # quotations
    invoice_type: Optional[InvoiceType] = None
    payment_terms: Optional[int] = Field(default=None, ge=1)  # days, credit invoices
    delivery_terms: Optional[str] = None
    conditions: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    duty_status: Optional[str] = None
    discount_kind: Optional[DiscountKind] = None
    discount_value: Optional[Decimal] = None
    source_document_id: Optional[str] = None  # quotation this document was created from

    @property
    def discount(self) -> Optional[DiscountSpec]:
        if self.discount_kind is None or not self.discount_value:
            return None
        return DiscountSpec(kind=self.discount_kind, value=self.discount_value)

    @field_serializer("discount_value", when_used="json")
    def _serialize_discount_value(self, value: Optional[Decimal]) -> Optional[str]:
        return rate_to_wire(value)


class SnapshotLineItem(BaseModel):
    """A stored document line"""
    product_ref: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    @classmethod
    def from_line_item(cls, item: LineItem) -> "SnapshotLineItem":
        return cls(
            product_ref=item.product_ref,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=item.line_total,
        )

    def to_line_item(self) -> LineItem:
        return LineItem(product_ref=self.product_ref, quantity=self.quantity, unit_price=self.unit_price)

    @field_serializer("unit_price", when_used="json")
    def _serialize_unit_price(self, value: Decimal) -> str:
        return rate_to_wire(value)

    @field_serializer("line_total", when_used="json")
    def _serialize_line_total(self, value: Decimal) -> str:
        return money_to_wire(value)


class SnapshotTotals(BaseModel):
    """Totals as computed at save time. Read back verbatim, never recomputed."""
    subtotal: Decimal
    discount_amount: Optional[Decimal] = None  # None when no discount applied
    net_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    grand_total: Decimal

    @classmethod
    def from_totals(cls, totals: DocumentTotals) -> "SnapshotTotals":
        return cls(
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount if totals.has_discount else None,
            net_amount=totals.net_amount,
            tax_rate=totals.tax_rate,
            tax_amount=totals.tax_amount,
            grand_total=totals.grand_total,
        )

    def to_totals(self) -> DocumentTotals:
        return DocumentTotals(
            subtotal=self.subtotal,
            discount_amount=self.discount_amount or ZERO,
            net_amount=self.net_amount,
            tax_rate=self.tax_rate,
            tax_amount=self.tax_amount,
            grand_total=self.grand_total,
        )

    @field_serializer("subtotal", "discount_amount", "net_amount", "tax_amount", "grand_total", when_used="json")
    def _serialize_money(self, value: Optional[Decimal]) -> Optional[str]:
        return money_to_wire(value)

    @field_serializer("tax_rate", when_used="json")
    def _serialize_rate(self, value: Decimal) -> str:
        return rate_to_wire(value)


class DocumentSnapshot(BaseModel):
    """A priced document: header, lines and the totals computed for them"""
    id: Optional[str] = None
    document_type: DocumentType
    header: DocumentHeader
    line_items: List[SnapshotLineItem] = Field(default_factory=list)
    totals: SnapshotTotals
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_header(self) -> "DocumentSnapshot":
        status_enum = STATUS_ENUMS[self.document_type]
        valid = {s.value for s in status_enum}
        if self.header.status not in valid:
            raise ValueError(
                f"invalid {self.document_type.value} status {self.header.status!r}; "
                f"expected one of {sorted(valid)}"
            )
        if self.header.discount is not None and self.document_type not in DISCOUNTABLE_TYPES:
            raise ValueError(f"{self.document_type.value} documents do not take a discount")
        return self

    @classmethod
    def build(
        cls,
        document_type: DocumentType,
        header: DocumentHeader,
        items: Iterable[LineItem],
        totals: DocumentTotals,
    ) -> "DocumentSnapshot":
        """Assemble a snapshot from engine output"""
        return cls(
            document_type=document_type,
            header=header,
            line_items=[SnapshotLineItem.from_line_item(item) for item in items],
            totals=SnapshotTotals.from_totals(totals),
        )

    def items(self) -> List[LineItem]:
        return [line.to_line_item() for line in self.line_items]
