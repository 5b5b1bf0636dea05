"""Document drafting: keeps totals current while a form edits a document"""

from typing import Any, Callable, List, Optional, Tuple
import logging

from docpricing.models.document import DocumentHeader, DocumentSnapshot
from docpricing.models.enums import (
    CONVERSIONS,
    DISCOUNTABLE_TYPES,
    STATUS_ENUMS,
    SUPPLIER_TYPES,
    DocumentType,
    InvoiceType,
)
from docpricing.pricing.engine import (
    DiscountSpec,
    DocumentTotals,
    LineItem,
    build_discount,
    compute_document_totals,
)
from docpricing.pricing.errors import ValidationError
from docpricing.pricing.line_items import LineItemStore
from docpricing.pricing.tax_policy import TaxPolicy

logger = logging.getLogger(__name__)

TotalsListener = Callable[[DocumentTotals], None]


class DocumentDraft:
    """A quotation, purchase order or sales invoice being edited.

    Totals are recomputed inline whenever lines, the discount or the duty
    status change. While the draft holds invalid input the last valid totals
    are kept and ``errors`` lists what is wrong.
    """

    def __init__(
        self,
        document_type: DocumentType,
        tax_policy: TaxPolicy,
        header: Optional[DocumentHeader] = None,
        items: Tuple[LineItem, ...] = (),
    ):
        """
        Initialize a draft

        Args:
            document_type: Type of document being drafted
            tax_policy: Policy resolving duty status to a tax rate for this type
            header: Header fields (counterparty, dates, notes...); may be filled later
            items: Initial lines
        """
        self.document_type = DocumentType(document_type)
        self.tax_policy = tax_policy
        self.header = header
        self.duty_status: Optional[str] = header.duty_status if header else None
        self.discount: Optional[DiscountSpec] = None
        self.errors: List[ValidationError] = []
        self.totals = DocumentTotals.zero(self.tax_rate)
        self._listeners: List[TotalsListener] = []

        self.lines = LineItemStore(items)
        self.lines.subscribe(lambda _items: self.recompute())

        if header is not None and header.discount is not None:
            self.set_discount(header.discount.kind, header.discount.value)
        else:
            self.recompute()

    @classmethod
    def from_snapshot(
        cls,
        snapshot: DocumentSnapshot,
        tax_policy: TaxPolicy,
        document_type: Optional[DocumentType] = None,
        counterparty_ref: Optional[str] = None,
    ) -> "DocumentDraft":
        """
        Start a new computation cycle from a stored document.

        With ``document_type`` set to a different type this converts the
        document (a quotation into a purchase order or sales invoice, or a
        purchase order into a sales invoice): lines and duty status carry over,
        while the number and status reset and the discount carries over only if
        the target type takes discounts. The counterparty carries over only
        when it plays the same role (customer or supplier) in both types;
        ``counterparty_ref`` replaces it.

        Raises:
            ValidationError: the source type cannot be converted into ``document_type``
        """
        target = DocumentType(document_type or snapshot.document_type)
        header = snapshot.header.model_copy()
        if target != snapshot.document_type:
            if target not in CONVERSIONS.get(snapshot.document_type, ()):
                raise ValidationError(
                    "document_type",
                    f"a {snapshot.document_type.value} cannot be converted into a {target.value}",
                )
            same_role = (target in SUPPLIER_TYPES) == (snapshot.document_type in SUPPLIER_TYPES)
            header = header.model_copy(update={
                "counterparty_ref": header.counterparty_ref if same_role else "",
                "document_number": None,
                "status": "draft",
                "source_document_id": snapshot.id,
                "discount_kind": header.discount_kind if target in DISCOUNTABLE_TYPES else None,
                "discount_value": header.discount_value if target in DISCOUNTABLE_TYPES else None,
            })
            logger.info(
                f"Converting {snapshot.document_type.value} {snapshot.id} "
                f"into a new {target.value} draft"
            )
        if counterparty_ref:
            header = header.model_copy(update={"counterparty_ref": counterparty_ref})
        return cls(target, tax_policy, header=header, items=tuple(snapshot.items()))

    @property
    def tax_rate(self):
        return self.tax_policy.rate_for(self.duty_status)

    @property
    def tax_label(self) -> str:
        return self.tax_policy.label_for(self.duty_status)

    def on_change(self, listener: TotalsListener) -> None:
        """Register a listener called with the new totals after each recompute"""
        self._listeners.append(listener)

    def recompute(self) -> DocumentTotals:
        """Recompute totals from the current lines, discount and duty status"""
        self.errors = self.lines.validate()
        if not self.errors:
            try:
                self.totals = compute_document_totals(self.lines.items(), self.discount, self.tax_rate)
            except ValidationError as e:
                self.errors = [e]
        for listener in list(self._listeners):
            listener(self.totals)
        return self.totals

    def set_duty_status(self, duty_status: Optional[str]) -> DocumentTotals:
        self.duty_status = duty_status or None
        return self.recompute()

    def set_discount(self, kind: Any, value: Any) -> DocumentTotals:
        """
        Set or clear the document discount from form input.

        Raises:
            ValidationError: invalid discount, or a discount on a purchase order
        """
        discount = build_discount(kind, value)
        if discount is not None and self.document_type not in DISCOUNTABLE_TYPES:
            raise ValidationError("discount", f"{self.document_type.value} documents do not take a discount")
        self.discount = discount
        return self.recompute()

    def clear_discount(self) -> DocumentTotals:
        self.discount = None
        return self.recompute()

    def validate(self) -> List[ValidationError]:
        """Every problem that blocks submission"""
        errors = list(self.lines.validate())
        header = self.header
        if header is None or not header.counterparty_ref.strip():
            errors.append(ValidationError("counterparty_ref", "is required"))
        elif header.status not in {s.value for s in STATUS_ENUMS[self.document_type]}:
            errors.append(ValidationError("status", f"invalid status {header.status!r}"))
        if header is not None and header.invoice_type == InvoiceType.CREDIT and not header.payment_terms:
            errors.append(ValidationError("payment_terms", "is required for credit invoices"))
        if len(self.lines) == 0:
            errors.append(ValidationError("line_items", "at least one line is required"))
        return errors

    def submit(self) -> DocumentSnapshot:
        """
        Validate the draft and produce the snapshot to persist.

        Raises:
            ValidationError: the first problem found; ``errors`` holds all of them
        """
        problems = self.validate()
        if problems:
            self.errors = problems
            raise problems[0]

        totals = compute_document_totals(self.lines.items(), self.discount, self.tax_rate)
        header = self.header.model_copy(update={
            "duty_status": self.duty_status,
            "discount_kind": self.discount.kind if self.discount else None,
            "discount_value": self.discount.value if self.discount else None,
            "payment_terms": self._payment_terms(),
        })
        logger.info(
            f"Submitting {self.document_type.value} with {len(self.lines)} line(s), "
            f"grand total {totals.grand_total}"
        )
        return DocumentSnapshot.build(self.document_type, header, self.lines.items(), totals)

    def _payment_terms(self) -> Optional[int]:
        # Cash invoices carry no payment terms
        if self.document_type == DocumentType.SALES_INVOICE and self.header.invoice_type != InvoiceType.CREDIT:
            return None
        return self.header.payment_terms
