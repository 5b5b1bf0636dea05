"""Document totals engine: line totals, discount, tax and grand total.

All arithmetic is done on ``Decimal`` and every derived field is rounded to
two decimal places (round-half-up) as soon as it is produced, so a displayed
total always equals the sum of its displayed parts.

Order of operations for a document:

    subtotal -> discount -> net amount -> tax (on net) -> grand total
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Mapping, Optional
import logging

from .errors import ValidationError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
ONE = Decimal("1")

# Stored precision (see db_models): prices, discount values and rates keep at
# most four decimal places; money columns are Numeric(18, 2)
PRICE_PLACES = 4
MAX_PRICE = Decimal("1e14")
MAX_TOTAL = Decimal("1e16")
MAX_QUANTITY = 2**31 - 1


class DiscountKind(str, Enum):
    """How a discount value is interpreted"""
    PERCENTAGE = "percentage"  # value in 0-100
    FIXED = "fixed"  # currency amount


@dataclass(frozen=True)
class LineItem:
    """One document row: a quantity of a catalog product at a unit price"""
    product_ref: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return compute_line_total(self.quantity, self.unit_price)


@dataclass(frozen=True)
class DiscountSpec:
    """Document-level discount"""
    kind: DiscountKind
    value: Decimal


@dataclass(frozen=True)
class DocumentTotals:
    """Derived totals of a document. Never edited by hand."""
    subtotal: Decimal
    discount_amount: Decimal
    net_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    grand_total: Decimal

    @property
    def has_discount(self) -> bool:
        return self.discount_amount > ZERO

    @classmethod
    def zero(cls, tax_rate: Decimal = ZERO) -> "DocumentTotals":
        return cls(ZERO, ZERO, ZERO, tax_rate, ZERO, ZERO)


def round2(value: Decimal, field: str = "amount") -> Decimal:
    """Round to currency precision (2 places, half-up)"""
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(field, "is too large") from None


def _check_stored_precision(d: Decimal, field: str, upper: Decimal = MAX_PRICE) -> Decimal:
    if abs(d) >= upper:
        raise ValidationError(field, f"must be less than {upper:,.0f}")
    if d.normalize().as_tuple().exponent < -PRICE_PLACES:
        raise ValidationError(field, f"must have at most {PRICE_PLACES} decimal places")
    return d


def _check_total(value: Decimal, field: str) -> Decimal:
    if value >= MAX_TOTAL:
        raise ValidationError(field, f"must be less than {MAX_TOTAL:,.0f}")
    return value


def to_decimal(value: Any, field: str) -> Decimal:
    """
    Convert caller input to a finite Decimal.

    Floats are converted through ``str`` so ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.

    Raises:
        ValidationError: value is missing, boolean, non-numeric or not finite
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(field, "must be a number")
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(field, f"not a valid number: {value!r}")
    if not d.is_finite():
        raise ValidationError(field, "must be a finite number")
    return d


def validate_quantity(quantity: Any) -> int:
    """Return ``quantity`` as an int, rejecting anything but a positive integer"""
    d = to_decimal(quantity, "quantity")
    if d != d.to_integral_value():
        raise ValidationError("quantity", "must be a whole number")
    if d <= 0:
        raise ValidationError("quantity", "must be at least 1")
    if d > MAX_QUANTITY:
        raise ValidationError("quantity", f"must be at most {MAX_QUANTITY}")
    return int(d)


def validate_unit_price(unit_price: Any) -> Decimal:
    d = to_decimal(unit_price, "unit_price")
    if d < 0:
        raise ValidationError("unit_price", "must not be negative")
    return _check_stored_precision(d, "unit_price")


def validate_tax_rate(tax_rate: Any, field: str = "tax_rate") -> Decimal:
    """Tax rates are fractions in [0, 1]"""
    d = to_decimal(tax_rate, field)
    if d < 0 or d > ONE:
        raise ValidationError(field, "must be between 0 and 1")
    return _check_stored_precision(d, field)


def build_discount(kind: Any, value: Any) -> Optional[DiscountSpec]:
    """
    Build a DiscountSpec from raw form input.

    Args:
        kind: "percentage" / "fixed" or a DiscountKind; None means no discount
        value: discount value; None or zero means no discount

    Returns:
        DiscountSpec, or None when no discount applies

    Raises:
        ValidationError: unknown kind, negative value or percentage over 100
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    amount = to_decimal(value, "discount.value")
    if amount < 0:
        raise ValidationError("discount.value", "must not be negative")
    if amount == 0:
        return None
    if kind is None:
        raise ValidationError("discount.kind", "is required when a discount value is given")
    spec = DiscountSpec(kind=_discount_kind(kind), value=amount)
    _check_discount(spec)
    return spec


def _discount_kind(kind: Any) -> DiscountKind:
    if isinstance(kind, DiscountKind):
        return kind
    try:
        return DiscountKind(str(kind).strip().lower())
    except ValueError:
        raise ValidationError("discount.kind", f"unknown discount kind: {kind!r}")


def _check_discount(discount: DiscountSpec) -> DiscountSpec:
    kind = _discount_kind(discount.kind)
    value = to_decimal(discount.value, "discount.value")
    if value < 0:
        raise ValidationError("discount.value", "must not be negative")
    if kind == DiscountKind.PERCENTAGE and value > HUNDRED:
        raise ValidationError("discount.value", "percentage must be between 0 and 100")
    _check_stored_precision(value, "discount.value")
    return DiscountSpec(kind=kind, value=value)


def compute_line_total(quantity: Any, unit_price: Any) -> Decimal:
    """
    Compute ``quantity * unit_price`` rounded to currency precision.

    Raises:
        ValidationError: quantity is not a positive integer, or unit price is negative
    """
    qty = validate_quantity(quantity)
    price = validate_unit_price(unit_price)
    return _check_total(round2(qty * price, "line_total"), "line_total")


def compute_document_totals(
    line_items: Iterable[LineItem],
    discount: Optional[DiscountSpec] = None,
    tax_rate: Any = ZERO,
) -> DocumentTotals:
    """
    Compute the totals of a document.

    Args:
        line_items: document lines (may be empty)
        discount: optional document discount
        tax_rate: resolved tax rate as a fraction in [0, 1]

    Returns:
        DocumentTotals with every field rounded to 2 places

    Raises:
        ValidationError: any line, the discount or the tax rate is invalid.
            Line failures carry the zero-based ``line_index``.
    """
    rate = validate_tax_rate(tax_rate)

    line_totals = []
    for index, item in enumerate(line_items):
        try:
            line_totals.append(compute_line_total(item.quantity, item.unit_price))
        except ValidationError as e:
            raise e.at_line(index) from None
    subtotal = _check_total(round2(sum(line_totals, ZERO)), "subtotal")

    discount_amount = ZERO
    if discount is not None:
        discount = _check_discount(discount)
        if discount.value != 0:
            if discount.kind == DiscountKind.PERCENTAGE:
                discount_amount = round2(subtotal * discount.value / HUNDRED)
            else:
                # A fixed discount never exceeds the subtotal
                discount_amount = round2(min(discount.value, subtotal))

    net_amount = round2(subtotal - discount_amount)
    tax_amount = round2(net_amount * rate)
    grand_total = _check_total(round2(net_amount + tax_amount), "grand_total")

    logger.debug(
        f"Computed totals for {len(line_totals)} line(s): subtotal={subtotal} "
        f"discount={discount_amount} net={net_amount} tax={tax_amount} ({rate}) "
        f"grand_total={grand_total}"
    )
    return DocumentTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        net_amount=net_amount,
        tax_rate=rate,
        tax_amount=tax_amount,
        grand_total=grand_total,
    )


def resolve_tax_rate(
    duty_status: Optional[str],
    policy_table: Mapping[str, Any],
    fallback_rate: Any,
) -> Decimal:
    """
    Look up the tax rate for a duty status.

    Returns the mapped rate when ``duty_status`` is a key of ``policy_table``,
    otherwise ``fallback_rate``. A missing or blank duty status uses the fallback.
    """
    if duty_status and duty_status in policy_table:
        return validate_tax_rate(policy_table[duty_status], field=f"tax_policy[{duty_status}]")
    return validate_tax_rate(fallback_rate, field="fallback_rate")
