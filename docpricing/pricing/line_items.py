"""Line item store and form-input normalization"""

from dataclasses import replace
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Tuple
import logging

from .engine import LineItem, compute_line_total, validate_quantity, validate_unit_price
from .errors import ValidationError

logger = logging.getLogger(__name__)

Listener = Callable[[Tuple[LineItem, ...]], None]


def _require(raw: Any, field: str) -> Any:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError(field, "is required")
    return raw.strip() if isinstance(raw, str) else raw


def normalize_quantity(raw: Any) -> int:
    """Parse a quantity typed into a form (``" 3 "``, ``3``, ``Decimal("3")``)"""
    return validate_quantity(_require(raw, "quantity"))


def normalize_unit_price(raw: Any) -> Decimal:
    """Parse a unit price typed into a form. Up to four decimal places are kept as entered."""
    return validate_unit_price(_require(raw, "unit_price"))


def normalize_product_ref(raw: Any) -> str:
    return str(_require(raw, "product_ref"))


class LineItemStore:
    """Ordered, mutable list of document lines owned by a drafting form.

    Every mutation validates its input first; an invalid value raises
    ValidationError and leaves the store unchanged. Subscribers are notified
    synchronously after each successful mutation.
    """

    def __init__(self, items: Iterable[LineItem] = ()):
        self._items: List[LineItem] = list(items)
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self.items())

    def __getitem__(self, index: int) -> LineItem:
        return self._items[index]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.items()
        for listener in list(self._listeners):
            listener(snapshot)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            raise IndexError(f"line index {index} out of range (0..{len(self._items) - 1})")

    def items(self) -> Tuple[LineItem, ...]:
        """Immutable snapshot of the current lines"""
        return tuple(self._items)

    def add_line(self, product_ref: str = "", quantity: Any = 1, unit_price: Any = Decimal("0")) -> int:
        """
        Append a line.

        An empty ``product_ref`` is allowed while drafting (the form adds a blank
        row, then the user picks a product); submission rejects it.

        Returns:
            Index of the new line
        """
        item = LineItem(
            product_ref=str(product_ref or ""),
            quantity=normalize_quantity(quantity),
            unit_price=normalize_unit_price(unit_price),
        )
        self._items.append(item)
        self._notify()
        return len(self._items) - 1

    def remove_line(self, index: int) -> LineItem:
        self._check_index(index)
        removed = self._items.pop(index)
        self._notify()
        return removed

    def select_product(self, index: int, product_ref: str, default_price: Any) -> LineItem:
        """Point a line at a catalog product and take the catalog's default price"""
        self._check_index(index)
        self._items[index] = replace(
            self._items[index],
            product_ref=normalize_product_ref(product_ref),
            unit_price=normalize_unit_price(default_price),
        )
        self._notify()
        return self._items[index]

    def set_quantity(self, index: int, quantity: Any) -> LineItem:
        self._check_index(index)
        self._items[index] = replace(self._items[index], quantity=normalize_quantity(quantity))
        self._notify()
        return self._items[index]

    def set_unit_price(self, index: int, unit_price: Any) -> LineItem:
        """Manually override a line's unit price"""
        self._check_index(index)
        self._items[index] = replace(self._items[index], unit_price=normalize_unit_price(unit_price))
        self._notify()
        return self._items[index]

    def replace_all(self, items: Iterable[LineItem]) -> None:
        """Load lines from a stored document, discarding the current ones"""
        self._items = list(items)
        self._notify()

    def clear(self) -> None:
        self.replace_all(())

    def validate(self) -> List[ValidationError]:
        """Every offending line and field, in line order"""
        errors = []
        for index, item in enumerate(self._items):
            if not str(item.product_ref or "").strip():
                errors.append(ValidationError("product_ref", "a product must be selected", line_index=index))
            try:
                compute_line_total(item.quantity, item.unit_price)
            except ValidationError as e:
                errors.append(e.at_line(index))
        if errors:
            logger.debug(f"Line item validation found {len(errors)} problem(s)")
        return errors
