"""Errors raised by the pricing engine"""

from typing import Optional, Dict, Any


class ValidationError(ValueError):
    """Raised when an input violates a documented pricing constraint.

    The caller is expected to re-prompt rather than submit. ``line_index`` is
    set when the failure belongs to a specific line of a document.
    """

    def __init__(self, field: str, message: str, line_index: Optional[int] = None):
        self.field = field
        self.message = message
        self.line_index = line_index
        super().__init__(self._render())

    def _render(self) -> str:
        if self.line_index is not None:
            return f"Line {self.line_index + 1}: {self.field}: {self.message}"
        return f"{self.field}: {self.message}"

    def at_line(self, line_index: int) -> "ValidationError":
        """Return a copy of this error bound to a document line"""
        return ValidationError(self.field, self.message, line_index=line_index)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "line_index": self.line_index,
        }
