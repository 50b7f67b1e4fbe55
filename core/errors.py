"""Error types for the order allocation and reconciliation engine.

Errors are scoped to a single operation. Bulk validation collects
ValidationError / NotFoundError instances into a list instead of raising them,
so the caller can present every problem at once. DocumentFormatError is raised
and aborts the comparison request.
"""

from typing import Any, Dict, List, Optional


class OrderEngineError(Exception):
    """Base exception for engine errors."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        data = {"error_type": self.error_type, "message": self.message}
        data.update(self.details)
        return data


class ValidationError(OrderEngineError):
    """Malformed input: bad bulk line, non-positive quantity, out-of-range price.

    Attributes:
        line_number: 1-based line in the bulk input (None outside the bulk path)
        line: Raw line text as typed by the user
    """
    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
        field: Optional[str] = None,
    ):
        details: Dict[str, Any] = {}
        if line_number is not None:
            details["line_number"] = line_number
        if line is not None:
            details["line"] = line
        if field is not None:
            details["field"] = field
        super().__init__(message, details)
        self.line_number = line_number
        self.line = line
        self.field = field


class NotFoundError(OrderEngineError):
    """Product code absent from the batched catalog lookup."""
    def __init__(self, code: str, line_numbers: Optional[List[int]] = None):
        line_numbers = sorted(line_numbers or [])
        if line_numbers:
            lines = ", ".join(str(n) for n in line_numbers)
            message = f"Product {code} not found in catalog (line {lines})"
        else:
            message = f"Product {code} not found in catalog"
        super().__init__(message, {"code": code, "line_numbers": line_numbers})
        self.code = code
        self.line_numbers = line_numbers


class DocumentFormatError(OrderEngineError):
    """Invoice document could not be read. Fatal for the comparison request."""
    pass


class StaleStockWarning(UserWarning):
    """Advisory raised alongside a successful allocation that left a shortfall.

    Never raised as an exception by the engine: allocation with pending
    quantity is a valid outcome. The warning is returned to the caller so it
    can be surfaced (toast, banner, log).
    """
    def __init__(
        self,
        code: str,
        requested_quantity: int,
        fulfilled_quantity: int,
        pending_quantity: int,
    ):
        message = (
            f"Insufficient stock for {code}: {fulfilled_quantity} of "
            f"{requested_quantity} fulfilled, {pending_quantity} pending"
        )
        super().__init__(message)
        self.message = message
        self.code = code
        self.requested_quantity = requested_quantity
        self.fulfilled_quantity = fulfilled_quantity
        self.pending_quantity = pending_quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warning_type": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "requested_quantity": self.requested_quantity,
            "fulfilled_quantity": self.fulfilled_quantity,
            "pending_quantity": self.pending_quantity,
        }
