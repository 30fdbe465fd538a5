"""
Checkout error taxonomy.

- Validation errors are local and raised before any network call.
- `GeocodingUnavailable` is swallowed by the orchestrator (fail-open).
- Submission errors are surfaced as retryable; the core never retries on its own.
"""

from __future__ import annotations


class CheckoutError(Exception):
    """Base class for all checkout errors."""


class CheckoutValidationError(CheckoutError, ValueError):
    code = "VALIDATION_ERROR"


class MissingField(CheckoutValidationError):
    code = "MISSING_FIELD"

    def __init__(self, fields: list[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required field(s): {', '.join(self.fields)}")


class EmptyCart(CheckoutValidationError):
    code = "EMPTY_CART"

    def __init__(self) -> None:
        super().__init__("Your cart is empty.")


class OutOfServiceArea(CheckoutValidationError):
    code = "OUT_OF_SERVICE_AREA"

    def __init__(self) -> None:
        super().__init__("The delivery address is outside the serviceable area.")


class GeocodingUnavailable(CheckoutError):
    """The geocoding collaborator is missing or failed."""


class SubmissionError(CheckoutError):
    """Order submission failed; the user may retry."""

    code = "SUBMISSION_FAILED"
    retryable = True

    def __init__(self, message: str, *, orphaned_order_id: str | None = None):
        super().__init__(message)
        self.message = message
        # Set when the compensating delete failed and the header row was left behind.
        self.orphaned_order_id = orphaned_order_id


class PersistenceError(SubmissionError):
    """The store rejected a write (`stage` is "order", "order_items", ...)."""

    def __init__(self, stage: str, message: str, *, orphaned_order_id: str | None = None):
        self.stage = stage
        super().__init__(f"{stage}: {message}", orphaned_order_id=orphaned_order_id)


class NetworkError(SubmissionError):
    """Transport failure or timeout talking to the store."""

    def __init__(self, stage: str, message: str, *, orphaned_order_id: str | None = None):
        self.stage = stage
        super().__init__(f"{stage}: {message}", orphaned_order_id=orphaned_order_id)
