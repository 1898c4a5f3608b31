"""Validation and metadata sanitization for payment requests."""

from decimal import Decimal
from typing import Any

from castbooking.domain.entities.payment import ProcessPaymentRequest
from castbooking.domain.value_objects.money import ZERO_DECIMAL_CURRENCIES

MIN_AMOUNT = Decimal("100")
MAX_AMOUNT = Decimal("9999999")
MAX_METADATA_KEY_LENGTH = 40
MAX_METADATA_VALUE_LENGTH = 500


def validate_payment_amount(amount: Decimal, currency: str) -> str | None:
    if currency.upper() in ZERO_DECIMAL_CURRENCIES and amount != amount.to_integral_value():
        return "Amount must be an integer"
    if amount < MIN_AMOUNT:
        return f"Amount must be at least {MIN_AMOUNT} {currency.upper()}"
    if amount > MAX_AMOUNT:
        return f"Amount must not exceed {MAX_AMOUNT} {currency.upper()}"
    return None


def validate_payment_request(request: ProcessPaymentRequest, currency: str) -> list[str]:
    errors: list[str] = []
    amount_error = validate_payment_amount(Decimal(request.amount), request.currency or currency)
    if amount_error:
        errors.append(amount_error)
    if not request.reservation_id:
        errors.append("Reservation ID is required")
    if not request.customer_id:
        errors.append("Customer ID is required")
    if not request.currency or request.currency.lower() != currency.lower():
        errors.append(f"Only {currency.upper()} currency is supported")
    if not request.payment_method:
        errors.append("Payment method is required")
    if not request.provider:
        errors.append("Payment provider is required")
    return errors


def sanitize_metadata(metadata: dict[str, Any] | None) -> dict[str, str]:
    """Keeps short string keys with string, number or bool values, all as strings."""
    if not isinstance(metadata, dict):
        return {}
    sanitized: dict[str, str] = {}
    for key, value in metadata.items():
        if not isinstance(key, str) or len(key) > MAX_METADATA_KEY_LENGTH:
            continue
        if isinstance(value, str):
            if len(value) <= MAX_METADATA_VALUE_LENGTH:
                sanitized[key] = value
        elif isinstance(value, bool):
            sanitized[key] = "true" if value else "false"
        elif isinstance(value, (int, float, Decimal)):
            sanitized[key] = str(value)
    return sanitized
