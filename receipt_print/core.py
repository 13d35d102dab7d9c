from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Any, Mapping, Optional, Tuple


# Configure a sane decimal precision for monetary calculations
getcontext().prec = 28

logger = logging.getLogger(__name__)


class InvalidOrderError(ValueError):
    """Raised when order data cannot be turned into a receipt."""


@dataclass(frozen=True)
class LineItem:
    name: str
    quantity: Decimal
    price: Decimal
    discount_percent: Optional[Decimal] = None
    discounted_price: Optional[Decimal] = None

    @property
    def has_discount(self) -> bool:
        return self.discounted_price is not None or self.discount_percent is not None


@dataclass(frozen=True)
class OrderData:
    # Header
    store_name: str
    address: str
    date: datetime

    # Metadata
    receipt_number: str
    served_by: str

    items: Tuple[LineItem, ...]

    # Totals supplied by the caller
    subtotal: Decimal
    total: Decimal

    customer_name: Optional[str] = None
    included_tax_service: bool = False
    tax_percent: Decimal = Decimal("0")
    service_percent: Decimal = Decimal("0")
    note: Optional[str] = None


_DATE_FORMATS = (
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d-%m-%Y %H:%M",
    "%d/%m/%Y",
    "%d-%m-%Y",
)


def _require(payload: Mapping[str, Any], key: str, where: str = "order") -> Any:
    value = payload.get(key)
    if value is None:
        raise InvalidOrderError(f"{where}: '{key}' is required")
    return value


def _text(value: Any, key: str, where: str = "order") -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidOrderError(f"{where}: '{key}' must be a string")
    return str(value)


def _optional_text(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    text = _text(value, key)
    return text if text.strip() else None


def parse_amount(value: Any, key: str, where: str = "order") -> Decimal:
    """Convert a JSON number (or numeric string) to a non-negative Decimal."""
    if isinstance(value, bool):
        raise InvalidOrderError(f"{where}: '{key}' must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidOrderError(f"{where}: '{key}' must be a finite number")
    if isinstance(value, (int, float)):
        # str() keeps 0.1 as 0.1 instead of its binary expansion
        value = str(value)
    if not isinstance(value, (str, Decimal)):
        raise InvalidOrderError(f"{where}: '{key}' must be a number")
    try:
        amount = Decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, ValueError):
        raise InvalidOrderError(f"{where}: '{key}' must be a number")
    if not amount.is_finite():
        raise InvalidOrderError(f"{where}: '{key}' must be a finite number")
    if amount < 0:
        raise InvalidOrderError(f"{where}: '{key}' must not be negative")
    return amount


def parse_date(value: Any) -> datetime:
    """Parse the receipt timestamp.

    Accepts a datetime, an ISO 8601 string (a JavaScript ``toJSON()`` value
    ending in ``Z`` included), a few day-first formats, or epoch milliseconds.
    Timezone-aware values keep their own offset; nothing is converted to the
    host's local time so the same input always prints the same date.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise InvalidOrderError("order: 'date' is not a valid date")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise InvalidOrderError("order: 'date' is out of range")
    if not isinstance(value, str) or not value.strip():
        raise InvalidOrderError("order: 'date' is not a valid date")

    raw = value.strip()
    iso = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            pass
    raise InvalidOrderError(
        "order: 'date' is not a valid date. Use ISO 8601 or DD/MM/YYYY HH:MM."
    )


def parse_item(payload: Any, index: int) -> LineItem:
    where = f"items[{index}]"
    if not isinstance(payload, Mapping):
        raise InvalidOrderError(f"{where}: must be an object")

    name = _text(_require(payload, "name", where), "name", where)
    quantity = parse_amount(_require(payload, "quantity", where), "quantity", where)
    price = parse_amount(_require(payload, "price", where), "price", where)

    discount_percent = None
    if payload.get("discountPercent") is not None:
        discount_percent = parse_amount(payload["discountPercent"], "discountPercent", where)
        if discount_percent > 100:
            raise InvalidOrderError(f"{where}: 'discountPercent' must not exceed 100")

    discounted_price = None
    if payload.get("discountedPrice") is not None:
        discounted_price = parse_amount(payload["discountedPrice"], "discountedPrice", where)

    if discount_percent is not None and discounted_price is None:
        # Marked on the receipt without an amount; the caller's total stands.
        logger.warning(
            "%s: discountPercent %s given without discountedPrice",
            where,
            discount_percent,
        )
    elif discount_percent is not None:
        expected = price * (Decimal("100") - discount_percent) / Decimal("100")
        if expected != discounted_price:
            # Both values are caller-asserted; print them as given.
            logger.warning(
                "%s: discountedPrice %s does not match price %s less %s%%",
                where,
                discounted_price,
                price,
                discount_percent,
            )

    return LineItem(
        name=name,
        quantity=quantity,
        price=price,
        discount_percent=discount_percent,
        discounted_price=discounted_price,
    )


def parse_order(payload: Any) -> OrderData:
    """Validate a JSON-shaped order and build the immutable OrderData.

    Every check happens here so the encoder never sees a half-valid order.
    """
    if not isinstance(payload, Mapping):
        raise InvalidOrderError("order: data must be an object")

    store_name = _text(_require(payload, "storeName"), "storeName")
    if not store_name.strip():
        raise InvalidOrderError("order: 'storeName' must not be empty")

    raw_items = _require(payload, "items")
    if not isinstance(raw_items, list):
        raise InvalidOrderError("order: 'items' must be a list")

    included_tax_service = payload.get("includedTaxService") or False
    if not isinstance(included_tax_service, bool):
        raise InvalidOrderError("order: 'includedTaxService' must be true or false")

    tax_percent = Decimal("0")
    service_percent = Decimal("0")
    if included_tax_service:
        tax_percent = parse_amount(payload.get("taxPercent", 0), "taxPercent")
        service_percent = parse_amount(payload.get("servicePercent", 0), "servicePercent")

    return OrderData(
        store_name=store_name,
        address=_text(_require(payload, "address"), "address"),
        date=parse_date(_require(payload, "date")),
        receipt_number=_text(_require(payload, "receiptNumber"), "receiptNumber"),
        served_by=_text(_require(payload, "servedBy"), "servedBy"),
        customer_name=_optional_text(payload, "customerName"),
        items=tuple(parse_item(item, i) for i, item in enumerate(raw_items)),
        subtotal=parse_amount(_require(payload, "subtotal"), "subtotal"),
        total=parse_amount(_require(payload, "total"), "total"),
        included_tax_service=included_tax_service,
        tax_percent=tax_percent,
        service_percent=service_percent,
        note=_optional_text(payload, "note"),
    )


def percent_of(amount: Decimal, percent: Decimal, decimals: int = 0) -> Decimal:
    """Return ``amount * percent / 100`` rounded half-up to ``decimals`` places."""
    exponent = Decimal(1).scaleb(-decimals)
    return (amount * percent / Decimal("100")).quantize(exponent, rounding=ROUND_HALF_UP)


def format_quantity(value: Decimal, decimal_sep: str = ".") -> str:
    """Whole quantities print as integers, others with no trailing zeros."""
    if value == value.to_integral_value():
        return str(int(value))
    text = format(value.normalize(), "f")
    return text.replace(".", decimal_sep)


def format_percent(value: Decimal) -> str:
    return format_quantity(value) + "%"


def format_date_for_receipt(value: datetime) -> str:
    """Format the receipt timestamp as DD/MM/YYYY HH:MM."""
    try:
        return value.strftime("%d/%m/%Y %H:%M")
    except (ValueError, AttributeError) as exc:
        raise InvalidOrderError(f"order: 'date' cannot be formatted: {exc}")
