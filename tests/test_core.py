from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from receipt_print.core import (
    InvalidOrderError,
    format_date_for_receipt,
    format_quantity,
    parse_order,
    percent_of,
)


def _assert_invalid(payload, fragment: str) -> None:
    try:
        parse_order(payload)
    except InvalidOrderError as e:
        assert fragment in str(e), str(e)
    else:
        assert False, f"Expected InvalidOrderError mentioning {fragment!r}"


def test_parse_sample_order(order_payload):
    order = parse_order(order_payload)

    assert order.store_name == "Bahari Irish Pub"
    assert order.receipt_number == "INV-0042"
    assert order.customer_name == "Budi"
    assert order.date == datetime(2024, 3, 5, 19, 45)
    assert isinstance(order.items, tuple)
    assert [item.name for item in order.items] == ["Guinness Draught", "Fish and Chips"]
    assert order.items[1].discount_percent == Decimal("20")
    assert order.items[1].discounted_price == Decimal("4000")
    assert order.items[1].has_discount
    assert not order.items[0].has_discount
    assert order.subtotal == Decimal("10000")
    assert order.total == Decimal("11500")
    assert order.included_tax_service is True
    assert order.tax_percent == Decimal("10")
    assert order.service_percent == Decimal("5")


def test_parse_keeps_fractional_quantities_exact(order_payload):
    order_payload["items"] = [{"name": "Prawns (kg)", "quantity": 0.1, "price": "250000"}]
    order = parse_order(order_payload)
    assert order.items[0].quantity == Decimal("0.1")
    assert order.items[0].price == Decimal("250000")


def test_optional_fields_default(order_payload):
    for key in ("customerName", "note", "includedTaxService", "taxPercent", "servicePercent"):
        del order_payload[key]
    order = parse_order(order_payload)
    assert order.customer_name is None
    assert order.note is None
    assert order.included_tax_service is False
    assert order.tax_percent == Decimal("0")


def test_zero_items_is_valid(order_payload):
    order_payload["items"] = []
    assert parse_order(order_payload).items == ()


def test_date_formats(order_payload):
    order_payload["date"] = "2024-03-05T19:45:00.000Z"
    order = parse_order(order_payload)
    assert order.date == datetime(2024, 3, 5, 19, 45, tzinfo=timezone.utc)
    assert format_date_for_receipt(order.date) == "05/03/2024 19:45"

    # JavaScript Date.now() style epoch milliseconds
    order_payload["date"] = 1709667900000
    assert format_date_for_receipt(parse_order(order_payload).date) == "05/03/2024 19:45"

    order_payload["date"] = "05/03/2024 19:45"
    assert parse_order(order_payload).date == datetime(2024, 3, 5, 19, 45)


def test_missing_required_fields(order_payload):
    for key in ("storeName", "address", "date", "receiptNumber", "servedBy", "items", "subtotal", "total"):
        payload = dict(order_payload)
        del payload[key]
        _assert_invalid(payload, f"'{key}' is required")

    order_payload["items"] = [{"name": "Chips", "price": 1000}]
    _assert_invalid(order_payload, "items[0]: 'quantity' is required")


def test_bad_numbers(order_payload):
    order_payload["items"][0]["quantity"] = -1
    _assert_invalid(order_payload, "must not be negative")

    order_payload["items"][0]["quantity"] = 1
    order_payload["items"][0]["price"] = float("nan")
    _assert_invalid(order_payload, "finite")

    order_payload["items"][0]["price"] = "twelve"
    _assert_invalid(order_payload, "must be a number")

    order_payload["items"][0]["price"] = True
    _assert_invalid(order_payload, "must be a number")

    order_payload["items"][0]["price"] = 1000
    order_payload["total"] = -5
    _assert_invalid(order_payload, "'total' must not be negative")


def test_bad_shapes(order_payload):
    _assert_invalid(["not", "an", "object"], "must be an object")

    payload = dict(order_payload, items="Guinness")
    _assert_invalid(payload, "'items' must be a list")

    payload = dict(order_payload, items=["Guinness"])
    _assert_invalid(payload, "items[0]: must be an object")

    payload = dict(order_payload, storeName="   ")
    _assert_invalid(payload, "'storeName' must not be empty")

    payload = dict(order_payload, date="yesterday evening")
    _assert_invalid(payload, "'date' is not a valid date")


def test_discount_percent_without_discounted_price_is_accepted(order_payload, caplog):
    del order_payload["items"][1]["discountedPrice"]
    with caplog.at_level(logging.WARNING, logger="receipt_print.core"):
        order = parse_order(order_payload)
    item = order.items[1]
    assert item.discount_percent == Decimal("20")
    assert item.discounted_price is None
    assert item.has_discount
    assert "without discountedPrice" in caplog.text


def test_discount_mismatch_is_flagged_not_rejected(order_payload, caplog):
    order_payload["items"][1]["discountedPrice"] = 3500
    with caplog.at_level(logging.WARNING, logger="receipt_print.core"):
        order = parse_order(order_payload)
    assert order.items[1].discounted_price == Decimal("3500")
    assert "does not match" in caplog.text


def test_format_quantity():
    assert format_quantity(Decimal("2")) == "2"
    assert format_quantity(Decimal("2.000")) == "2"
    assert format_quantity(Decimal("1E+2")) == "100"
    assert format_quantity(Decimal("2.500")) == "2.5"
    assert format_quantity(Decimal("0.25"), decimal_sep=",") == "0,25"


def test_percent_of_rounds_half_up():
    assert percent_of(Decimal("10000"), Decimal("10")) == Decimal("1000")
    assert percent_of(Decimal("10000"), Decimal("5")) == Decimal("500")
    assert percent_of(Decimal("12345"), Decimal("10")) == Decimal("1235")
    assert percent_of(Decimal("12345"), Decimal("10"), decimals=2) == Decimal("1234.50")
