from __future__ import annotations

import copy

import pytest


SAMPLE_ORDER = {
    "storeName": "Bahari Irish Pub",
    "address": "Jl. Pantai Indah 7",
    "date": "2024-03-05T19:45:00",
    "receiptNumber": "INV-0042",
    "servedBy": "Dewi",
    "customerName": "Budi",
    "items": [
        {"name": "Guinness Draught", "quantity": 1, "price": 5000},
        {"name": "Fish and Chips", "quantity": 1, "price": 5000, "discountPercent": 20, "discountedPrice": 4000},
    ],
    "subtotal": 10000,
    "total": 11500,
    "includedTaxService": True,
    "taxPercent": 10,
    "servicePercent": 5,
    "note": "Thank you for visiting!",
}


@pytest.fixture
def order_payload():
    return copy.deepcopy(SAMPLE_ORDER)
