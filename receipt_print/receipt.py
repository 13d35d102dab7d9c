"""Receipt encoder: OrderData in, ESC/POS bytes out.

The encoder is a pure transform. Layout happens first, as a list of styled
text blocks; encoding then drives a python-escpos ``Dummy`` printer through
style-on / text / style-off for each block, so no formatting mode survives
past the block that asked for it, and returns the buffered bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Optional, Tuple

from escpos.printer import Dummy

from .codepage import check_code_page, to_code_page
from .core import (
    LineItem,
    OrderData,
    format_date_for_receipt,
    format_percent,
    format_quantity,
    percent_of,
)
from .layout import center, pad_lr, right, rule, truncate, wrap, wrap_paragraphs


MIN_COLUMNS = 16
METADATA_VALUE_LINES = 2


class ReceiptMode(str, Enum):
    """Which copy of the receipt to produce.

    ``FULL`` is the customer receipt with prices and totals. ``CHECKER`` is
    the kitchen/prep slip: item quantities and names only.
    """

    FULL = "full"
    CHECKER = "checker"


class Align(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class Block:
    lines: Tuple[str, ...]
    align: Align = Align.LEFT
    bold: bool = False
    double_height: bool = False


@dataclass(frozen=True)
class MoneyFormat:
    decimals: int = 0
    thousands_sep: str = "."
    decimal_sep: str = ","
    symbol: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.decimals <= 4:
            raise ValueError("Money decimals must be between 0 and 4")

    def format(self, value: Decimal) -> str:
        """Fixed decimals with a thousands separator, e.g. 1234567 -> 1.234.567."""
        exponent = Decimal(1).scaleb(-self.decimals)
        quantized = value.quantize(exponent, rounding=ROUND_HALF_UP)
        text = f"{quantized:,.{self.decimals}f}"
        # Swap through a marker so "." and "," can trade places
        text = text.replace(",", "\0").replace(".", self.decimal_sep).replace("\0", self.thousands_sep)
        return f"{self.symbol}{text}"


class ReceiptEncoder:
    """Turn OrderData into a self-terminating ESC/POS byte stream.

    ``columns`` is the paper width in characters (32 for 58mm paper, 42 or
    48 for 80mm). ``feed_lines`` line feeds follow the cut.
    """

    def __init__(
        self,
        columns: int = 32,
        code_page: str = "cp437",
        feed_lines: int = 3,
        money: Optional[MoneyFormat] = None,
    ) -> None:
        if columns < MIN_COLUMNS:
            raise ValueError(f"Paper width must be at least {MIN_COLUMNS} columns")
        if not 0 <= feed_lines <= 255:
            raise ValueError("Feed lines must be between 0 and 255")
        self._charcode = check_code_page(code_page)
        self.columns = columns
        self.code_page = code_page
        self.feed_lines = feed_lines
        money = money or MoneyFormat()
        # Amounts are printed as formatted, so their symbol and separators
        # have to be reduced to the code page like any other text.
        self.money = replace(
            money,
            symbol=to_code_page(money.symbol, code_page),
            thousands_sep=to_code_page(money.thousands_sep, code_page),
            decimal_sep=to_code_page(money.decimal_sep, code_page),
        )

    # Public API

    def encode(self, order: OrderData, mode: ReceiptMode = ReceiptMode.FULL) -> bytes:
        blocks = self.layout(order, mode)
        printer = Dummy()
        printer.hw("INIT")
        printer.charcode(self._charcode)
        for block in blocks:
            self._print_block(printer, block)
        printer.cut()
        printer.ln(self.feed_lines)
        return printer.output

    def preview(self, order: OrderData, mode: ReceiptMode = ReceiptMode.FULL) -> str:
        """Plain-text rendering of what ``encode`` prints."""
        return "\n".join(line for block in self.layout(order, mode) for line in block.lines)

    def layout(self, order: OrderData, mode: ReceiptMode = ReceiptMode.FULL) -> List[Block]:
        mode = ReceiptMode(mode)
        blocks = self._header(order) + [self._metadata(order)]
        if mode is ReceiptMode.CHECKER:
            blocks.append(self._checker_items(order.items))
        else:
            blocks.append(self._full_items(order.items))
            blocks.extend(self._totals(order))
        blocks.append(self._footer(order))
        return blocks

    # Blocks

    def _header(self, order: OrderData) -> List[Block]:
        width = self.columns
        name_lines = tuple(center(line, width) for line in wrap(self._text(order.store_name), width))
        address_lines = tuple(center(line, width) for line in wrap(self._text(order.address), width))
        return [
            Block(name_lines, align=Align.CENTER, bold=True, double_height=True),
            Block(address_lines + (rule(width),), align=Align.CENTER),
        ]

    def _metadata(self, order: OrderData) -> Block:
        width = self.columns
        rows = [
            ("Receipt No", order.receipt_number),
            ("Date", format_date_for_receipt(order.date)),
            ("Served By", order.served_by),
        ]
        if order.customer_name:
            rows.append(("Customer", order.customer_name))
        lines = []
        for label, value in rows:
            label = label + ":"
            value = self._text(value)
            if len(label) + 1 + len(value) <= width:
                lines.append(pad_lr(label, value, width))
                continue
            # No room beside the label: the value goes right-aligned under it
            wrapped = wrap(value, width)
            if len(wrapped) > METADATA_VALUE_LINES:
                keep = METADATA_VALUE_LINES - 1
                wrapped = wrapped[:keep] + [truncate(" ".join(wrapped[keep:]), width)]
            lines.append(label)
            lines.extend(right(line, width) for line in wrapped)
        lines.append(rule(width))
        return Block(tuple(lines))

    def _full_items(self, items: Tuple[LineItem, ...]) -> Block:
        width = self.columns
        lines: List[str] = []
        for item in items:
            lines.extend(wrap(self._text(item.name), width) or [""])
            qty = format_quantity(item.quantity, self.money.decimal_sep)
            unit = f"  {qty} x {self.money.format(item.price)}"
            lines.append(pad_lr(unit, self.money.format(item.quantity * item.price), width))
            if item.has_discount:
                label = "  (disc)"
                if item.discount_percent is not None:
                    label = f"  (disc {format_percent(item.discount_percent)})"
                if item.discounted_price is None:
                    # Percent only: mark it, there is no amount to print
                    lines.append(truncate(label, width))
                    continue
                discounted = self.money.format(item.quantity * item.discounted_price)
                lines.append(pad_lr(label, discounted, width))
        return Block(tuple(lines))

    def _checker_items(self, items: Tuple[LineItem, ...]) -> Block:
        width = self.columns
        lines = []
        for item in items:
            qty = format_quantity(item.quantity, self.money.decimal_sep)
            lines.append(truncate(f"{qty} x {self._text(item.name)}", width))
        return Block(tuple(lines))

    def _totals(self, order: OrderData) -> List[Block]:
        width = self.columns
        money = self.money
        lines = [rule(width), pad_lr("Subtotal", money.format(order.subtotal), width)]
        if order.included_tax_service:
            tax = percent_of(order.subtotal, order.tax_percent, money.decimals)
            service = percent_of(order.subtotal, order.service_percent, money.decimals)
            lines.append(pad_lr(f"Tax ({format_percent(order.tax_percent)})", money.format(tax), width))
            lines.append(pad_lr(f"Service ({format_percent(order.service_percent)})", money.format(service), width))
        return [
            Block(tuple(lines)),
            Block((pad_lr("TOTAL", money.format(order.total), width),), bold=True, double_height=True),
        ]

    def _footer(self, order: OrderData) -> Block:
        width = self.columns
        lines: List[str] = []
        if order.note:
            note = "\n".join(self._text(paragraph) for paragraph in order.note.splitlines())
            lines.extend(wrap_paragraphs(note, width))
        lines.append(rule(width))
        return Block(tuple(lines))

    # Encoding

    def _text(self, value: str) -> str:
        return to_code_page(value, self.code_page)

    def _print_block(self, printer: Dummy, block: Block) -> None:
        styled = block.align is not Align.LEFT or block.bold or block.double_height
        if styled:
            printer.set(align=block.align.value, bold=block.bold, double_height=block.double_height)
        for line in block.lines:
            printer.text(line + "\n")
        if styled:
            printer.set(align=Align.LEFT.value, bold=False, normal_textsize=True)
