"""Shared machinery for retailer-specific receipt text parsers.

Each retailer parser supplies a format detector and a handful of section
extractors; item-line tokenizing, price reconciliation, OCR cleanup and
minimal-field validation are shared here.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Protocol

from spendlens.domain.receipt import (
    ParseAttempt,
    ReceiptDocument,
    ReceiptLineItem,
    ReceiptParseResult,
    ReceiptWarning,
)
from spendlens.receipt.numbers import (
    ZERO,
    amounts_close,
    collapse_spaces,
    derive_unit_price,
    normalize_time,
    parse_eu_money,
    to_display_date,
    to_iso_date,
)

DecimalConvention = Literal["comma", "dot", "either"]
TextSource = Literal["pdf", "ocr"]

MONEY_PATTERNS: dict[DecimalConvention, re.Pattern[str]] = {
    "comma": re.compile(r"^\d{1,6},\d{2}$"),
    "dot": re.compile(r"^\d{1,6}\.\d{2}$"),
    "either": re.compile(r"^\d{1,6}[.,]\d{2}$"),
}

# Item sum must be within 5% of the printed total, or within 50 cents.
ITEM_SUM_RATIO = Decimal("0.05")
ITEM_SUM_FLOOR = Decimal("0.50")

_QUANTITY_TOKEN = re.compile(r"^\d{1,3}$")
_COLUMN_HEADER = re.compile(r"P\.?\s*Unit|^Importe$|^Descripci[oó]n", re.IGNORECASE)
# Second line of a weighed item, e.g. "0,818 kg 1,99 €/kg 1,63".
_WEIGHT_LINE = re.compile(r"^\d+[.,]\d+\s*kg\b.*?(\d{1,6}[.,]\d{2})\s*€?$", re.IGNORECASE)


class ReceiptTextParser(Protocol):
    """Contract implemented by every retailer parser."""

    parser_id: str
    store_name: str

    def can_parse(self, text: str | None) -> bool: ...

    def parse(self, text: str | None) -> ReceiptParseResult: ...

    def normalize_ocr_text(self, text: str) -> str: ...

    def has_minimal_fields(self, document: ReceiptDocument) -> bool: ...


@dataclass(frozen=True)
class ItemLineParts:
    """Tokenized item line: quantity, description and trailing prices."""

    quantity: int
    has_quantity: bool
    description: str
    prices: tuple[Decimal, ...]


def split_item_line(line: str, money_pattern: re.Pattern[str]) -> ItemLineParts:
    """Split an item line into quantity, description and up to two prices.

    Only whole tokens matching ``money_pattern`` at the end of the line are
    prices, so sizes inside the description (``2L``, ``0,33L``) stay put.
    """
    tokens = line.split()
    if tokens and tokens[-1] == "€":
        tokens.pop()

    quantity = 1
    has_quantity = False
    if len(tokens) >= 2 and _QUANTITY_TOKEN.match(tokens[0]):
        quantity = int(tokens[0]) or 1
        has_quantity = True
        tokens = tokens[1:]

    prices: list[Decimal] = []
    while len(prices) < 2 and len(tokens) > 1:
        candidate = tokens[-1].rstrip("€")
        if not money_pattern.match(candidate):
            break
        prices.insert(0, parse_eu_money(candidate))
        tokens.pop()

    return ItemLineParts(
        quantity=quantity,
        has_quantity=has_quantity,
        description=" ".join(tokens),
        prices=tuple(prices),
    )


def reconcile_prices(quantity: int, prices: Sequence[Decimal]) -> tuple[Decimal, Decimal, bool] | None:
    """Decide which printed price is the unit price and which the line total.

    Returns ``(price_per_unit, total_price, unit_price_derived)``.
    """
    if not prices:
        return None
    if len(prices) == 1:
        total = prices[0]
        return derive_unit_price(total, quantity), total, quantity > 1

    first, last = prices[-2], prices[-1]
    if amounts_close(first * quantity, last):
        return first, last, False
    if amounts_close(last * quantity, first):
        return last, first, False
    if quantity == 1:
        return last, last, False
    return derive_unit_price(last, quantity), last, True


def extract_items(
    lines: Iterable[tuple[int, str]],
    money_pattern: re.Pattern[str],
) -> tuple[tuple[ReceiptLineItem, ...], tuple[ReceiptWarning, ...]]:
    """Parse the item section of a receipt.

    Lines that start with a quantity but carry no valid price are returned
    as warnings unless the next line supplies a weighed price for them.
    """
    items: list[ReceiptLineItem] = []
    warnings: list[ReceiptWarning] = []
    pending: tuple[int, str, ItemLineParts] | None = None

    def flush_pending() -> None:
        nonlocal pending
        if pending is not None:
            number, raw, _ = pending
            warnings.append(ReceiptWarning(message="Item line without a price", line=raw, line_number=number))
            pending = None

    for number, line in lines:
        if not line or _COLUMN_HEADER.search(line):
            continue

        weight_match = _WEIGHT_LINE.match(line)
        if weight_match:
            if pending is not None:
                total = parse_eu_money(weight_match.group(1))
                items.append(
                    ReceiptLineItem(
                        description=pending[2].description,
                        quantity=1,
                        price_per_unit=total,
                        total_price=total,
                    )
                )
                pending = None
            continue

        flush_pending()
        parts = split_item_line(line, money_pattern)
        if not parts.prices:
            if parts.has_quantity and parts.description:
                pending = (number, line, parts)
            continue
        if not re.search(r"[^\W\d_]", parts.description):
            warnings.append(ReceiptWarning(message="Item line without a description", line=line, line_number=number))
            continue

        reconciled = reconcile_prices(parts.quantity, parts.prices)
        assert reconciled is not None
        unit_price, total_price, derived = reconciled
        items.append(
            ReceiptLineItem(
                description=parts.description,
                quantity=parts.quantity,
                price_per_unit=unit_price,
                total_price=total_price,
                unit_price_derived=derived,
            )
        )

    flush_pending()
    return tuple(items), tuple(warnings)


def normalize_ocr_text(text: str) -> str:
    """Conservative cleanup of OCR output.

    Only touches numeric contexts: letter O inside numbers, a leading ``l``
    quantity, and spaces injected around decimal separators.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"(?<=\d)O(?=[\d.,])", "0", text)
    text = re.sub(r"(?<![^\s(])O(?=\d*[.,]\d{2}\b)", "0", text)
    text = re.sub(r"^l\s+", "1 ", text, flags=re.MULTILINE)
    text = re.sub(r"(\d)\s*([.,])\s+(\d{2})\b", r"\1\2\3", text)
    text = re.sub(r"(\d)\s+([.,])(\d{2})\b", r"\1\2\3", text)
    return "\n".join(line.strip() for line in text.split("\n"))


def numbered_lines(text: str) -> list[tuple[int, str]]:
    """Split text into ``(1-based line number, collapsed line)`` pairs."""
    return [(index, collapse_spaces(line)) for index, line in enumerate(text.splitlines(), start=1)]


def items_total_matches(
    document: ReceiptDocument,
    ratio: Decimal = ITEM_SUM_RATIO,
    floor: Decimal = ITEM_SUM_FLOOR,
) -> bool:
    difference = abs(document.items_total - document.total_amount)
    return difference <= max(document.total_amount * ratio, floor)


class SectionedReceiptParser:
    """Template for receipts laid out as header, item section, totals and VAT table.

    Subclasses implement the detector and the section extractors.
    """

    parser_id: str = ""
    store_name: str = ""
    decimal_convention: DecimalConvention = "either"
    currency: str = "EUR"
    item_sum_ratio: Decimal = ITEM_SUM_RATIO
    item_sum_floor: Decimal = ITEM_SUM_FLOOR

    @property
    def money_pattern(self) -> re.Pattern[str]:
        return MONEY_PATTERNS[self.decimal_convention]

    def can_parse(self, text: str | None) -> bool:
        raise NotImplementedError

    def extract_store_name(self, text: str) -> str | None:
        raise NotImplementedError

    def extract_date_time(self, text: str) -> tuple[str | None, str | None]:
        """Return ``(iso_date, HH:MM:SS)``."""
        raise NotImplementedError

    def extract_total(self, text: str) -> Decimal:
        raise NotImplementedError

    def extract_taxes(self, lines: Sequence[tuple[int, str]]) -> Decimal:
        raise NotImplementedError

    def item_section(self, lines: Sequence[tuple[int, str]]) -> list[tuple[int, str]]:
        raise NotImplementedError

    def extract_line_items(
        self, lines: Sequence[tuple[int, str]]
    ) -> tuple[tuple[ReceiptLineItem, ...], tuple[ReceiptWarning, ...]]:
        return extract_items(self.item_section(lines), self.money_pattern)

    def normalize_ocr_text(self, text: str) -> str:
        return normalize_ocr_text(text)

    def parse(self, text: str | None) -> ReceiptParseResult:
        """Extract a receipt document from text. Missing fields stay at defaults."""
        raw_text = text if isinstance(text, str) else ""
        lines = numbered_lines(raw_text)

        receipt_date_iso, receipt_time = self.extract_date_time(raw_text)
        if receipt_date_iso is None:
            receipt_time = None
        items, warnings = self.extract_line_items(lines)

        document = ReceiptDocument(
            store_name=self.extract_store_name(raw_text),
            receipt_date_iso=receipt_date_iso,
            receipt_date=to_display_date(receipt_date_iso),
            receipt_time=receipt_time,
            currency=self.currency,
            total_amount=self.extract_total(raw_text),
            taxes_total_cuota=self.extract_taxes(lines),
            items=items,
            raw_text=raw_text,
            warnings=warnings,
        )
        return ReceiptParseResult(extracted=document, raw_text=raw_text)

    def has_minimal_fields(self, document: ReceiptDocument) -> bool:
        """True when the document looks like a complete, consistent parse."""
        if document.store_name != self.store_name:
            return False
        if not document.receipt_date_iso:
            return False
        if document.total_amount <= ZERO:
            return False
        if not document.items:
            return False
        return items_total_matches(document, self.item_sum_ratio, self.item_sum_floor)


def date_time_from_match(
    day: str, month: str, year: str, hour: str, minute: str, second: str | None
) -> tuple[str | None, str | None]:
    """Build ``(iso_date, HH:MM:SS)`` from regex groups of a date-time stamp."""
    iso_date = to_iso_date(f"{day}/{month}/{year}")
    clock = f"{hour}:{minute}:{second}" if second else f"{hour}:{minute}"
    return iso_date, normalize_time(clock)


def try_parse_from_text(parser: ReceiptTextParser, text: str | None, source: TextSource = "pdf") -> ParseAttempt:
    """Parse with ``parser`` and validate the result.

    OCR text is normalized first. ``ok`` is False when the minimal fields
    are missing; the extracted document is still returned.
    """
    if source not in ("pdf", "ocr"):
        raise ValueError(f"Unknown text source: {source!r}")
    working_text = text if isinstance(text, str) else ""
    if source == "ocr":
        working_text = parser.normalize_ocr_text(working_text)

    result = parser.parse(working_text)
    return ParseAttempt(
        parser_id=parser.parser_id,
        extracted=result.extracted,
        raw_text=result.raw_text,
        ok=parser.has_minimal_fields(result.extracted),
    )
