"""Data models for parsed receipt text."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class ReceiptLineItem:
    """A single purchased line on a receipt."""

    description: str
    quantity: int
    price_per_unit: Decimal
    # Authoritative line total as printed on the receipt.
    total_price: Decimal
    unit_price_derived: bool = False
    category: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "price_per_unit": float(self.price_per_unit),
            "total_price": float(self.total_price),
            "unit_price_derived": self.unit_price_derived,
            "category": self.category,
        }


@dataclass(frozen=True)
class ReceiptWarning:
    """Item-section line that looked like an item but could not be parsed."""

    message: str
    line: str
    line_number: int


@dataclass(frozen=True)
class ReceiptDocument:
    """Structured receipt extracted from PDF or OCR text.

    ``receipt_date_iso`` and ``receipt_date`` are set together or not at all.
    ``receipt_time`` is only set alongside a date, and stays None when the
    receipt has no readable time stamp (out-of-range clock, or a layout that
    prints only the date).
    """

    store_name: str | None = None
    receipt_date_iso: str | None = None  # YYYY-MM-DD
    receipt_date: str | None = None  # DD-MM-YYYY
    receipt_time: str | None = None  # HH:MM:SS
    currency: str = "EUR"
    total_amount: Decimal = Decimal("0.00")
    taxes_total_cuota: Decimal = Decimal("0.00")
    items: tuple[ReceiptLineItem, ...] = ()
    raw_text: str = ""
    warnings: tuple[ReceiptWarning, ...] = ()

    @property
    def items_total(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal("0.00"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "store_name": self.store_name,
            "receipt_date_iso": self.receipt_date_iso,
            "receipt_date": self.receipt_date,
            "receipt_time": self.receipt_time,
            "currency": self.currency,
            "total_amount": float(self.total_amount),
            "taxes_total_cuota": float(self.taxes_total_cuota),
            "items": [item.to_dict() for item in self.items],
            "warnings": [
                {"message": w.message, "line": w.line, "line_number": w.line_number} for w in self.warnings
            ],
        }


@dataclass(frozen=True)
class ReceiptParseResult:
    """Parser output: the extracted document plus the verbatim input text."""

    extracted: ReceiptDocument
    raw_text: str


@dataclass(frozen=True)
class ParseAttempt:
    """Parse plus validation outcome for a single parser."""

    parser_id: str
    extracted: ReceiptDocument | None
    raw_text: str
    ok: bool
