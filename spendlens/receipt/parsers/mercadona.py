"""Mercadona "factura simplificada" receipt parser.

Layout (PDF text and OCR output share it):

    MERCADONA, S.A. A-46103834
    FACTURA SIMPLIFICADA
    20/12/2025 19:32 OP: 123456
    Descripción P. Unit Importe
    4 COLA ZERO 2L 0,80 3,20
    1 BURGER M POLLO 500GR 3,56
    TOTAL (€) 61,36
    IVA BASE IMPONIBLE CUOTA
    10% 45,80 4,58
    TOTAL 55,56 5,80
    Importe: 61,36 € Forma de pago: TARJETA
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal

from spendlens.domain.receipt import ParseAttempt, ReceiptParseResult
from spendlens.receipt.numbers import ZERO, parse_eu_money
from spendlens.receipt.parsers.base import (
    SectionedReceiptParser,
    TextSource,
    date_time_from_match,
    normalize_ocr_text,
    try_parse_from_text,
)

BRAND = "MERCADONA"
FINGERPRINTS = ("FACTURA SIMPLIFICADA", "IVA BASE IMPONIBLE", "IVA BASEIMPONIBLE")

_MONEY = r"(\d{1,6}[.,]\d{2})"
_LEGAL_NAME = re.compile(r"MERCADONA[,.]?\s*S\.?\s?A\b\.?", re.IGNORECASE)
_DATE_TIME = re.compile(
    r"(\d{1,2})\s*[/-]\s*(\d{1,2})\s*[/-]\s*(\d{2,4})\s+(\d{1,2})\s*:\s*(\d{2})(?:\s*:\s*(\d{2}))?"
)
_TOTAL_EUR = re.compile(r"TOTAL\s*\(\s*[€E]\s*\)\s*" + _MONEY, re.IGNORECASE)
_IMPORTE = re.compile(r"Importe\s*:\s*" + _MONEY, re.IGNORECASE)
_ITEMS_START = re.compile(r"^Descripci[oó]n", re.IGNORECASE)
_ITEMS_END = re.compile(r"^TOTAL\s*(\(\s*[€E]\s*\)|$)", re.IGNORECASE)
_VAT_HEADER = re.compile(r"IVA.*BASE\s*IMPONIBLE", re.IGNORECASE)
_VAT_ROW = re.compile(r"^\d{1,2}(?:[.,]\d+)?\s*%\s+" + _MONEY + r"\s+" + _MONEY + r"$")
_VAT_TOTAL = re.compile(r"^TOTAL\s+" + _MONEY + r"\s+" + _MONEY, re.IGNORECASE)
_VAT_END = re.compile(r"IMPORTE\s*:|FORMA DE PAGO", re.IGNORECASE)


class MercadonaParser(SectionedReceiptParser):
    parser_id = "mercadona"
    store_name = "MERCADONA, S.A"

    def can_parse(self, text: str | None) -> bool:
        """Brand plus at least one layout fingerprint; the brand alone is not enough."""
        if not isinstance(text, str) or not text.strip():
            return False
        upper = text.upper()
        return BRAND in upper and any(fingerprint in upper for fingerprint in FINGERPRINTS)

    def normalize_ocr_text(self, text: str) -> str:
        text = re.sub(r"TOTAL\s*\(\s*E\s*\)", "TOTAL (€)", text, flags=re.IGNORECASE)
        text = re.sub(r"(\d[.,]\d{2})\s*EUR\b", r"\1 €", text)
        return normalize_ocr_text(text)

    def extract_store_name(self, text: str) -> str | None:
        return self.store_name if _LEGAL_NAME.search(text) else None

    def extract_date_time(self, text: str) -> tuple[str | None, str | None]:
        match = _DATE_TIME.search(text)
        if not match:
            return None, None
        return date_time_from_match(*match.groups())

    def extract_total(self, text: str) -> Decimal:
        match = _TOTAL_EUR.search(text) or _IMPORTE.search(text)
        return parse_eu_money(match.group(1)) if match else ZERO

    def extract_taxes(self, lines: Sequence[tuple[int, str]]) -> Decimal:
        """Sum the cuota column of the VAT table, falling back to its TOTAL row."""
        in_table = False
        rows_total = ZERO
        found_rows = False
        for _, line in lines:
            if not in_table:
                in_table = bool(_VAT_HEADER.search(line))
                continue
            row = _VAT_ROW.match(line)
            if row:
                rows_total += parse_eu_money(row.group(2))
                found_rows = True
                continue
            total_row = _VAT_TOTAL.match(line)
            if total_row:
                return rows_total if found_rows else parse_eu_money(total_row.group(2))
            if _VAT_END.search(line):
                break
        return rows_total

    def item_section(self, lines: Sequence[tuple[int, str]]) -> list[tuple[int, str]]:
        start = next((i for i, (_, line) in enumerate(lines) if _ITEMS_START.match(line.replace(" ", ""))), None)
        section: list[tuple[int, str]] = []
        for number, line in lines[(start + 1 if start is not None else 0) :]:
            if _ITEMS_END.match(line):
                break
            section.append((number, line))
        return section


PARSER = MercadonaParser()


def can_parse(text: str | None) -> bool:
    return PARSER.can_parse(text)


def parse(text: str | None) -> ReceiptParseResult:
    return PARSER.parse(text)


def try_parse_mercadona_from_text(text: str | None, source: TextSource = "pdf") -> ParseAttempt:
    return try_parse_from_text(PARSER, text, source)
