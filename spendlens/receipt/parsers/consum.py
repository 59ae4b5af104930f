"""Consum cooperative receipt parser.

Consum prints dotted dates (``07.01.2026 11:20``), a dashed rule above the
items and a four-column VAT table (base, rate, cuota, importe) after the
"FACTURA SIMPLIFICADA" banner.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal

from spendlens.receipt.numbers import ZERO, parse_eu_money
from spendlens.receipt.parsers.base import SectionedReceiptParser, date_time_from_match

_MONEY = r"(\d{1,6}[.,]\d{2})"
_LEGAL_NAME = re.compile(r"CONSUM[,.]?\s*S\.?\s?COOP\.?V?\.?", re.IGNORECASE)
_DATE_TIME = re.compile(r"(\d{1,2})\.(\d{1,2})\.(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?")
_TOTAL_FACTURA = re.compile(r"Total\s+factura\s*:\s*" + _MONEY, re.IGNORECASE)
_IMPORTE_ABONAR = re.compile(r"IMPORTE\s+A\s+ABONAR\s*:?\s*" + _MONEY, re.IGNORECASE)
_RULE_LINE = re.compile(r"-{3,}")
_ITEMS_END = re.compile(r"^(total factura|importe a abonar)|socio-cliente", re.IGNORECASE)
_VAT_ROW = re.compile(r"^" + _MONEY + r"\s+(\d{1,3}[.,]\d{2})\s+" + _MONEY + r"\s+" + _MONEY + r"$")


class ConsumParser(SectionedReceiptParser):
    parser_id = "consum"
    store_name = "CONSUM, S.COOP.V."

    def can_parse(self, text: str | None) -> bool:
        if not isinstance(text, str) or not text.strip():
            return False
        upper = text.upper()
        has_identifier = "CONSUM, S.COOP" in upper or "CONSUM S.COOP" in upper
        return "CONSUM" in upper and "FACTURA SIMPLIFICADA" in upper and has_identifier

    def extract_store_name(self, text: str) -> str | None:
        return self.store_name if _LEGAL_NAME.search(text) else None

    def extract_date_time(self, text: str) -> tuple[str | None, str | None]:
        match = _DATE_TIME.search(text)
        if not match:
            return None, None
        return date_time_from_match(*match.groups())

    def extract_total(self, text: str) -> Decimal:
        match = _TOTAL_FACTURA.search(text) or _IMPORTE_ABONAR.search(text)
        return parse_eu_money(match.group(1)) if match else ZERO

    def extract_taxes(self, lines: Sequence[tuple[int, str]]) -> Decimal:
        in_table = False
        found_rows = False
        total = ZERO
        for _, line in lines:
            upper = line.upper()
            if not in_table:
                in_table = "BASE" in upper and "IVA" in upper and "CUOTA" in upper
                continue
            row = _VAT_ROW.match(line)
            if row:
                total += parse_eu_money(row.group(3))
                found_rows = True
            elif found_rows:
                break
        return total

    def item_section(self, lines: Sequence[tuple[int, str]]) -> list[tuple[int, str]]:
        section: list[tuple[int, str]] = []
        started = False
        for number, line in lines:
            if _RULE_LINE.search(line):
                started = True
                continue
            if not started:
                continue
            if _ITEMS_END.search(line):
                break
            section.append((number, line))
        return section


PARSER = ConsumParser()
