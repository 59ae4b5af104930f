"""Dia supermarket receipt parser.

Dia issues two layouts:

* Spanish "factura simplificada": one item per line with code, description,
  units, net unit price, discount, VAT rate, VAT cuota and net line total,
  all as five-decimal euro amounts (``0,12397 €``). The time is only encoded
  in the trailing ``Ticket único`` identifier.
* English "simplified invoice": ``€``-prefixed prices, ``N ud`` quantities,
  a VAT letter per line and ``-€`` discount lines.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from spendlens.domain.receipt import ReceiptLineItem, ReceiptWarning
from spendlens.receipt.numbers import (
    CENT,
    ZERO,
    amounts_close,
    derive_unit_price,
    normalize_time,
    parse_eu_decimal,
    parse_eu_money,
    to_iso_date,
)
from spendlens.receipt.parsers.base import SectionedReceiptParser, date_time_from_match, normalize_ocr_text

DiaLayout = Literal["spanish", "english"]

_MONEY = r"(\d{1,6}[.,]\d{2})"
_LEGAL_NAME = re.compile(r"DIA\s+RETAIL\s+ESPA[ÑN]A[,.]?\s*S\.?A\.?U?\.?|DIA\s+RETAIL", re.IGNORECASE)
_ENGLISH_MARKERS = ("SIMPLIFIED INVOICE", "VAT BREAKDOWN", "PRODUCTS SOLD BY DIA")
_SPANISH_MARKERS = ("FACTURA SIMPLIFICADA", "DESGLOSE DE IVA", "FECHA FACTURA")
_SPANISH_LAYOUT_MARKERS = ("FECHA FACTURA SIMPLIFICADA", "DESGLOSE DE IVA", "TOTAL BASE IMPONIBLE")

_SPANISH_DATE = re.compile(r"Fecha\s+factura\s+simplificada\s*:\s*(\d{1,2}/\d{1,2}/\d{4})", re.IGNORECASE)
# "Ticket único: ES-01032-03-00196912-20260117-105136" ends in HHMMSS.
_TICKET_TIME = re.compile(r"ticket\s+[úu]nico\s*:\s*\S+-(\d{2})(\d{2})(\d{2})\s*$", re.IGNORECASE | re.MULTILINE)
_HEADER_DATE_TIME = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?")
_FECHA = re.compile(r"FECHA\s*:\s*(\d{1,2}/\d{1,2}/\d{4})", re.IGNORECASE)
_HORA = re.compile(r"HORA\s*:\s*(\d{1,2}:\d{2}(?::\d{2})?)", re.IGNORECASE)

_TOTAL_PATTERNS = (
    re.compile(r"Total\s+base\s+imponible\s+m[áa]s\s+IVA\s+" + _MONEY + r"\s*€", re.IGNORECASE),
    re.compile(r"Total\s+to\s+pay[─\-\s]*€?\s*" + _MONEY, re.IGNORECASE),
    re.compile(r"Total\s+sale\s+Day[─\-\s]*€?\s*" + _MONEY, re.IGNORECASE),
    re.compile(r"IMPORTE\s*:\s*" + _MONEY, re.IGNORECASE),
)

_TOTAL_CUOTAS = re.compile(r"Total\s+cuotas\s+de\s+IVA\s+" + _MONEY + r"\s*€", re.IGNORECASE)
_SPANISH_VAT_ROW = re.compile(r"(\d+)%\s+" + _MONEY + r"\s*€?\s+" + _MONEY + r"\s*€")
_VAT_TABLE_END = ("VAT INCLUDED", "TOTAL BASE IMPONIBLE", "DESCUENTOS APLICADOS")

_EURO_SUFFIXED = re.compile(r"(\d{1,6}[.,]\d{2,5})\s*€")
_EURO_PREFIXED = re.compile(r"€\s*(\d{1,6}[.,]\d{2})(?!\d)")
_SPANISH_ITEMS_HEADER = re.compile(r"c[óo]digo.*descripci[óo]n|pvp.*total\s+sin\s+iva", re.IGNORECASE)
_ARTICLE_CODE = re.compile(r"^(\d{5,6})\s+")
_UNITS = re.compile(r"(\d+)\s*unid", re.IGNORECASE)
_UD = re.compile(r"(\d+)\s*ud\b", re.IGNORECASE)
_SPANISH_ITEMS_END = re.compile(
    r"desglose\s+de\s+iva|total\s+base\s+imponible|descuentos\s+aplicados|sociedad\s+inscrita", re.IGNORECASE
)
_DISCOUNTS_START = re.compile(r"descuentos\s+aplicados\s+a\s+pvp", re.IGNORECASE)
_SPANISH_DISCOUNT = re.compile(r"^([A-Z][A-Z\s/]+?)\s+" + _MONEY + r"\s*€", re.IGNORECASE)
_ENGLISH_ITEMS_END = re.compile(r"total\s+sale\s+day|vat\s+breakdown|payment\s+method", re.IGNORECASE)
_ENGLISH_DISCOUNT = re.compile(r"^(.+?)\s+-€\s*" + _MONEY + r"(?:\s+[A-C])?$")


def detect_layout(text: str) -> DiaLayout:
    upper = text.upper()
    if any(marker in upper for marker in _SPANISH_LAYOUT_MARKERS):
        return "spanish"
    return "english"


def _discount_item(description: str, amount: Decimal) -> ReceiptLineItem:
    return ReceiptLineItem(description=description, quantity=1, price_per_unit=-amount, total_price=-amount)


class DiaParser(SectionedReceiptParser):
    parser_id = "dia"
    store_name = "DIA RETAIL ESPAÑA, S.A.U."
    # Discounts and per-line rounding of five-decimal amounts drift further
    # than on other retailers.
    item_sum_ratio = Decimal("0.10")
    item_sum_floor = Decimal("1.00")

    def can_parse(self, text: str | None) -> bool:
        if not isinstance(text, str) or not text.strip():
            return False
        upper = text.upper()
        if "DIA RETAIL" not in upper:
            return False
        return any(marker in upper for marker in _ENGLISH_MARKERS + _SPANISH_MARKERS)

    def normalize_ocr_text(self, text: str) -> str:
        """Shared OCR cleanup plus Dia's O-for-zero and split-decimal fixes.

        Five-decimal amounts (``0,12397``) are not covered by the shared
        two-decimal rules.
        """
        text = normalize_ocr_text(text)
        text = re.sub(r"O(?=\d)", "0", text)
        return re.sub(r"(\d)\s*([.,])\s*(\d)", r"\1\2\3", text)

    def extract_store_name(self, text: str) -> str | None:
        return self.store_name if _LEGAL_NAME.search(text) else None

    def extract_date_time(self, text: str) -> tuple[str | None, str | None]:
        spanish = _SPANISH_DATE.search(text)
        if spanish:
            ticket = _TICKET_TIME.search(text)
            receipt_time = normalize_time(":".join(ticket.groups())) if ticket else None
            return to_iso_date(spanish.group(1)), receipt_time

        header = _HEADER_DATE_TIME.search(text)
        if header:
            return date_time_from_match(*header.groups())

        fecha = _FECHA.search(text)
        if fecha:
            hora = _HORA.search(text)
            return to_iso_date(fecha.group(1)), (normalize_time(hora.group(1)) if hora else None)
        return None, None

    def extract_total(self, text: str) -> Decimal:
        for pattern in _TOTAL_PATTERNS:
            match = pattern.search(text)
            if match:
                return parse_eu_money(match.group(1))
        return ZERO

    def extract_taxes(self, lines: Sequence[tuple[int, str]]) -> Decimal:
        for _, line in lines:
            direct = _TOTAL_CUOTAS.search(line)
            if direct:
                return parse_eu_money(direct.group(1))

        in_table = False
        total = ZERO
        for _, line in lines:
            upper = line.upper()
            if "VAT BREAKDOWN" in upper or "DESGLOSE DE IVA" in upper or ("% IVA" in upper and "CUOTA" in upper):
                in_table = True
                continue
            if not in_table:
                continue
            if any(marker in upper for marker in _VAT_TABLE_END):
                break
            spanish_row = _SPANISH_VAT_ROW.search(line)
            if spanish_row:
                total += parse_eu_money(spanish_row.group(3))
                continue
            # English rows: "A 4% €1,43 €0,06", the cuota is the last amount.
            amounts = _EURO_PREFIXED.findall(line)
            if len(amounts) >= 2:
                total += parse_eu_money(amounts[-1])
        return total

    def extract_line_items(
        self, lines: Sequence[tuple[int, str]]
    ) -> tuple[tuple[ReceiptLineItem, ...], tuple[ReceiptWarning, ...]]:
        text = "\n".join(line for _, line in lines)
        if detect_layout(text) == "spanish":
            return self._spanish_items(lines)
        return self._english_items(lines)

    def _spanish_items(
        self, lines: Sequence[tuple[int, str]]
    ) -> tuple[tuple[ReceiptLineItem, ...], tuple[ReceiptWarning, ...]]:
        items: list[ReceiptLineItem] = []
        warnings: list[ReceiptWarning] = []
        in_items = False
        in_discounts = False
        for number, line in lines:
            lower = line.lower()
            if _DISCOUNTS_START.search(line):
                in_items = False
                in_discounts = True
                continue
            if in_discounts:
                if "sociedad inscrita" in lower:
                    in_discounts = False
                    continue
                discount = _SPANISH_DISCOUNT.match(line)
                if discount and "descuentos" not in discount.group(1).lower():
                    items.append(_discount_item(discount.group(1).strip(), parse_eu_money(discount.group(2))))
                continue

            if _SPANISH_ITEMS_HEADER.search(line):
                in_items = True
                continue
            if not in_items:
                continue
            if _SPANISH_ITEMS_END.search(line):
                in_items = False
                continue
            if re.search(r"c[óo]digo|precio unit", lower):
                continue

            amounts = [amount for amount in map(parse_eu_decimal, _EURO_SUFFIXED.findall(line)) if amount is not None]
            if len(amounts) < 3:
                if amounts:
                    warnings.append(
                        ReceiptWarning(message="Item line without all price columns", line=line, line_number=number)
                    )
                continue

            units = _UNITS.search(line)
            quantity = int(units.group(1)) if units else 1
            code = _ARTICLE_CODE.match(line)
            rest_start = code.end() if code else 0
            rest_end = units.start() if units and units.start() >= rest_start else len(line)
            description = line[rest_start:rest_end].strip()
            if not description:
                warnings.append(
                    ReceiptWarning(message="Item line without a description", line=line, line_number=number)
                )
                continue

            # Net line total plus VAT cuota gives the price paid.
            net_total, cuota = amounts[-1], amounts[-2]
            total = (net_total + cuota).quantize(CENT, rounding=ROUND_HALF_UP)
            items.append(
                ReceiptLineItem(
                    description=description,
                    quantity=quantity,
                    price_per_unit=derive_unit_price(total, quantity),
                    total_price=total,
                    unit_price_derived=quantity > 1,
                )
            )
        return tuple(items), tuple(warnings)

    def _english_items(
        self, lines: Sequence[tuple[int, str]]
    ) -> tuple[tuple[ReceiptLineItem, ...], tuple[ReceiptWarning, ...]]:
        items: list[ReceiptLineItem] = []
        warnings: list[ReceiptWarning] = []
        in_items = False
        for number, line in lines:
            lower = line.lower()
            if "products sold by dia" in lower or ("description" in lower and "quantity" in lower):
                in_items = True
                continue
            if not in_items:
                continue
            if _ENGLISH_ITEMS_END.search(line):
                break

            discount = _ENGLISH_DISCOUNT.match(line)
            if discount:
                items.append(_discount_item(discount.group(1).strip(), parse_eu_money(discount.group(2))))
                continue

            prices = [parse_eu_money(value) for value in _EURO_PREFIXED.findall(line)]
            if not prices:
                continue
            units = _UD.search(line)
            quantity = int(units.group(1)) if units else 1
            description = line[: units.start() if units else line.index("€")].strip()
            if not description:
                warnings.append(
                    ReceiptWarning(message="Item line without a description", line=line, line_number=number)
                )
                continue

            if len(prices) >= 2:
                unit_price, total = prices[0], prices[1]
                derived = False
                if quantity > 1 and not amounts_close(unit_price * quantity, total):
                    total = prices[-1]
                    unit_price = derive_unit_price(total, quantity)
                    derived = True
            else:
                total = prices[0]
                unit_price = derive_unit_price(total, quantity)
                derived = quantity > 1
            items.append(
                ReceiptLineItem(
                    description=description,
                    quantity=quantity,
                    price_per_unit=unit_price,
                    total_price=total,
                    unit_price_derived=derived,
                )
            )
        return tuple(items), tuple(warnings)


PARSER = DiaParser()
