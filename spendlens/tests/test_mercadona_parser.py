from collections.abc import Callable
from decimal import Decimal

import pytest

from spendlens.receipt.parsers import mercadona
from spendlens.receipt.parsers.base import try_parse_from_text

WEIGHED_RECEIPT = """MERCADONA, S.A. A-46103834
FACTURA SIMPLIFICADA
05/01/2026 10:15 OP: 998877
Descripción P. Unit Importe
1 PLATANO
0,818 kg 1,99 €/kg 1,63
2 PAN BARRA
1 LECHE 0,95
TOTAL (€) 2,58
"""


def test_pdf_receipt_header_fields(fixture_text: Callable[[str], str]) -> None:
    text = fixture_text("mercadona_pdf.txt")
    assert mercadona.can_parse(text)

    result = mercadona.parse(text)
    receipt = result.extracted
    assert receipt.store_name == "MERCADONA, S.A"
    assert receipt.receipt_date_iso == "2025-12-20"
    assert receipt.receipt_date == "20-12-2025"
    assert receipt.receipt_time == "19:32:00"
    assert receipt.currency == "EUR"
    assert receipt.total_amount == Decimal("61.36")
    assert receipt.taxes_total_cuota == Decimal("5.80")
    assert result.raw_text == text
    assert receipt.raw_text == text


def test_pdf_receipt_items(fixture_text: Callable[[str], str]) -> None:
    receipt = mercadona.parse(fixture_text("mercadona_pdf.txt")).extracted
    assert len(receipt.items) == 24
    assert receipt.warnings == ()

    cola = receipt.items[0]
    assert cola.description == "COLA ZERO 2L"
    assert cola.quantity == 4
    assert cola.price_per_unit == Decimal("0.80")
    assert cola.total_price == Decimal("3.20")
    assert cola.unit_price_derived is False
    assert cola.category is None

    burger = receipt.items[1]
    assert burger.description == "BURGER M POLLO 500GR"
    assert burger.quantity == 1
    assert burger.price_per_unit == Decimal("3.56")

    beer = next(item for item in receipt.items if item.description.startswith("CERVEZA"))
    assert beer.description == "CERVEZA SIN 0,33L"
    assert beer.quantity == 3
    assert beer.total_price == Decimal("1.95")


def test_pdf_receipt_item_sum_mismatch_is_not_ok(fixture_text: Callable[[str], str]) -> None:
    attempt = mercadona.try_parse_mercadona_from_text(fixture_text("mercadona_pdf.txt"), "pdf")
    assert attempt.parser_id == "mercadona"
    assert attempt.extracted is not None
    assert attempt.extracted.items_total == Decimal("65.91")
    assert attempt.ok is False


def test_ocr_receipt_parses_cleanly(fixture_text: Callable[[str], str]) -> None:
    attempt = mercadona.try_parse_mercadona_from_text(fixture_text("mercadona_ocr.txt"), "ocr")
    assert attempt.ok is True
    receipt = attempt.extracted
    assert receipt is not None
    assert receipt.store_name == "MERCADONA, S.A"
    assert receipt.receipt_date_iso == "2025-12-20"
    assert receipt.receipt_date == "20-12-2025"
    assert receipt.receipt_time == "19:32:00"
    assert receipt.total_amount == Decimal("21.70")
    assert receipt.taxes_total_cuota == Decimal("2.25")

    cola = receipt.items[0]
    assert (cola.description, cola.quantity, cola.price_per_unit, cola.total_price) == (
        "COLA ZERO 2L",
        4,
        Decimal("0.80"),
        Decimal("3.20"),
    )
    burger = receipt.items[1]
    assert burger.quantity == 1
    assert burger.total_price == Decimal("3.56")


def test_severe_ocr_receipt(fixture_text: Callable[[str], str]) -> None:
    attempt = try_parse_from_text(mercadona.PARSER, fixture_text("mercadona_ocr_severe.txt"), "ocr")
    assert attempt.ok is True
    receipt = attempt.extracted
    assert receipt is not None
    assert receipt.store_name == "MERCADONA, S.A"
    assert receipt.total_amount == Decimal("8.66")
    assert receipt.taxes_total_cuota == Decimal("0.92")

    burger = next(item for item in receipt.items if "BURGER" in item.description)
    assert burger.description == "BURGER M POLLO 500GR"
    assert burger.quantity == 1


@pytest.mark.parametrize(
    "text",
    [
        None,
        "",
        "   ",
        "MERCADONA",
        "Compra en MERCADONA por 10,00",
        "FACTURA SIMPLIFICADA\nTOTAL (€) 5,00",
    ],
)
def test_detector_rejects_incomplete_fingerprints(text: str | None) -> None:
    assert mercadona.can_parse(text) is False


@pytest.mark.parametrize(
    "text",
    [
        "MERCADONA, S.A.\nFACTURA SIMPLIFICADA",
        "mercadona s.a.\nfactura simplificada",
        "MERCADONA\nIVA BASEIMPONIBLE CUOTA",
        "MERCADONA\nIVA BASE IMPONIBLE CUOTA",
    ],
)
def test_detector_accepts_brand_with_fingerprint(text: str) -> None:
    assert mercadona.can_parse(text) is True


def test_consum_receipt_is_not_mercadona(fixture_text: Callable[[str], str]) -> None:
    assert mercadona.can_parse(fixture_text("consum.txt")) is False


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("COLA  ZERO \t 2L", "COLA ZERO 2L"),
        ("TOTAL (E) 21,70", "TOTAL (€) 21,70"),
        ("Importe: 21,70 EUR", "Importe: 21,70 €"),
        ("1 ACEITE 1O,50", "1 ACEITE 10,50"),
        ("l BURGER M POLLO", "1 BURGER M POLLO"),
        ("2 LECHE 0, 80 1,60", "2 LECHE 0,80 1,60"),
        ("line one\r\nline two", "line one\nline two"),
    ],
)
def test_normalize_ocr_text(raw: str, expected: str) -> None:
    assert mercadona.PARSER.normalize_ocr_text(raw) == expected


def test_leading_l_is_only_a_quantity_under_ocr() -> None:
    text = "MERCADONA, S.A.\nFACTURA SIMPLIFICADA\nl PRODUCTO 5,00\nTOTAL (€) 5,00\n"
    ocr = try_parse_from_text(mercadona.PARSER, text, "ocr").extracted
    pdf = try_parse_from_text(mercadona.PARSER, text, "pdf").extracted
    assert ocr is not None and pdf is not None
    assert ocr.items[0].description == "PRODUCTO"
    assert ocr.items[0].quantity == 1
    assert pdf.items[0].description == "l PRODUCTO"


def test_weighed_item_and_missing_price_warning() -> None:
    receipt = mercadona.parse(WEIGHED_RECEIPT).extracted
    assert [item.description for item in receipt.items] == ["PLATANO", "LECHE"]

    banana = receipt.items[0]
    assert banana.quantity == 1
    assert banana.price_per_unit == Decimal("1.63")
    assert banana.total_price == Decimal("1.63")

    assert len(receipt.warnings) == 1
    warning = receipt.warnings[0]
    assert warning.message == "Item line without a price"
    assert warning.line == "2 PAN BARRA"
    assert warning.line_number == 7


def test_single_price_with_quantity_derives_unit_price() -> None:
    text = "MERCADONA, S.A.\nFACTURA SIMPLIFICADA\n3 PACK AGUA 2,00\nTOTAL (€) 2,00\n"
    item = mercadona.parse(text).extracted.items[0]
    assert item.quantity == 3
    assert item.total_price == Decimal("2.00")
    assert item.unit_price_derived is True
    assert abs(item.price_per_unit * item.quantity - item.total_price) <= Decimal("0.01")


def test_items_without_column_header_are_scanned_from_the_top() -> None:
    text = "MERCADONA, S.A.\nFACTURA SIMPLIFICADA\n2 LECHE ENTERA 1L 0,95 1,90\nTOTAL (€) 1,90\n"
    items = mercadona.parse(text).extracted.items
    assert len(items) == 1
    assert items[0].price_per_unit == Decimal("0.95")


def test_total_falls_back_to_importe_line() -> None:
    text = "MERCADONA, S.A.\nFACTURA SIMPLIFICADA\n1 PAN 0,95\nImporte: 0,95 € Forma de pago: TARJETA\n"
    assert mercadona.parse(text).extracted.total_amount == Decimal("0.95")


def test_taxes_fall_back_to_vat_total_row() -> None:
    text = "MERCADONA, S.A.\nIVA BASE IMPONIBLE CUOTA\nTOTAL 9,09 0,91\nImporte: 10,00 €\n"
    assert mercadona.parse(text).extracted.taxes_total_cuota == Decimal("0.91")


def test_empty_text_yields_empty_document() -> None:
    result = mercadona.parse("")
    receipt = result.extracted
    assert result.raw_text == ""
    assert receipt.store_name is None
    assert receipt.receipt_date_iso is None
    assert receipt.receipt_date is None
    assert receipt.receipt_time is None
    assert receipt.total_amount == Decimal("0.00")
    assert receipt.items == ()

    assert mercadona.parse(None).raw_text == ""


def test_missing_date_means_no_time() -> None:
    text = "MERCADONA, S.A.\nFACTURA SIMPLIFICADA\n1 PAN 0,95\nTOTAL (€) 0,95\n"
    attempt = mercadona.try_parse_mercadona_from_text(text)
    assert attempt.extracted is not None
    assert attempt.extracted.receipt_time is None
    assert attempt.ok is False


def test_out_of_range_time_keeps_date() -> None:
    text = "MERCADONA, S.A.\nFACTURA SIMPLIFICADA\n20/12/2025 25:99\n1 PAN 0,95\nTOTAL (€) 0,95\n"
    receipt = mercadona.parse(text).extracted
    assert receipt.receipt_date_iso == "2025-12-20"
    assert receipt.receipt_date == "20-12-2025"
    assert receipt.receipt_time is None


def test_unknown_source_raises() -> None:
    with pytest.raises(ValueError):
        mercadona.try_parse_mercadona_from_text("MERCADONA", "scan")  # type: ignore[arg-type]


def test_document_to_dict(fixture_text: Callable[[str], str]) -> None:
    payload = mercadona.parse(fixture_text("mercadona_ocr.txt")).extracted.to_dict()
    assert payload["total_amount"] == 21.7
    assert payload["items"][0]["quantity"] == 4
    assert payload["warnings"] == []
