from collections.abc import Callable
from decimal import Decimal

import pytest

from spendlens.receipt.parsers import dia
from spendlens.receipt.parsers.base import try_parse_from_text


def test_spanish_receipt(fixture_text: Callable[[str], str]) -> None:
    text = fixture_text("dia_es.txt")
    assert dia.PARSER.can_parse(text)
    assert dia.detect_layout(text) == "spanish"

    attempt = try_parse_from_text(dia.PARSER, text)
    assert attempt.ok is True
    receipt = attempt.extracted
    assert receipt.store_name == "DIA RETAIL ESPAÑA, S.A.U."
    assert receipt.receipt_date_iso == "2026-01-17"
    assert receipt.receipt_date == "17-01-2026"
    assert receipt.receipt_time == "10:51:36"
    assert receipt.total_amount == Decimal("9.29")
    assert receipt.taxes_total_cuota == Decimal("0.70")
    assert receipt.items_total == Decimal("9.29")


def test_spanish_items_add_cuota_to_net_total(fixture_text: Callable[[str], str]) -> None:
    items = dia.PARSER.parse(fixture_text("dia_es.txt")).extracted.items
    assert [(item.description, item.quantity, item.total_price) for item in items] == [
        ("BOLSA 50% RECICLADA", 1, Decimal("0.15")),
        ("LECHE SEMIDESNATADA DIA", 6, Decimal("4.80")),
        ("PAN DE MOLDE", 2, Decimal("2.60")),
        ("ACEITE GIRASOL 1L", 1, Decimal("2.24")),
        ("CUPON CLUB DIA", 1, Decimal("-0.50")),
    ]
    milk = items[1]
    assert milk.price_per_unit == Decimal("0.80")
    assert milk.unit_price_derived is True


def test_english_receipt(fixture_text: Callable[[str], str]) -> None:
    text = fixture_text("dia_en.txt")
    assert dia.PARSER.can_parse(text)
    assert dia.detect_layout(text) == "english"

    attempt = try_parse_from_text(dia.PARSER, text)
    assert attempt.ok is True
    receipt = attempt.extracted
    assert receipt.receipt_date_iso == "2026-01-17"
    assert receipt.receipt_time == "11:51:00"
    assert receipt.total_amount == Decimal("13.06")
    assert receipt.taxes_total_cuota == Decimal("1.61")


def test_english_items(fixture_text: Callable[[str], str]) -> None:
    items = dia.PARSER.parse(fixture_text("dia_en.txt")).extracted.items
    assert [item.description for item in items] == [
        "WHOLE MILK 1L",
        "BANANAS",
        "ORANGE JUICE",
        "CLUB DIA DISCOUNT",
        "CHOCOLATE",
    ]
    milk, _, juice, discount, chocolate = items
    assert (milk.quantity, milk.price_per_unit, milk.total_price) == (6, Decimal("0.89"), Decimal("5.34"))
    assert (juice.quantity, juice.price_per_unit, juice.total_price) == (2, Decimal("1.99"), Decimal("3.98"))
    assert discount.total_price == Decimal("-0.50")
    # Promotion price: the printed unit price does not multiply out to the total.
    assert chocolate.total_price == Decimal("2.75")
    assert chocolate.price_per_unit == Decimal("0.92")
    assert chocolate.unit_price_derived is True


def test_ocr_variant_matches_clean_text(fixture_text: Callable[[str], str]) -> None:
    clean = fixture_text("dia_es.txt")
    noisy = clean.replace("0,10000 €", "0,1O000 €").replace("0,02603 €", "0 ,02603 €")
    noisy = noisy.replace("Total base imponible más IVA 9,29", "Total  base imponible más IVA 9 ,29")

    expected = dia.PARSER.parse(clean).extracted
    attempt = try_parse_from_text(dia.PARSER, noisy, "ocr")
    assert attempt.ok is True
    assert attempt.extracted.items == expected.items
    assert attempt.extracted.total_amount == expected.total_amount


@pytest.mark.parametrize(
    "text",
    [
        None,
        "",
        "SUPERMERCADO DIA 1234",
        "DIA RETAIL ESPAÑA, S.A.U.\nTOTAL 3,00",
        "FACTURA SIMPLIFICADA\nDESGLOSE DE IVA",
    ],
)
def test_detector_rejects_incomplete_fingerprints(text: str | None) -> None:
    assert dia.PARSER.can_parse(text) is False


def test_taxes_from_spanish_vat_table() -> None:
    text = (
        "DIA RETAIL ESPAÑA, S.A.U.\n"
        "Desglose de IVA\n"
        "% IVA Base imponible Cuota IVA Total\n"
        "4% 7,12 € 0,28 € 7,40 €\n"
        "21% 1,98 € 0,42 € 2,40 €\n"
        "Total base imponible 9,10 €\n"
    )
    assert dia.PARSER.parse(text).extracted.taxes_total_cuota == Decimal("0.70")


def test_fecha_and_hora_fallback() -> None:
    text = "DIA RETAIL\nFACTURA SIMPLIFICADA\nFECHA: 03/02/2026 HORA: 9:05\nIMPORTE: 4,10\n"
    receipt = dia.PARSER.parse(text).extracted
    assert receipt.receipt_date_iso == "2026-02-03"
    assert receipt.receipt_time == "09:05:00"
    assert receipt.total_amount == Decimal("4.10")


def test_spanish_date_without_ticket_has_no_time() -> None:
    text = "DIA RETAIL ESPAÑA, S.A.U.\nFecha factura simplificada: 17/01/2026\n"
    receipt = dia.PARSER.parse(text).extracted
    assert receipt.receipt_date_iso == "2026-01-17"
    assert receipt.receipt_time is None


def test_item_sum_tolerance_is_wider_than_default(fixture_text: Callable[[str], str]) -> None:
    # Items sum to 9.29; a 10.20 total is off by 0.91, inside the 10% allowance.
    text = fixture_text("dia_es.txt").replace("más IVA 9,29 €", "más IVA 10,20 €")
    assert try_parse_from_text(dia.PARSER, text).ok is True

    text = fixture_text("dia_es.txt").replace("más IVA 9,29 €", "más IVA 10,40 €")
    assert try_parse_from_text(dia.PARSER, text).ok is False


def test_spanish_line_missing_price_columns_is_a_warning() -> None:
    text = (
        "DIA RETAIL ESPAÑA, S.A.U.\n"
        "Fecha factura simplificada: 17/01/2026\n"
        "Código Descripción Unid/Kg Precio Unit. sin IVA\n"
        "191604 BOLSA 50% RECICLADA 1 unid. 0,12397 €\n"
        "Desglose de IVA\n"
    )
    receipt = dia.PARSER.parse(text).extracted
    assert receipt.items == ()
    assert [(w.message, w.line_number) for w in receipt.warnings] == [("Item line without all price columns", 4)]
