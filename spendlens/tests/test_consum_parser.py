from collections.abc import Callable
from decimal import Decimal

from spendlens.receipt.parsers import consum
from spendlens.receipt.parsers.base import try_parse_from_text


def test_consum_receipt(fixture_text: Callable[[str], str]) -> None:
    text = fixture_text("consum.txt")
    assert consum.PARSER.can_parse(text)

    attempt = try_parse_from_text(consum.PARSER, text)
    assert attempt.ok is True
    receipt = attempt.extracted
    assert receipt is not None
    assert receipt.store_name == "CONSUM, S.COOP.V."
    assert receipt.receipt_date_iso == "2026-01-07"
    assert receipt.receipt_date == "07-01-2026"
    assert receipt.receipt_time == "11:20:00"
    assert receipt.total_amount == Decimal("7.07")
    assert receipt.taxes_total_cuota == Decimal("0.90")
    assert len(receipt.items) == 4


def test_consum_items_keep_sizes_in_description(fixture_text: Callable[[str], str]) -> None:
    items = consum.PARSER.parse(fixture_text("consum.txt")).extracted.items
    red_bull = items[1]
    assert red_bull.description == "RED BULL SANDIA 0,2"
    assert red_bull.quantity == 2
    assert red_bull.price_per_unit == Decimal("1.59")
    assert red_bull.total_price == Decimal("3.18")
    assert [item.description for item in items] == [
        "PASTEL CREMA 3U",
        "RED BULL SANDIA 0,2",
        "YOGUR GRIEGO",
        "PAN CHAPATA",
    ]


def test_consum_detector_needs_cooperative_identifier() -> None:
    assert not consum.PARSER.can_parse("CONSUM\nFACTURA SIMPLIFICADA\nTotal factura: 7,07")
    assert not consum.PARSER.can_parse("CONSUM, S.COOP.V.\nTotal factura: 7,07")
    assert not consum.PARSER.can_parse(None)
    assert consum.PARSER.can_parse("consum s.coop.v.\nfactura simplificada")


def test_consum_total_falls_back_to_importe_a_abonar() -> None:
    text = "CONSUM, S.COOP.V.\nFACTURA SIMPLIFICADA\nIMPORTE A ABONAR: 12,40\n"
    assert consum.PARSER.parse(text).extracted.total_amount == Decimal("12.40")
