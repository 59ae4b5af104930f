"""Retailer receipt text parsers and the ordered detector registry.

Parsers are tried in registry order; the first whose detector accepts the
text handles it. When none does, callers fall back to external extraction.
"""

from __future__ import annotations

from spendlens.domain.receipt import ParseAttempt
from spendlens.receipt.parsers import consum, dia, mercadona
from spendlens.receipt.parsers.base import ReceiptTextParser, TextSource, try_parse_from_text

RECEIPT_PARSERS: tuple[ReceiptTextParser, ...] = (
    mercadona.PARSER,
    consum.PARSER,
    dia.PARSER,
)


def select_parser(text: str | None) -> ReceiptTextParser | None:
    """Return the first registered parser whose detector accepts ``text``."""
    for parser in RECEIPT_PARSERS:
        if parser.can_parse(text):
            return parser
    return None


def get_parser(parser_id: str) -> ReceiptTextParser:
    for parser in RECEIPT_PARSERS:
        if parser.parser_id == parser_id:
            return parser
    known = ", ".join(p.parser_id for p in RECEIPT_PARSERS)
    raise KeyError(f"Unknown receipt parser {parser_id!r} (known: {known})")


def parse_receipt_text(text: str | None, source: TextSource = "pdf") -> ParseAttempt | None:
    """Detect the retailer and parse; None when no parser recognizes the text."""
    parser = select_parser(text)
    if parser is None:
        return None
    return try_parse_from_text(parser, text, source)


__all__ = [
    "RECEIPT_PARSERS",
    "ReceiptTextParser",
    "get_parser",
    "parse_receipt_text",
    "select_parser",
    "try_parse_from_text",
]
