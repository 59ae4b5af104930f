"""Receipt text scan workflow orchestration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from spendlens.domain.receipt import ReceiptDocument
from spendlens.receipt.parsers import get_parser, select_parser
from spendlens.receipt.parsers.base import TextSource, try_parse_from_text
from spendlens.runtime import get_logger

logger = get_logger(__name__)

ScanStatus = Literal[
    "file_not_found",
    "unrecognized",
    "incomplete",
    "parsed",
]


@dataclass(frozen=True)
class ReceiptScanRequest:
    """Inputs for running receipt scan workflow."""

    text_path: Path
    source: TextSource = "pdf"
    # Skip detection and force a parser by id.
    parser_id: str | None = None


@dataclass(frozen=True)
class ReceiptScanResult:
    """Outcome from receipt scan workflow."""

    status: ScanStatus
    document: ReceiptDocument | None = None
    parser_id: str | None = None
    error: str | None = None


def run_receipt_scan(request: ReceiptScanRequest) -> ReceiptScanResult:
    """Run scan flow: read text -> detect retailer -> parse -> validate."""
    if not request.text_path.exists():
        return ReceiptScanResult(
            status="file_not_found",
            error=f"Receipt text file not found: {request.text_path}",
        )

    text = request.text_path.read_text(encoding="utf-8")
    parser = get_parser(request.parser_id) if request.parser_id else select_parser(text)
    if parser is None:
        logger.info("No receipt parser recognized %s; external extraction required", request.text_path.name)
        return ReceiptScanResult(
            status="unrecognized",
            error="No receipt parser recognized this text",
        )

    attempt = try_parse_from_text(parser, text, request.source)
    logger.debug(
        "Parser %s extracted %d items (total %s) from %s",
        parser.parser_id,
        len(attempt.extracted.items) if attempt.extracted else 0,
        attempt.extracted.total_amount if attempt.extracted else None,
        request.text_path.name,
    )
    if not attempt.ok:
        logger.warning("Receipt %s parsed by %s is missing required fields", request.text_path.name, parser.parser_id)
        return ReceiptScanResult(
            status="incomplete",
            document=attempt.extracted,
            parser_id=parser.parser_id,
            error="Parsed receipt failed validation (store, date, total or item sum)",
        )

    return ReceiptScanResult(
        status="parsed",
        document=attempt.extracted,
        parser_id=parser.parser_id,
    )
