"""Receipt command handlers used by the unified CLI."""

import argparse
import json
from pathlib import Path

from spendlens.runtime import get_logger

logger = get_logger(__name__)


def cmd_receipt(args: argparse.Namespace) -> int:
    """Parse a receipt text file and print the extracted document as JSON."""
    from spendlens.application.receipts.scan import ReceiptScanRequest, run_receipt_scan

    result = run_receipt_scan(
        ReceiptScanRequest(
            text_path=Path(args.file),
            source="ocr" if args.ocr else "pdf",
            parser_id=args.parser,
        )
    )

    if result.status == "file_not_found":
        logger.error("%s", result.error)
        print(f"Error: {result.error}")
        return 1

    if result.status == "unrecognized":
        print("No receipt parser recognized this text. Use an external extractor for this receipt.")
        return 1

    assert result.document is not None
    payload = {
        "parser": result.parser_id,
        "ok": result.status == "parsed",
        "receipt": result.document.to_dict(),
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))

    if result.status == "incomplete":
        print(f"Warning: {result.error}")
        return 1
    return 0
