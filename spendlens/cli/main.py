#!/usr/bin/env python3

import argparse
import logging
from collections.abc import Sequence


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    from spendlens.receipt.parsers import RECEIPT_PARSERS

    parser = argparse.ArgumentParser(
        description="spendlens receipt and statement utilities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  receipt <file> [--ocr]       Parse receipt text (PDF text or OCR output)
  sanitize <text>              Mask card numbers, IBANs, phones and references
  classify <text>...           Rule-classify bank descriptions
  statements <csv>             Enrich a statement CSV's descriptions

Options:
  -v, --verbose                Debug logging (same as SPENDLENS_LOG_LEVEL=DEBUG)

Configuration:
  config/description_rules.toml       = extra description rules
  config/description_preferences.toml = per-description label overrides
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    receipt_parser = subparsers.add_parser("receipt", help="Parse a receipt text file")
    receipt_parser.add_argument("file", help="Path to a text file with the receipt contents")
    receipt_parser.add_argument("--ocr", action="store_true", help="Text comes from OCR (apply OCR cleanup)")
    receipt_parser.add_argument(
        "--parser",
        choices=[p.parser_id for p in RECEIPT_PARSERS],
        default=None,
        help="Force a retailer parser instead of auto-detection",
    )

    sanitize_parser = subparsers.add_parser("sanitize", help="Mask PII in a description")
    sanitize_parser.add_argument("text", nargs="+", help="Description text")
    sanitize_parser.add_argument("--tokens", action="store_true", help="Also print merchant tokens")

    classify_parser = subparsers.add_parser("classify", help="Rule-classify descriptions")
    classify_parser.add_argument("descriptions", nargs="+", help="One or more descriptions")

    statements_parser = subparsers.add_parser("statements", help="Enrich a statement CSV")
    statements_parser.add_argument("csv_file", help="Statement CSV file")
    statements_parser.add_argument("--column", default="description", help="Description column (default: description)")
    statements_parser.add_argument("--fallback-url", default=None, help="Fallback simplifier service URL")
    statements_parser.add_argument("--output", default=None, help="Output CSV (default: <name>.enriched.csv)")

    args = parser.parse_args(argv)

    if args.verbose:
        from spendlens.runtime import set_log_level

        set_log_level(logging.DEBUG)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "receipt":
        from spendlens.cli.receipt import cmd_receipt

        return cmd_receipt(args)
    elif args.command == "sanitize":
        from spendlens.cli.description import cmd_sanitize

        return cmd_sanitize(args)
    elif args.command == "classify":
        from spendlens.cli.description import cmd_classify

        return cmd_classify(args)
    elif args.command == "statements":
        from spendlens.cli.description import cmd_statements

        return cmd_statements(args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
