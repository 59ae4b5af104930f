"""Description command handlers used by the unified CLI."""

import argparse
import json
from pathlib import Path

from spendlens.runtime import get_logger

logger = get_logger(__name__)


def cmd_sanitize(args: argparse.Namespace) -> int:
    from spendlens.description.sanitize import extract_merchant_tokens, sanitize_description

    sanitized = sanitize_description(" ".join(args.text))
    print(sanitized)
    if args.tokens:
        print(" ".join(extract_merchant_tokens(sanitized)))
    return 0


def cmd_classify(args: argparse.Namespace) -> int:
    """Sanitize and rule-classify each description, printing one JSON object per line."""
    from spendlens.description.classifier import rule_simplify_description
    from spendlens.description.sanitize import sanitize_description
    from spendlens.runtime import load_description_rule_table

    try:
        table = load_description_rule_table()
    except ValueError as exc:
        print(f"Invalid description rules: {exc}")
        return 1

    for description in args.descriptions:
        sanitized = sanitize_description(description)
        result = rule_simplify_description(sanitized, table)
        print(json.dumps({"description": description, "sanitized": sanitized, **result.to_dict()}, ensure_ascii=False))
    return 0


def cmd_statements(args: argparse.Namespace) -> int:
    """Enrich every description of a statement CSV and write the result CSV."""
    from spendlens.application.statements import enrich_descriptions, read_statement_descriptions, write_enriched_csv
    from spendlens.runtime import HttpFallbackSimplifier, load_description_preferences, load_description_rule_table

    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        print(f"Error: Statement CSV not found: {csv_path}")
        return 1

    try:
        descriptions = read_statement_descriptions(csv_path, column=args.column)
        table = load_description_rule_table()
        preferences = load_description_preferences()
    except ValueError as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}")
        return 1

    fallback = HttpFallbackSimplifier(args.fallback_url) if args.fallback_url else None
    result = enrich_descriptions(descriptions, rule_table=table, fallback=fallback, preferences=preferences)

    output_path = Path(args.output) if args.output else csv_path.with_name(f"{csv_path.stem}.enriched.csv")
    write_enriched_csv(result, output_path)

    print(f"Enriched {len(result.rows)} descriptions -> {output_path}")
    print(
        f"  preference: {result.count('preference')}  rules: {result.count('rules')}  "
        f"fallback: {result.count('fallback')}  unmatched: {result.count('unmatched')}"
    )
    if result.fallback_error:
        print(f"  fallback unavailable: {result.fallback_error}")
    return 0
