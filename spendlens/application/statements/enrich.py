"""Statement description enrichment workflow.

Each description goes through: sanitize -> user preference -> rule
classifier -> fallback simplifier (batched, only for rows still unmatched).
"""

from __future__ import annotations

import csv
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from spendlens.description.classifier import rule_simplify_description
from spendlens.description.rule_table import DescriptionRuleTable
from spendlens.description.sanitize import description_key, sanitize_description
from spendlens.domain.classification import NO_MATCH, ClassificationResult
from spendlens.runtime import FallbackServiceUnavailable, FallbackSimplifier, get_logger, load_description_rule_table

logger = get_logger(__name__)

RowSource = Literal["preference", "rules", "fallback", "unmatched"]

DEFAULT_MIN_CONFIDENCE = 0.75
PREFERENCE_CONFIDENCE = 1.0
PREFERENCE_RULE = "preference"


@dataclass(frozen=True)
class EnrichedDescription:
    """One statement row after enrichment."""

    index: int
    raw: str
    sanitized: str
    result: ClassificationResult
    source: RowSource

    @property
    def label(self) -> str:
        """Simplified label, or the sanitized text when nothing matched."""
        return self.result.simplified or self.sanitized


@dataclass(frozen=True)
class StatementEnrichmentResult:
    rows: tuple[EnrichedDescription, ...]
    fallback_error: str | None = None

    def count(self, source: RowSource) -> int:
        return sum(1 for row in self.rows if row.source == source)

    @property
    def rule_coverage(self) -> float:
        if not self.rows:
            return 0.0
        return self.count("rules") / len(self.rows)


def _preference_result(label: str) -> ClassificationResult:
    return ClassificationResult(
        simplified=label,
        confidence=PREFERENCE_CONFIDENCE,
        type_hint=None,
        matched_rule=PREFERENCE_RULE,
    )


def enrich_descriptions(
    descriptions: Sequence[object],
    *,
    rule_table: DescriptionRuleTable | None = None,
    fallback: FallbackSimplifier | None = None,
    preferences: Mapping[str, str] | None = None,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
) -> StatementEnrichmentResult:
    """Simplify a batch of raw descriptions.

    Rule results below ``min_confidence`` are treated as unmatched and sent to
    the fallback. A fallback outage is logged and leaves those rows unmatched.
    """
    table = rule_table if rule_table is not None else load_description_rule_table()
    preferred_labels: dict[str, str] = {}
    for text, label in (preferences or {}).items():
        key = description_key(sanitize_description(text))
        if key:
            preferred_labels[key] = label

    rows: list[EnrichedDescription | None] = []
    pending: dict[str, tuple[int, str, str]] = {}
    for index, raw_value in enumerate(descriptions):
        raw = "" if raw_value is None else str(raw_value)
        sanitized = sanitize_description(raw)

        preferred = preferred_labels.get(description_key(sanitized))
        if preferred:
            rows.append(EnrichedDescription(index, raw, sanitized, _preference_result(preferred), "preference"))
            continue

        result = rule_simplify_description(sanitized, table)
        if result.is_match and result.confidence >= min_confidence:
            rows.append(EnrichedDescription(index, raw, sanitized, result, "rules"))
            continue

        if not sanitized:
            rows.append(EnrichedDescription(index, raw, sanitized, NO_MATCH, "unmatched"))
            continue
        rows.append(None)
        pending[f"tx_{index}"] = (index, raw, sanitized)

    fallback_results: dict[str, ClassificationResult] = {}
    fallback_error: str | None = None
    if fallback is not None and pending:
        try:
            fallback_results = fallback.simplify_batch({key: entry[2] for key, entry in pending.items()})
        except FallbackServiceUnavailable as exc:
            logger.warning("Fallback simplifier unavailable, leaving %d rows unmatched: %s", len(pending), exc)
            fallback_error = str(exc)

    for key, (index, raw, sanitized) in pending.items():
        result = fallback_results.get(key, NO_MATCH)
        source: RowSource = "fallback" if result.is_match else "unmatched"
        rows[index] = EnrichedDescription(index, raw, sanitized, result, source)

    enriched = StatementEnrichmentResult(
        rows=tuple(row for row in rows if row is not None),
        fallback_error=fallback_error,
    )
    logger.info(
        "Enriched %d descriptions: %d preference, %d rules, %d fallback, %d unmatched",
        len(enriched.rows),
        enriched.count("preference"),
        enriched.count("rules"),
        enriched.count("fallback"),
        enriched.count("unmatched"),
    )
    return enriched


def read_statement_descriptions(csv_path: Path, column: str = "description") -> list[str]:
    """Read one column from a statement CSV; header lookup is case-insensitive."""
    with open(csv_path, encoding="utf-8-sig", newline="") as csvfile:
        reader = csv.DictReader(csvfile)
        headers = [h or "" for h in (reader.fieldnames or [])]
        matching = [h for h in headers if h.strip().lower() == column.strip().lower()]
        if not matching:
            raise ValueError(f"Column {column!r} not found in {csv_path} (columns: {', '.join(headers)})")
        header = matching[0]
        return [row.get(header) or "" for row in reader]


def write_enriched_csv(result: StatementEnrichmentResult, output_path: Path) -> Path:
    fieldnames = ["description", "sanitized", "simplified", "confidence", "type_hint", "matched_rule", "source"]
    with open(output_path, "w", encoding="utf-8", newline="") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
        writer.writeheader()
        for row in result.rows:
            writer.writerow(
                {
                    "description": row.raw,
                    "sanitized": row.sanitized,
                    "simplified": row.result.simplified or "",
                    "confidence": f"{row.result.confidence:.2f}",
                    "type_hint": row.result.type_hint or "",
                    "matched_rule": row.result.matched_rule or "",
                    "source": row.source,
                }
            )
    logger.debug("Enriched CSV written to %s", output_path)
    return output_path
