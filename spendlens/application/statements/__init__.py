"""Statement description workflows."""

from spendlens.application.statements.enrich import (
    EnrichedDescription,
    StatementEnrichmentResult,
    enrich_descriptions,
    read_statement_descriptions,
    write_enriched_csv,
)

__all__ = [
    "EnrichedDescription",
    "StatementEnrichmentResult",
    "enrich_descriptions",
    "read_statement_descriptions",
    "write_enriched_csv",
]
