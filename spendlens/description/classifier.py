"""Deterministic description simplifier built on the rule table."""

from __future__ import annotations

from collections.abc import Iterable

from spendlens.description.rule_table import DescriptionRuleTable, default_rule_table
from spendlens.domain.classification import NO_MATCH, ClassificationResult


def rule_simplify_description(
    text: object,
    rule_table: DescriptionRuleTable | None = None,
) -> ClassificationResult:
    """Classify a (preferably sanitized) description.

    Merchants win over operations, operations over transfers. Empty,
    blank or non-string input returns ``NO_MATCH``.
    """
    if not isinstance(text, str) or not text.strip():
        return NO_MATCH
    table = rule_table if rule_table is not None else default_rule_table()
    return table.classify(text.strip())


def rule_simplify_batch(
    descriptions: Iterable[object],
    rule_table: DescriptionRuleTable | None = None,
) -> list[ClassificationResult]:
    table = rule_table if rule_table is not None else default_rule_table()
    return [rule_simplify_description(text, table) for text in descriptions]
