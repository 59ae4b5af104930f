"""Bank description pipeline: sanitize, tokenize, classify."""

from spendlens.description.classifier import rule_simplify_batch, rule_simplify_description
from spendlens.description.rule_table import (
    DescriptionRuleTable,
    MerchantRule,
    OperationRule,
    TransferRule,
    build_description_rule_table,
    default_rule_table,
)
from spendlens.description.sanitize import extract_merchant_tokens, sanitize_description

__all__ = [
    "DescriptionRuleTable",
    "MerchantRule",
    "OperationRule",
    "TransferRule",
    "build_description_rule_table",
    "default_rule_table",
    "extract_merchant_tokens",
    "rule_simplify_batch",
    "rule_simplify_description",
    "sanitize_description",
]
