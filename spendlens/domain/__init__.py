"""Core domain models for spendlens.

This module provides the core data models used throughout the project:
- ReceiptDocument, ReceiptLineItem: Parsed receipt text
- ClassificationResult: Simplified bank description label

Usage:
    from spendlens.domain import ClassificationResult, ReceiptDocument
"""

from spendlens.domain.classification import NO_MATCH, ClassificationResult
from spendlens.domain.receipt import (
    ParseAttempt,
    ReceiptDocument,
    ReceiptLineItem,
    ReceiptParseResult,
    ReceiptWarning,
)

__all__ = [
    "ClassificationResult",
    "NO_MATCH",
    "ParseAttempt",
    "ReceiptDocument",
    "ReceiptLineItem",
    "ReceiptParseResult",
    "ReceiptWarning",
]
