"""Classification result model for transaction descriptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, get_args

TypeHint = Literal["merchant", "fee", "atm", "salary", "refund", "transfer"]
TYPE_HINTS: frozenset[str] = frozenset(get_args(TypeHint))


@dataclass(frozen=True)
class ClassificationResult:
    """Simplified label for a description.

    ``simplified`` is None exactly when ``confidence`` is 0.
    """

    simplified: str | None
    confidence: float
    type_hint: TypeHint | None = None
    matched_rule: str | None = None

    def __post_init__(self) -> None:
        if (self.simplified is None) != (self.confidence == 0):
            raise ValueError(
                f"simplified={self.simplified!r} is inconsistent with confidence={self.confidence!r}"
            )
        if not 0 <= self.confidence <= 1:
            raise ValueError(f"confidence out of range: {self.confidence!r}")
        if self.type_hint is not None and self.type_hint not in TYPE_HINTS:
            raise ValueError(f"Unknown type hint: {self.type_hint!r}")

    @property
    def is_match(self) -> bool:
        return self.simplified is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "simplified": self.simplified,
            "confidence": self.confidence,
            "type_hint": self.type_hint,
            "matched_rule": self.matched_rule,
        }


NO_MATCH = ClassificationResult(simplified=None, confidence=0.0)
