"""Ordered rule table for simplifying bank transaction descriptions.

Rules come in three kinds evaluated in a fixed order, first match wins:

1. merchants  - known brands ("COMPRA MERCADONA VALENCIA" -> "Mercadona")
2. operations - bank operations (fees, ATM withdrawals, salary, refunds)
3. transfers  - person-to-person transfers, with the counterpart's first name

Tables are built from TOML-shaped mappings. The packaged defaults live in
``spendlens/description/rules/default_rules.toml``; extra layers (for example
a user's ``config/description_rules.toml``) are merged on top, and within
each kind a later layer's rules are tried before earlier ones.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from typing import Any, Literal

from spendlens.description.sanitize import PLACEHOLDERS
from spendlens.domain.classification import NO_MATCH, ClassificationResult

OperationKind = Literal["fee", "atm", "salary", "refund"]
OPERATION_KINDS: tuple[OperationKind, ...] = ("fee", "atm", "salary", "refund")

MERCHANT_CONFIDENCE = 0.9
OPERATION_CONFIDENCE = 0.85
TRANSFER_CONFIDENCE = 0.8
NAMED_TRANSFER_CONFIDENCE = 0.85

DEFAULT_RULES_RESOURCE = "rules/default_rules.toml"

_NAME_TOKEN = re.compile(r"[^\W\d_]+")


def _compile(pattern: Any, where: str) -> re.Pattern[str]:
    if not isinstance(pattern, str) or not pattern.strip():
        raise ValueError(f"{where}: missing 'pattern'")
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        raise ValueError(f"{where}: invalid pattern {pattern!r}: {exc}") from exc


def _confidence(raw: Any, default: float, where: str) -> float:
    value = default if raw is None else float(raw)
    if not 0 < value <= 1:
        raise ValueError(f"{where}: confidence must be in (0, 1], got {value}")
    return value


def _label(raw: Any, where: str) -> str:
    label = str(raw or "").strip()
    if not label:
        raise ValueError(f"{where}: missing 'label'")
    return label


def _slug(label: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", label.lower()).strip("_")


@dataclass(frozen=True)
class MerchantRule:
    key: str
    label: str
    pattern: re.Pattern[str]
    confidence: float = MERCHANT_CONFIDENCE

    def match(self, text: str) -> ClassificationResult | None:
        if not self.pattern.search(text):
            return None
        return ClassificationResult(
            simplified=self.label,
            confidence=self.confidence,
            type_hint="merchant",
            matched_rule=f"merchant:{self.key}",
        )


@dataclass(frozen=True)
class OperationRule:
    kind: OperationKind
    label: str
    pattern: re.Pattern[str]
    confidence: float = OPERATION_CONFIDENCE

    def match(self, text: str) -> ClassificationResult | None:
        if not self.pattern.search(text):
            return None
        return ClassificationResult(
            simplified=self.label,
            confidence=self.confidence,
            type_hint=self.kind,
            matched_rule=self.kind,
        )


@dataclass(frozen=True)
class TransferRule:
    """Transfer keyword; the first name-like token after it is appended to the label."""

    provider: str | None
    label: str
    pattern: re.Pattern[str]
    confidence: float = TRANSFER_CONFIDENCE
    named_confidence: float = NAMED_TRANSFER_CONFIDENCE

    @property
    def rule_id(self) -> str:
        return f"transfer:{self.provider}" if self.provider else "transfer"

    def match(self, text: str, skip_words: frozenset[str] = frozenset()) -> ClassificationResult | None:
        found = self.pattern.search(text)
        if not found:
            return None
        name = extract_counterpart_name(text[found.end() :], skip_words)
        if name:
            return ClassificationResult(
                simplified=f"{self.label} {name}",
                confidence=self.named_confidence,
                type_hint="transfer",
                matched_rule=self.rule_id,
            )
        return ClassificationResult(
            simplified=self.label,
            confidence=self.confidence,
            type_hint="transfer",
            matched_rule=self.rule_id,
        )


def extract_counterpart_name(remainder: str, skip_words: frozenset[str]) -> str | None:
    """First alphabetic token that is not a title, preposition or keyword, title-cased."""
    for token in _NAME_TOKEN.findall(remainder.upper()):
        if len(token) < 2 or token in skip_words or token in PLACEHOLDERS:
            continue
        return token.capitalize()
    return None


@dataclass(frozen=True)
class DescriptionRuleTable:
    """Immutable, ordered rule set shared by all classifier calls."""

    merchants: tuple[MerchantRule, ...] = ()
    operations: tuple[OperationRule, ...] = ()
    transfers: tuple[TransferRule, ...] = ()
    honorifics: frozenset[str] = frozenset()
    name_stopwords: frozenset[str] = frozenset()

    @property
    def name_skip_words(self) -> frozenset[str]:
        return self.honorifics | self.name_stopwords

    def classify(self, text: str) -> ClassificationResult:
        for merchant in self.merchants:
            result = merchant.match(text)
            if result is not None:
                return result
        for operation in self.operations:
            result = operation.match(text)
            if result is not None:
                return result
        skip_words = self.name_skip_words
        for transfer in self.transfers:
            result = transfer.match(text, skip_words)
            if result is not None:
                return result
        return NO_MATCH


def _words(raw: Any) -> set[str]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return set()
    return {str(word).strip().upper() for word in raw if str(word).strip()}


def _merchant_rules(config: Mapping[str, Any], layer: int) -> list[MerchantRule]:
    rules: list[MerchantRule] = []
    for index, entry in enumerate(config.get("merchants", [])):
        where = f"layer {layer} merchants[{index}]"
        if not isinstance(entry, Mapping):
            raise ValueError(f"{where}: expected a table")
        label = _label(entry.get("label"), where)
        rules.append(
            MerchantRule(
                key=str(entry.get("key") or _slug(label)),
                label=label,
                pattern=_compile(entry.get("pattern"), where),
                confidence=_confidence(entry.get("confidence"), MERCHANT_CONFIDENCE, where),
            )
        )
    return rules


def _operation_rules(config: Mapping[str, Any], layer: int) -> list[OperationRule]:
    rules: list[OperationRule] = []
    for index, entry in enumerate(config.get("operations", [])):
        where = f"layer {layer} operations[{index}]"
        if not isinstance(entry, Mapping):
            raise ValueError(f"{where}: expected a table")
        kind = entry.get("kind")
        if kind not in OPERATION_KINDS:
            raise ValueError(f"{where}: unknown operation kind {kind!r}")
        confidence = _confidence(entry.get("confidence"), OPERATION_CONFIDENCE, where)
        if confidence >= MERCHANT_CONFIDENCE:
            raise ValueError(f"{where}: operation confidence must stay below {MERCHANT_CONFIDENCE}")
        rules.append(
            OperationRule(
                kind=kind,
                label=_label(entry.get("label"), where),
                pattern=_compile(entry.get("pattern"), where),
                confidence=confidence,
            )
        )
    return rules


def _transfer_rules(config: Mapping[str, Any], layer: int) -> list[TransferRule]:
    rules: list[TransferRule] = []
    for index, entry in enumerate(config.get("transfers", [])):
        where = f"layer {layer} transfers[{index}]"
        if not isinstance(entry, Mapping):
            raise ValueError(f"{where}: expected a table")
        provider = str(entry.get("provider") or "").strip().lower() or None
        rules.append(
            TransferRule(
                provider=provider,
                label=_label(entry.get("label"), where),
                pattern=_compile(entry.get("pattern"), where),
                confidence=_confidence(entry.get("confidence"), TRANSFER_CONFIDENCE, where),
                named_confidence=_confidence(entry.get("named_confidence"), NAMED_TRANSFER_CONFIDENCE, where),
            )
        )
    return rules


def build_description_rule_table(configs: Sequence[Mapping[str, Any]] | None = None) -> DescriptionRuleTable:
    """Merge TOML-shaped rule layers into one table.

    Raises:
        ValueError: a rule has a bad pattern, label, kind or confidence.
    """
    merchants: list[MerchantRule] = []
    operations: list[OperationRule] = []
    transfers: list[TransferRule] = []
    honorifics: set[str] = set()
    name_stopwords: set[str] = set()

    for layer, config in enumerate(configs or (), start=1):
        # Later layers go first so user rules override packaged defaults.
        merchants[:0] = _merchant_rules(config, layer)
        operations[:0] = _operation_rules(config, layer)
        transfers[:0] = _transfer_rules(config, layer)
        honorifics |= _words(config.get("honorifics"))
        name_stopwords |= _words(config.get("name_stopwords"))

    return DescriptionRuleTable(
        merchants=tuple(merchants),
        operations=tuple(operations),
        transfers=tuple(transfers),
        honorifics=frozenset(honorifics),
        name_stopwords=frozenset(name_stopwords),
    )


def read_default_rule_config() -> dict[str, Any]:
    """Parse the packaged default rules file."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    data = resources.files("spendlens.description").joinpath(DEFAULT_RULES_RESOURCE).read_text(encoding="utf-8")
    return tomllib.loads(data)


@lru_cache(maxsize=1)
def default_rule_table() -> DescriptionRuleTable:
    """Packaged defaults only, no user layers."""
    return build_description_rule_table([read_default_rule_config()])
