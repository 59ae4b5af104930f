"""PII masking and merchant tokenizing for bank transaction descriptions.

Every masking pattern requires digits, so words made of letters only
(merchant names) are never rewritten.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Callable

PLACEHOLDERS = frozenset({"CARD", "IBAN", "PHONE", "AUTH", "REF"})

STOPWORDS = frozenset(
    {
        # Spanish
        "COMPRA", "COMPRAS", "PAGO", "PAGOS", "EN", "DE", "DEL", "LA", "EL", "LOS", "LAS",
        "CON", "POR", "PARA", "TARJETA", "TARJ", "RECIBO", "CARGO", "OPERACION", "ADEUDO",
        # English
        "PAYMENT", "PURCHASE", "THE", "AND", "FOR", "POS",
        # French
        "ACHAT", "PAIEMENT", "CARTE", "PRLV", "CHEZ",
    }
)

URL_TOKENS = frozenset({"WWW", "HTTP", "HTTPS", "COM", "NET", "ORG", "HTML", "ES", "FR", "UK", "EU", "IO", "CO"})

_TOKEN_SEPARATORS = re.compile(r"[\s/\-|.,*]+")
_HAS_LETTER = re.compile(r"[^\W\d_]")

_CARD_PREFIX = re.compile(
    r"(?:\b(?:TARJETA|TARJ|CARD)\b\s*[*#]*|\*{2,}|\bX{4,})\s*\d+(?:[ -]\d{4})*\b",
    re.IGNORECASE,
)
_IBAN = re.compile(
    r"\b[A-Z]{2}\d{2}(?:\s?(?=[A-Z0-9]{0,3}\d)[A-Z0-9]{4}){2,7}(?:\s?\d{1,4})?\b",
    re.IGNORECASE,
)
_GROUPED_CARD = re.compile(r"\b(?:\d{4}(?:[ -]\d{4}){3}(?:[ -]?\d{1,3})?|\d{4}[ -]\d{6}[ -]\d{5})\b")
_CONTIGUOUS_CARD = re.compile(r"\b\d{13,19}\b")
_PHONES = (
    re.compile(r"\+\d{1,3}(?:[\s.-]?\d{2,4}){2,5}\b"),
    re.compile(r"\(\d{3}\)\s?\d{3}[-.\s]\d{4}\b"),
    re.compile(r"\b\d{3}[-.]\d{3}[-.]\d{4}\b"),
)
_AUTH = re.compile(r"\b(?:AUTORIZACION|AUTORIZ|AUTH)[:#]?\s*(?=[A-Z0-9]*\d)[A-Z0-9]+\b", re.IGNORECASE)
_REF_PUNCTUATED = re.compile(r"\bREF[:#.]\s*\d+\b", re.IGNORECASE)
_LONG_DIGITS = re.compile(r"\b\d{12,}\b")
_REF_SPACED = re.compile(r"\bREF\s+\d+\b", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

_KEY_DATES = re.compile(r"\b\d{1,4}[/-]\d{1,2}[/-]\d{1,4}\b")
_KEY_NUMBERS = re.compile(r"\b\d+(?:[.,]\d+)?\b")
_KEY_CURRENCIES = re.compile(r"\b(?:eur|usd|gbp|mxn|ars|cop|brl|chf|cad|aud|nzd)\b")
_KEY_CARD_WORDS = re.compile(r"\b(?:pos|tpv|tarjeta|card|debito|credito)\b")
_KEY_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
KEY_MAX_LENGTH = 160


def luhn_valid(digits: str) -> bool:
    """Luhn checksum used by payment card numbers."""
    total = 0
    for index, char in enumerate(reversed(digits)):
        value = int(char)
        if index % 2 == 1:
            value *= 2
            if value > 9:
                value -= 9
        total += value
    return total % 10 == 0


def _mask_contiguous_card(match: re.Match[str]) -> str:
    return "CARD" if luhn_valid(match.group(0)) else match.group(0)


_SUBSTITUTIONS: tuple[tuple[re.Pattern[str], str | Callable[[re.Match[str]], str]], ...] = (
    (_CARD_PREFIX, "CARD"),
    (_IBAN, "IBAN"),
    (_GROUPED_CARD, "CARD"),
    (_CONTIGUOUS_CARD, _mask_contiguous_card),
    *((pattern, "PHONE") for pattern in _PHONES),
    (_AUTH, "AUTH"),
    (_REF_PUNCTUATED, "REF"),
    (_LONG_DIGITS, "REF"),
    (_REF_SPACED, "REF"),
)


def _mask_once(text: str) -> str:
    for pattern, replacement in _SUBSTITUTIONS:
        text = pattern.sub(replacement, text)
    return _WHITESPACE.sub(" ", text).strip()


def sanitize_description(value: object) -> str:
    """Mask card numbers, IBANs, phones, auth codes and references.

    >>> sanitize_description("COMPRA TARJ*1234 AMAZON")
    'COMPRA CARD AMAZON'

    The result is stable under a second call.
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    masked = _mask_once(text)
    # Each changing pass removes digits and placeholders carry none, so this ends.
    while True:
        again = _mask_once(masked)
        if again == masked:
            return masked
        masked = again


def extract_merchant_tokens(value: str | None) -> list[str]:
    """Uppercase candidate merchant tokens, in order of appearance, without repeats."""
    if not value:
        return []
    tokens: list[str] = []
    for raw in _TOKEN_SEPARATORS.split(value.upper()):
        if len(raw) < 3 or not _HAS_LETTER.search(raw):
            continue
        if raw in STOPWORDS or raw in URL_TOKENS or raw in PLACEHOLDERS:
            continue
        if raw not in tokens:
            tokens.append(raw)
    return tokens


def description_key(value: str | None) -> str:
    """Lookup key for remembering a user's label for a description.

    Lowercased and accent-free, with dates, amounts, currency codes and card
    words removed, so the same merchant on different days shares one key.

    >>> description_key("COMPRA TARJETA 12/01/2026 CAFÉ SOL 4,50 EUR")
    'compra cafe sol'
    """
    if not value or not value.strip():
        return ""
    text = unicodedata.normalize("NFKD", value.strip().lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    for pattern in (_KEY_DATES, _KEY_NUMBERS, _KEY_CURRENCIES, _KEY_CARD_WORDS, _KEY_NON_ALNUM):
        text = pattern.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()[:KEY_MAX_LENGTH]
