"""Money, date and time helpers shared by receipt text parsers."""

from __future__ import annotations

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
UNIT_PRICE_PRECISION = Decimal("0.0001")
ZERO = Decimal("0.00")

_ISO_DATE = re.compile(r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})$")
_DMY_DATE = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4}|\d{2})$")
_TIME = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_SPACES = re.compile(r"[ \t]+")


def collapse_spaces(text: str) -> str:
    """Collapse runs of spaces/tabs into one space and trim."""
    return _SPACES.sub(" ", text).strip()


def parse_eu_decimal(value: str | None) -> Decimal | None:
    """Parse a European or plain amount string at full precision.

    Accepts ``61,36``, ``61.36``, ``1.234,56``, ``1,234.56`` and long
    fractions such as ``0,12397``. With several commas and no dot, the last
    comma is the decimal separator. Returns None for empty or unparseable input.
    """
    if not value:
        return None
    cleaned = re.sub(r"[\s€]", "", value).replace("EUR", "")
    if not cleaned:
        return None

    last_comma = cleaned.rfind(",")
    last_dot = cleaned.rfind(".")
    if last_comma >= 0 and last_dot >= 0:
        if last_comma > last_dot:
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif last_comma >= 0:
        cleaned = cleaned[:last_comma].replace(",", "") + "." + cleaned[last_comma + 1 :]
    elif cleaned.count(".") > 1:
        cleaned = cleaned[:last_dot].replace(".", "") + cleaned[last_dot:]

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def parse_eu_money(value: str | None) -> Decimal:
    """Parse an amount string into a cent-quantized Decimal; unparseable input maps to 0.00."""
    amount = parse_eu_decimal(value)
    if amount is None:
        return ZERO
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_iso_date(text: str | None) -> str | None:
    """Convert ``DD/MM/YYYY``-style or ``YYYY-MM-DD``-style dates to ISO.

    Two-digit years of 50 and above map to the 1900s. Returns None for
    anything that is not a real calendar date.
    """
    if not text:
        return None
    compact = re.sub(r"\s+", "", text)

    match = _ISO_DATE.match(compact)
    if match:
        year, month, day = (int(part) for part in match.groups())
    else:
        match = _DMY_DATE.match(compact)
        if not match:
            return None
        day, month = int(match.group(1)), int(match.group(2))
        raw_year = match.group(3)
        year = int(raw_year)
        if len(raw_year) == 2:
            year += 1900 if year >= 50 else 2000

    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def to_display_date(iso_date: str | None) -> str | None:
    """Render ``YYYY-MM-DD`` as ``DD-MM-YYYY``."""
    if not iso_date:
        return None
    try:
        parsed = date.fromisoformat(iso_date)
    except ValueError:
        return None
    return parsed.strftime("%d-%m-%Y")


def normalize_time(text: str | None) -> str | None:
    """Normalize ``H:MM``, ``HH:MM`` or ``HH:MM:SS`` to ``HH:MM:SS``."""
    if not text:
        return None
    match = _TIME.match(re.sub(r"\s+", "", text))
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return f"{hour:02d}:{minute:02d}:{second:02d}"


def amounts_close(a: Decimal, b: Decimal, tolerance: Decimal = Decimal("0.02")) -> bool:
    return abs(a - b) <= tolerance


def derive_unit_price(total: Decimal, quantity: int) -> Decimal:
    """Unit price for a line whose receipt only prints the total.

    Rounded to cents when that still reconstructs ``total`` within one cent,
    otherwise kept at four decimal places.
    """
    if quantity <= 1:
        return total
    exact = total / Decimal(quantity)
    cents = exact.quantize(CENT, rounding=ROUND_HALF_UP)
    if abs(cents * quantity - total) <= CENT:
        return cents
    return exact.quantize(UNIT_PRICE_PRECISION, rounding=ROUND_HALF_UP)
