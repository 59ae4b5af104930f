"""HTTP client for the external fallback description simplifier.

Only sanitized descriptions are sent. Request and response shapes:

    POST {base_url}/simplify
    {"items": [{"id": "tx_0", "sanitized_description": "COMPRA CARD TIENDA"}]}

    200 OK
    {"results": [{"id": "tx_0", "simplified": "Tienda", "confidence": 0.7,
                  "type_hint": "merchant"}]}
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping
from typing import Any, Protocol

import httpx

from spendlens.domain.classification import NO_MATCH, TYPE_HINTS, ClassificationResult
from spendlens.runtime.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
FALLBACK_RULE = "fallback"


class FallbackServiceUnavailable(RuntimeError):
    """Raised when the fallback service cannot be reached or returns an error."""


class FallbackSimplifier(Protocol):
    def simplify_batch(self, items: Mapping[str, str]) -> dict[str, ClassificationResult]: ...


def coerce_fallback_result(payload: Mapping[str, Any]) -> ClassificationResult:
    """Turn one service result into a ClassificationResult that honors its invariant."""
    label = payload.get("simplified")
    label = label.strip() if isinstance(label, str) else ""
    try:
        confidence = float(payload.get("confidence") or 0.0)
    except (TypeError, ValueError):
        confidence = 0.0
    if not label or not math.isfinite(confidence) or confidence <= 0:
        return NO_MATCH

    type_hint = payload.get("type_hint")
    return ClassificationResult(
        simplified=label,
        confidence=min(confidence, 1.0),
        type_hint=type_hint if type_hint in TYPE_HINTS else None,
        matched_rule=FALLBACK_RULE,
    )


class HttpFallbackSimplifier:
    """Batch client; pass ``client`` to reuse a connection pool or inject a transport."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT, client: httpx.Client | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url}/simplify"
        if self._client is not None:
            return self._client.post(url, json=payload, timeout=self.timeout)
        return httpx.post(url, json=payload, timeout=self.timeout)

    def simplify_batch(self, items: Mapping[str, str]) -> dict[str, ClassificationResult]:
        """Simplify ``{id: sanitized_description}``; ids missing from the reply are omitted.

        Raises:
            FallbackServiceUnavailable: connection failure, non-200 status or
                a malformed body.
        """
        if not items:
            return {}

        payload = {"items": [{"id": item_id, "sanitized_description": text} for item_id, text in items.items()]}
        logger.info("Sending %d descriptions to fallback simplifier at %s", len(items), self.base_url)

        try:
            start_time = time.time()
            response = self._post(payload)
            logger.debug("Fallback simplifier returned in %.2f seconds", time.time() - start_time)
        except httpx.RequestError as e:
            logger.error("Failed to connect to fallback simplifier: %s", e)
            raise FallbackServiceUnavailable(f"Failed to connect to fallback simplifier: {e}") from e

        if response.status_code != 200:
            logger.error("Fallback simplifier error: %s", response.status_code)
            raise FallbackServiceUnavailable(f"Fallback simplifier error: {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise FallbackServiceUnavailable("Fallback simplifier returned invalid JSON") from e
        results = body.get("results") if isinstance(body, dict) else None
        if not isinstance(results, list):
            raise FallbackServiceUnavailable("Fallback simplifier response has no 'results' list")

        simplified: dict[str, ClassificationResult] = {}
        for entry in results:
            if not isinstance(entry, dict):
                continue
            item_id = entry.get("id")
            if item_id in items:
                simplified[item_id] = coerce_fallback_result(entry)
        return simplified
