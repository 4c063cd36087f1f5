"""Block explorer client for token image and metadata enrichment."""

from __future__ import annotations

import logging
import os
from typing import Any

import requests

from models import EnrichmentResult

_DEFAULT_TIMEOUT_SECONDS = 15.0

LOGGER = logging.getLogger(__name__)


def fetch_token_details(url: str, timeout: float | None = None) -> EnrichmentResult | None:
    """Fetch one token instance from an explorer and map it to an EnrichmentResult.

    Enrichment is best-effort: HTTP errors, network failures, non-JSON bodies and
    payloads missing `image_url`, `metadata.name` or `metadata.description` all
    return None. Nothing is retried.
    """
    if timeout is None:
        timeout = float(os.getenv("EXPLORER_TIMEOUT_SECONDS", _DEFAULT_TIMEOUT_SECONDS))

    try:
        response = requests.get(
            url,
            headers={"accept": "application/json"},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        LOGGER.warning("Explorer request failed url=%s: %s", url, exc)
        return None

    if not response.ok:
        LOGGER.warning(
            "Explorer returned status=%s reason=%s url=%s",
            response.status_code,
            response.reason,
            url,
        )
        return None

    try:
        payload = response.json()
    except ValueError as exc:
        LOGGER.warning("Explorer returned non-JSON body url=%s: %s", url, exc)
        return None

    result = parse_token_payload(payload)
    if result is None:
        LOGGER.warning("Explorer payload missing image, name or description url=%s", url)
    return result


def parse_token_payload(payload: Any) -> EnrichmentResult | None:
    """Map an explorer token-instance payload, or None if a required field is absent."""
    if not validate_token_payload(payload):
        return None

    metadata = payload["metadata"]
    return EnrichmentResult(
        image_uri=payload["image_url"].strip(),
        name=metadata["name"].strip(),
        description=metadata["description"].strip(),
    )


def validate_token_payload(payload: Any) -> bool:
    """All three of image_url, metadata.name and metadata.description must be non-empty strings."""
    if not isinstance(payload, dict):
        return False

    metadata = payload.get("metadata")
    if not isinstance(metadata, dict):
        return False

    return all(
        _non_empty(value)
        for value in (payload.get("image_url"), metadata.get("name"), metadata.get("description"))
    )


def _non_empty(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())
