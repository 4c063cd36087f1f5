"""Block explorer endpoints for the networks the feed links to."""

from __future__ import annotations

import logging
from urllib.parse import quote

from models import ItemIdentifier

# Blockscout-style explorers exposing /tokens/{contract}/instances/{id}.
EXPLORER_API_BASE_URLS: dict[str, str] = {
    "base": "https://base.blockscout.com/api/v2",
    "zora": "https://explorer.zora.energy/api/v2",
}
TOKEN_INSTANCE_PATH = "/tokens/{contract}/instances/{token_id}"

LOGGER = logging.getLogger(__name__)


def is_supported_network(network: str) -> bool:
    return network in EXPLORER_API_BASE_URLS


def resolve_token_endpoint(identifier: ItemIdentifier) -> str | None:
    """Return the token-instance URL for the identifier, or None if unsupported."""
    if not is_supported_network(identifier.network):
        LOGGER.warning(
            "Unsupported network=%s contract=%s token_id=%s",
            identifier.network,
            identifier.contract,
            identifier.token_id,
        )
        return None

    base_url = EXPLORER_API_BASE_URLS[identifier.network]
    path = TOKEN_INSTANCE_PATH.format(
        contract=quote(identifier.contract, safe=""),
        token_id=quote(identifier.token_id, safe=""),
    )
    return f"{base_url}{path}"
