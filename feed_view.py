"""Display projection of stored records for the feed-serving layer."""

from __future__ import annotations

from typing import Any

from models import NftRecord
from nft_store import NftStore


def to_display_record(record: NftRecord) -> dict[str, Any]:
    """Project a stored record into the shape the frontend feed renders."""
    return {
        "embeds": [{"url": record.metadata_uri}],
        "isZora": True,
        "name": record.name,
        "description": record.description,
        "network": record.network,
        "contract": record.contract,
        "tokenId": record.token_id,
        "hash": f"{record.contract}:{record.token_id}",
    }


def recent_feed(store: NftStore, limit: int | None = None) -> list[dict[str, Any]]:
    """Newest-first display records, at most `limit` of them (see NftStore.recent)."""
    return [to_display_record(record) for record in store.recent(limit)]
