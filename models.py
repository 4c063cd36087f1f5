"""Shared typed models for the pipeline."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True, slots=True)
class ItemIdentifier:
    """Network, contract and token parsed out of a /collect/ link."""

    network: str
    contract: str
    token_id: str


@dataclass(frozen=True, slots=True)
class EnrichmentResult:
    """Display metadata returned by a block explorer for one token."""

    image_uri: str
    name: str
    description: str


@dataclass(frozen=True, slots=True)
class NftRecord:
    """Persisted NFT row. `href` is the unique dedup key.

    `id` and `created_at` are assigned by the store and stay None until the
    record has been written.
    """

    network: str
    contract: str
    token_id: str
    href: str
    metadata_uri: str
    name: str
    description: str
    id: int | None = None
    created_at: datetime | None = None


class LinkOutcome(str, Enum):
    """Terminal state of one item link in a pipeline run."""

    STORED = "stored"
    SKIPPED_UNPARSEABLE = "skipped_unparseable"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    SKIPPED_UNSUPPORTED_NETWORK = "skipped_unsupported_network"
    SKIPPED_ENRICHMENT_FAILED = "skipped_enrichment_failed"
    SKIPPED_PERSISTENCE_FAILED = "skipped_persistence_failed"
    SKIPPED_DEADLINE = "skipped_deadline"
    WOULD_STORE = "would_store"
    FAILED = "failed"


@dataclass(slots=True)
class RunSummary:
    """Counters collected over one run."""

    harvested: int = 0
    ignored: int = 0
    outcomes: Counter[LinkOutcome] = field(default_factory=Counter)
    unsupported_networks: Counter[str] = field(default_factory=Counter)

    @property
    def stored(self) -> int:
        return self.outcomes[LinkOutcome.STORED]
