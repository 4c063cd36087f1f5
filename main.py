"""CLI entrypoint for the NFT feed discovery and enrichment pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time

from dotenv import find_dotenv, load_dotenv

from collect_links import is_item_link, parse_item_link
from explorer_client import fetch_token_details
from feed_renderer import RenderError, render_feed_links
from feed_view import recent_feed
from models import LinkOutcome, NftRecord, RunSummary
from networks import resolve_token_endpoint
from nft_store import NftStore, PersistenceConflict, PersistenceError, open_store


def parse_args() -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Discover NFTs from a rendered feed page and store enriched records")
    parser.add_argument(
        "--mode",
        choices=["scrape", "recent"],
        default="scrape",
        help=(
            "'scrape' (default): render the feed, enrich new item links and store them. "
            "'recent': print the newest stored records as display JSON."
        ),
    )
    parser.add_argument("--feed-url", default=None, help="Feed page to render (defaults to FEED_URL)")
    parser.add_argument("--db-path", default=None, help="SQLite database path (defaults to NFT_DB_PATH)")
    parser.add_argument(
        "--limit",
        type=_positive_int,
        default=None,
        help="Number of records for --mode recent (defaults to RECENT_FEED_LIMIT)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse, dedup and resolve links without explorer calls or writes",
    )
    return parser.parse_args()


def process_link(
    href: str,
    store: NftStore,
    dry_run: bool = False,
    summary: RunSummary | None = None,
) -> LinkOutcome:
    """Drive one item link through parse, dedup, resolve, enrich and persist.

    When `summary` is given, unsupported network names are counted on it.
    """
    identifier = parse_item_link(href)
    if identifier is None:
        logging.info("Skipping unparseable link href=%s", href)
        return LinkOutcome.SKIPPED_UNPARSEABLE

    if store.exists(href):
        logging.debug("Skipping known href=%s", href)
        return LinkOutcome.SKIPPED_DUPLICATE

    endpoint = resolve_token_endpoint(identifier)
    if endpoint is None:
        if summary is not None:
            summary.unsupported_networks[identifier.network] += 1
        return LinkOutcome.SKIPPED_UNSUPPORTED_NETWORK

    if dry_run:
        logging.info("[dry-run] Would enrich href=%s via %s", href, endpoint)
        return LinkOutcome.WOULD_STORE

    details = fetch_token_details(endpoint)
    if details is None:
        logging.info("Skipping href=%s: enrichment unavailable", href)
        return LinkOutcome.SKIPPED_ENRICHMENT_FAILED

    record = NftRecord(
        network=identifier.network,
        contract=identifier.contract,
        token_id=identifier.token_id,
        href=href,
        metadata_uri=details.image_uri,
        name=details.name,
        description=details.description,
    )

    try:
        stored = store.create(record)
    except PersistenceConflict as exc:
        logging.warning("Failed to save href=%s: %s", href, exc)
        return LinkOutcome.SKIPPED_PERSISTENCE_FAILED
    except PersistenceError as exc:
        logging.error("Failed to save href=%s: %s", href, exc)
        return LinkOutcome.SKIPPED_PERSISTENCE_FAILED

    logging.info(
        "Stored id=%s network=%s contract=%s token_id=%s",
        stored.id,
        stored.network,
        stored.contract,
        stored.token_id,
    )
    return LinkOutcome.STORED


def run(
    store: NftStore,
    feed_url: str | None = None,
    dry_run: bool = False,
    deadline_seconds: float | None = None,
) -> RunSummary:
    """Run one discovery pass over the feed.

    Rendering failures raise RenderError. Everything that goes wrong for a
    single link is recorded in the returned summary and the loop moves on.
    Once `deadline_seconds` have elapsed no further links are started.
    """
    started = time.monotonic()
    hrefs = render_feed_links(feed_url)

    summary = RunSummary(harvested=len(hrefs))
    for raw_href in hrefs:
        href = raw_href.strip()
        if not is_item_link(href):
            summary.ignored += 1
            logging.debug("Ignoring non-item link href=%s", href)
            continue

        if deadline_seconds is not None and time.monotonic() - started > deadline_seconds:
            summary.outcomes[LinkOutcome.SKIPPED_DEADLINE] += 1
            continue

        try:
            outcome = process_link(href, store, dry_run=dry_run, summary=summary)
        except Exception as exc:  # one bad link never ends the batch
            logging.exception("Failed processing href=%s: %s", href, exc)
            outcome = LinkOutcome.FAILED

        summary.outcomes[outcome] += 1

    if summary.outcomes[LinkOutcome.SKIPPED_DEADLINE]:
        logging.warning(
            "Run deadline of %ss reached; %s links left unprocessed",
            deadline_seconds,
            summary.outcomes[LinkOutcome.SKIPPED_DEADLINE],
        )
    if summary.unsupported_networks:
        logging.warning("Unsupported networks seen: %s", dict(summary.unsupported_networks))

    counts = sorted((outcome.value, count) for outcome, count in summary.outcomes.items())
    logging.info(
        "Run complete. harvested=%s ignored=%s %s",
        summary.harvested,
        summary.ignored,
        " ".join(f"{name}={count}" for name, count in counts),
    )
    return summary


def print_recent(store: NftStore, limit: int | None = None) -> None:
    """Print the newest stored records as display JSON."""
    print(json.dumps(recent_feed(store, limit=limit), indent=2))


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def _deadline_from_env() -> float | None:
    raw = os.getenv("RUN_DEADLINE_SECONDS")
    return float(raw) if raw else None


def main() -> None:
    """Initialize config and execute the pipeline."""
    load_dotenv(find_dotenv(usecwd=True))
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args()

    with open_store(args.db_path) as store:
        if args.mode == "recent":
            print_recent(store, args.limit)
            return

        try:
            run(
                store,
                feed_url=args.feed_url,
                dry_run=args.dry_run,
                deadline_seconds=_deadline_from_env(),
            )
        except RenderError as exc:
            logging.exception("Feed render failed, nothing processed: %s", exc)
            sys.exit(1)


if __name__ == "__main__":
    main()
