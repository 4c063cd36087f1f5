"""Parsing of harvested feed links into item identifiers."""

from __future__ import annotations

from urllib.parse import urlsplit

from models import ItemIdentifier

COLLECT_SEGMENT = "/collect/"


def is_item_link(href: str) -> bool:
    """Return True if the URL path contains a /collect/ segment."""
    return COLLECT_SEGMENT in _path_of(href)


def parse_item_link(href: str) -> ItemIdentifier | None:
    """Parse `.../collect/<network>:<contract>/<tokenId>` into an ItemIdentifier.

    Returns None for links that are not item links and for item links whose
    structure does not match (missing token id, missing or extra `:`, or any
    component blank after stripping). Segments after the token id are ignored.
    """
    path = _path_of(href)
    if COLLECT_SEGMENT not in path:
        return None

    remainder = path.split(COLLECT_SEGMENT, 1)[1]
    network_and_contract, slash, rest = remainder.partition("/")
    if not slash:
        return None
    token_id = rest.split("/", 1)[0]

    network, colon, contract = network_and_contract.partition(":")
    if not colon or ":" in contract:
        return None

    network = network.strip()
    contract = contract.strip()
    token_id = token_id.strip()
    if not network or not contract or not token_id:
        return None

    return ItemIdentifier(network=network, contract=contract, token_id=token_id)


def _path_of(href: str) -> str:
    # Query strings (referral params and the like) are never part of the id.
    try:
        return urlsplit(href.strip()).path
    except ValueError:
        return ""
