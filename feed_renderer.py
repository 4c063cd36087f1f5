"""Headless-browser rendering of the feed page and hyperlink harvesting."""

from __future__ import annotations

import logging
import os

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

DEFAULT_FEED_URL = "https://zora.co/explore/featured"
_DEFAULT_RENDER_TIMEOUT_MS = 30000
_DEFAULT_SETTLE_TIMEOUT_MS = 10000
_DEFAULT_LINK_SELECTOR = 'a[href*="/collect/"]'
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

_HARVEST_HREFS_JS = "anchors => anchors.map(anchor => anchor.href)"

LOGGER = logging.getLogger(__name__)


class RenderError(RuntimeError):
    """The feed page could not be loaded; nothing can be harvested."""


def feed_url_from_env() -> str:
    return os.getenv("FEED_URL") or DEFAULT_FEED_URL


def render_feed_links(
    url: str | None = None,
    timeout_ms: int | None = None,
    settle_timeout_ms: int | None = None,
    link_selector: str | None = None,
) -> list[str]:
    """Render `url` in headless Chromium and return the href of every <a> element.

    Navigation must reach the `load` state within `timeout_ms` or RenderError is
    raised. After that the page gets up to `settle_timeout_ms` to go network-idle
    and, if a link selector is set, to show a matching element. Missing either
    settle condition only logs a warning; the links present at that point are
    returned. Any other browser failure raises RenderError. Duplicates are kept.
    The browser is always closed.

    Unset arguments are read from FEED_URL, RENDER_TIMEOUT_MS,
    RENDER_SETTLE_TIMEOUT_MS and FEED_LINK_SELECTOR (empty disables the
    selector wait) at call time.
    """
    if url is None:
        url = feed_url_from_env()
    if timeout_ms is None:
        timeout_ms = int(os.getenv("RENDER_TIMEOUT_MS", _DEFAULT_RENDER_TIMEOUT_MS))
    if settle_timeout_ms is None:
        settle_timeout_ms = int(os.getenv("RENDER_SETTLE_TIMEOUT_MS", _DEFAULT_SETTLE_TIMEOUT_MS))
    if link_selector is None:
        link_selector = os.getenv("FEED_LINK_SELECTOR", _DEFAULT_LINK_SELECTOR)

    LOGGER.info("Rendering feed url=%s timeout_ms=%s", url, timeout_ms)

    try:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=True, args=BROWSER_ARGS)
            try:
                page = browser.new_page()
                page.goto(url, wait_until="load", timeout=timeout_ms)
                _wait_for_settle(page, settle_timeout_ms, link_selector)
                hrefs = page.eval_on_selector_all("a", _HARVEST_HREFS_JS)
            finally:
                browser.close()
    except PlaywrightError as exc:
        raise RenderError(f"Failed to render feed url={url}: {exc}") from exc

    links = [href for href in hrefs if isinstance(href, str) and href]
    LOGGER.info("Harvested %s links from %s", len(links), url)
    return links


def _wait_for_settle(page, settle_timeout_ms: int, link_selector: str) -> None:
    # Only timeouts are tolerated here; other browser errors end the render.
    try:
        page.wait_for_load_state("networkidle", timeout=settle_timeout_ms)
    except PlaywrightTimeoutError:
        LOGGER.warning("Feed did not go network-idle within %sms; harvesting anyway", settle_timeout_ms)

    if not link_selector:
        return

    try:
        page.wait_for_selector(link_selector, timeout=settle_timeout_ms)
    except PlaywrightTimeoutError:
        LOGGER.warning(
            "No element matched selector=%s within %sms; harvesting anyway",
            link_selector,
            settle_timeout_ms,
        )
