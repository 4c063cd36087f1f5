from unittest.mock import MagicMock, patch

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from feed_renderer import RenderError, render_feed_links


def _mock_playwright(page: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Return (sync_playwright mock, browser mock) wired to serve `page`."""
    browser = MagicMock()
    browser.new_page.return_value = page
    playwright = MagicMock()
    playwright.chromium.launch.return_value = browser
    factory = MagicMock()
    factory.return_value.__enter__.return_value = playwright
    return factory, browser


def test_render_feed_links_returns_hrefs_and_closes_browser() -> None:
    page = MagicMock()
    page.eval_on_selector_all.return_value = [
        "https://zora.co/collect/base:0xAA/1",
        "https://zora.co/collect/base:0xAA/1",
        "https://zora.co/about",
        "",
    ]
    factory, browser = _mock_playwright(page)

    with patch("feed_renderer.sync_playwright", factory):
        links = render_feed_links("https://zora.co/explore/featured", timeout_ms=1000, settle_timeout_ms=500)

    assert links == [
        "https://zora.co/collect/base:0xAA/1",
        "https://zora.co/collect/base:0xAA/1",
        "https://zora.co/about",
    ]
    page.goto.assert_called_once_with("https://zora.co/explore/featured", wait_until="load", timeout=1000)
    page.wait_for_load_state.assert_called_once_with("networkidle", timeout=500)
    browser.close.assert_called_once()


def test_render_feed_links_navigation_failure_is_fatal_and_closes_browser() -> None:
    page = MagicMock()
    page.goto.side_effect = PlaywrightTimeoutError("Timeout 1000ms exceeded")
    factory, browser = _mock_playwright(page)

    with patch("feed_renderer.sync_playwright", factory), pytest.raises(RenderError):
        render_feed_links("https://zora.co/explore/featured", timeout_ms=1000)

    page.eval_on_selector_all.assert_not_called()
    browser.close.assert_called_once()


def test_render_feed_links_harvest_failure_closes_browser() -> None:
    page = MagicMock()
    page.eval_on_selector_all.side_effect = PlaywrightError("Target closed")
    factory, browser = _mock_playwright(page)

    with patch("feed_renderer.sync_playwright", factory), pytest.raises(RenderError):
        render_feed_links("https://zora.co/explore/featured")

    browser.close.assert_called_once()


def test_render_feed_links_launch_failure_raises_render_error() -> None:
    factory, _ = _mock_playwright(MagicMock())
    factory.return_value.__enter__.return_value.chromium.launch.side_effect = PlaywrightError("no chromium")

    with patch("feed_renderer.sync_playwright", factory), pytest.raises(RenderError):
        render_feed_links("https://zora.co/explore/featured")


def test_render_feed_links_settle_timeouts_still_harvest() -> None:
    page = MagicMock()
    page.wait_for_load_state.side_effect = PlaywrightTimeoutError("still busy")
    page.wait_for_selector.side_effect = PlaywrightTimeoutError("no match")
    page.eval_on_selector_all.return_value = ["https://zora.co/collect/zora:0xBB/2"]
    factory, browser = _mock_playwright(page)

    with patch("feed_renderer.sync_playwright", factory):
        links = render_feed_links("https://zora.co/explore/featured", link_selector="a[href*='/collect/']")

    assert links == ["https://zora.co/collect/zora:0xBB/2"]
    browser.close.assert_called_once()


def test_render_feed_links_settle_browser_error_raises_render_error() -> None:
    page = MagicMock()
    page.wait_for_load_state.side_effect = PlaywrightError("Target page, context or browser has been closed")
    factory, browser = _mock_playwright(page)

    with patch("feed_renderer.sync_playwright", factory), pytest.raises(RenderError):
        render_feed_links("https://zora.co/explore/featured")

    page.eval_on_selector_all.assert_not_called()
    browser.close.assert_called_once()


def test_render_feed_links_driver_start_failure_raises_render_error() -> None:
    factory = MagicMock()
    factory.return_value.__enter__.side_effect = PlaywrightError("driver not installed")

    with patch("feed_renderer.sync_playwright", factory), pytest.raises(RenderError):
        render_feed_links("https://zora.co/explore/featured")


def test_render_feed_links_reads_config_at_call_time(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FEED_URL", "https://zora.co/explore/trending")
    monkeypatch.setenv("RENDER_TIMEOUT_MS", "1234")
    monkeypatch.setenv("RENDER_SETTLE_TIMEOUT_MS", "567")
    monkeypatch.setenv("FEED_LINK_SELECTOR", "a.token")
    page = MagicMock()
    page.eval_on_selector_all.return_value = []
    factory, _ = _mock_playwright(page)

    with patch("feed_renderer.sync_playwright", factory):
        render_feed_links()

    page.goto.assert_called_once_with("https://zora.co/explore/trending", wait_until="load", timeout=1234)
    page.wait_for_selector.assert_called_once_with("a.token", timeout=567)


def test_render_feed_links_empty_selector_skips_selector_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FEED_LINK_SELECTOR", "")
    page = MagicMock()
    page.eval_on_selector_all.return_value = []
    factory, _ = _mock_playwright(page)

    with patch("feed_renderer.sync_playwright", factory):
        render_feed_links("https://zora.co/explore/featured")

    page.wait_for_selector.assert_not_called()
