"""
Playwright-backed page fetcher for the enrichment crawler.

One headless Chromium instance is shared by every worker; each fetch gets a
fresh browser context (cookies, downloads) that is closed afterwards. Any
Playwright navigation or timeout failure surfaces as ``TransientFetchError``
so the crawler can retry it.
"""

from pathlib import Path
from typing import Any, List, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth

from registry_hub.config.portal_schema import PortalsConfig
from registry_hub.domain.enrichment.models import (
    EnrichmentTask,
    FetchedPage,
    TransientFetchError,
)
from registry_hub.io.connectors.portals.urls import build_portal_url
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)

READY_SELECTOR_TIMEOUT_MS = 15_000
DOWNLOAD_TIMEOUT_MS = 15_000

# Cell text of every <tr> of every <table>, as a list of tables
_TABLES_SCRIPT = """
() => Array.from(document.querySelectorAll('table')).map(table =>
    Array.from(table.querySelectorAll('tr')).map(row =>
        Array.from(row.querySelectorAll('td, th')).map(cell =>
            (cell.innerText || '').trim()
        )
    ).filter(cells => cells.length > 0)
)
"""


class PlaywrightPortalFetcher:
    """
    Async context manager owning the browser.

    Examples:
        >>> async with PlaywrightPortalFetcher(portals) as fetcher:
        ...     page = await fetcher.fetch(task)
    """

    def __init__(
        self,
        portals: PortalsConfig,
        headless: bool = True,
        navigation_timeout_ms: int = 30_000,
        stealth: bool = True,
    ):
        self.portals = portals
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.stealth = stealth
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self) -> "PlaywrightPortalFetcher":
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        logger.debug("portal_fetcher.browser_started", headless=self.headless)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def fetch(self, task: EnrichmentTask) -> FetchedPage:
        if self._browser is None:
            raise RuntimeError("PlaywrightPortalFetcher used outside 'async with'")

        portal = self.portals.for_source(task.source.value)
        url = build_portal_url(portal, task.enterprise_number)
        context = await self._browser.new_context(accept_downloads=True)
        try:
            page = await context.new_page()
            if self.stealth:
                await Stealth().apply_stealth_async(page)
            page.set_default_navigation_timeout(self.navigation_timeout_ms)

            await page.goto(url, wait_until=portal.wait_until)
            if portal.ready_selector:
                await self._wait_ready(page, portal.ready_selector, task)

            text = await page.inner_text("body")
            tables: List[List[List[str]]] = await page.evaluate(_TABLES_SCRIPT)
            exports = {}
            if portal.export_selector:
                content = await self._download_export(page, portal.export_selector, task)
                if content:
                    exports["csv"] = content

            logger.debug(
                "portal_fetcher.fetched",
                enterprise_number=task.enterprise_number,
                source=task.source.value,
                tables=len(tables),
                exports=list(exports),
            )
            return FetchedPage(url=url, text=text, tables=tables, exports=exports)
        except PlaywrightTimeoutError as e:
            raise TransientFetchError(f"Timed out loading {url}: {e}", url=url) from e
        except PlaywrightError as e:
            raise TransientFetchError(f"Browser error loading {url}: {e}", url=url) from e
        finally:
            await context.close()

    async def _wait_ready(self, page: Page, selector: str, task: EnrichmentTask) -> None:
        # 'No data' pages do not render the selector; extraction decides
        try:
            await page.wait_for_selector(selector, timeout=READY_SELECTOR_TIMEOUT_MS)
        except PlaywrightTimeoutError:
            logger.debug(
                "portal_fetcher.ready_selector_missing",
                enterprise_number=task.enterprise_number,
                selector=selector,
            )

    async def _download_export(
        self, page: Page, selector: str, task: EnrichmentTask
    ) -> Optional[str]:
        button = await page.query_selector(selector)
        if button is None:
            logger.info(
                "portal_fetcher.no_export_control", enterprise_number=task.enterprise_number
            )
            return None
        try:
            async with page.expect_download(timeout=DOWNLOAD_TIMEOUT_MS) as download_info:
                await button.click()
            download = await download_info.value
        except PlaywrightTimeoutError:
            # The rendered page is still handed to extraction
            logger.warning(
                "portal_fetcher.export_missing",
                enterprise_number=task.enterprise_number,
                selector=selector,
            )
            return None
        path = await download.path()
        if path is None:
            return None
        return Path(path).read_text(encoding="utf-8-sig")
