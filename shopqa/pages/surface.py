"""Page surface — the one place that talks to Playwright for page abstractions."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin, urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shopqa.errors import ProductLookupError
from shopqa.models.config import SuiteConfig

from .waits import Predicate, poll_until

logger = logging.getLogger(__name__)


class PageSurface:
    """Bounded-wait browser operations shared by every page abstraction.

    Visibility probes return booleans on timeout. Primary actions (click,
    fill, read) let Playwright's own timeout error propagate.
    """

    def __init__(self, page: Page, config: SuiteConfig):
        self.page = page
        self.config = config
        self.waits = config.waits

    @property
    def url(self) -> str:
        return self.page.url

    def on_path(self, suffix: str) -> bool:
        return urlparse(self.page.url).path.endswith(suffix)

    async def goto(self, path: str) -> None:
        url = urljoin(self.config.base_url, path)
        logger.debug("Navigating to %s", url)
        await self.page.goto(url, wait_until="domcontentloaded",
                             timeout=self.waits.navigation_timeout_ms)
        await self._wait_for_idle()

    async def reload(self) -> None:
        await self.page.reload(wait_until="domcontentloaded",
                               timeout=self.waits.navigation_timeout_ms)
        await self._wait_for_idle()

    async def go_back(self) -> None:
        await self.page.go_back(wait_until="domcontentloaded",
                                timeout=self.waits.navigation_timeout_ms)
        await self._wait_for_idle()

    async def _wait_for_idle(self) -> None:
        try:
            await self.page.wait_for_load_state(
                "networkidle", timeout=min(self.waits.navigation_timeout_ms, 10000))
        except PlaywrightTimeoutError:
            logger.debug("Network idle timeout, continuing")

    async def is_visible(self, selector: str, timeout_ms: int | None = None) -> bool:
        timeout = timeout_ms if timeout_ms is not None else self.waits.visibility_timeout_ms
        try:
            await self.page.wait_for_selector(selector, state="visible", timeout=timeout)
            return True
        except PlaywrightTimeoutError:
            return False

    async def is_hidden(self, selector: str, timeout_ms: int | None = None) -> bool:
        timeout = timeout_ms if timeout_ms is not None else self.waits.visibility_timeout_ms
        try:
            await self.page.wait_for_selector(selector, state="hidden", timeout=timeout)
            return True
        except PlaywrightTimeoutError:
            return False

    async def is_present_now(self, selector: str) -> bool:
        """Non-waiting visibility probe, for use inside polling predicates."""
        return await self.page.locator(selector).first.is_visible()

    async def read_text(self, selector: str) -> str:
        await self.page.wait_for_selector(
            selector, state="visible", timeout=self.waits.action_timeout_ms)
        text = await self.page.text_content(selector, timeout=self.waits.action_timeout_ms)
        return (text or "").strip()

    async def read_all_texts(self, selector: str) -> list[str]:
        texts = await self.page.locator(selector).all_text_contents()
        return [t.strip() for t in texts]

    async def count(self, selector: str) -> int:
        return await self.page.locator(selector).count()

    async def click(self, selector: str) -> None:
        logger.debug("Clicking: %s", selector)
        await self.page.click(selector, timeout=self.waits.action_timeout_ms)

    async def click_first(self, selector: str) -> None:
        logger.debug("Clicking first: %s", selector)
        await self.page.locator(selector).first.click(timeout=self.waits.action_timeout_ms)

    async def fill(self, selector: str, value: str) -> None:
        logger.debug("Filling %s with '%s'", selector,
                     "***" if "password" in selector.lower() else value)
        await self.page.fill(selector, value, timeout=self.waits.action_timeout_ms)

    async def unique_row(self, container: str, name_selector: str, name: str) -> Locator:
        """Return the single ``container`` whose ``name_selector`` text is exactly ``name``."""
        exact = re.compile(rf"^\s*{re.escape(name)}\s*$")
        row = self.page.locator(container).filter(
            has=self.page.locator(name_selector, has_text=exact))
        matches = await row.count()
        if matches != 1:
            raise ProductLookupError(name, matches, scope=container)
        return row

    async def nth_row(self, container: str, index: int) -> Locator:
        total = await self.count(container)
        if index < 0 or index >= total:
            raise ProductLookupError(f"#{index}", 0,
                                     scope=f"{container} (available: {total})")
        return self.page.locator(container).nth(index)

    async def click_in(self, row: Locator, selector: str) -> None:
        await row.locator(selector).click(timeout=self.waits.action_timeout_ms)

    async def is_visible_in(self, row: Locator, selector: str) -> bool:
        return await row.locator(selector).is_visible()

    async def text_in(self, row: Locator, selector: str) -> str:
        text = await row.locator(selector).text_content(timeout=self.waits.action_timeout_ms)
        return (text or "").strip()

    async def wait_visible_in(self, row: Locator, selector: str) -> bool:
        try:
            await row.locator(selector).wait_for(
                state="visible", timeout=self.waits.settle_timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def wait_until(self, predicate: Predicate, description: str = "") -> bool:
        return await poll_until(
            predicate,
            timeout_ms=self.waits.settle_timeout_ms,
            interval_ms=self.waits.poll_interval_ms,
            description=description,
        )

    async def screenshot(self, path: str) -> str:
        try:
            await self.page.screenshot(path=path, full_page=False)
            return path
        except PlaywrightError as e:
            logger.warning("Screenshot failed: %s", e)
            return ""
