"""Browser launch utilities — one browser per run, one context per scenario."""

from __future__ import annotations

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright

from shopqa.models.config import SuiteConfig


async def launch_browser(playwright: Playwright, config: SuiteConfig) -> Browser:
    """Launch the configured browser engine."""
    engine = getattr(playwright, config.browser)
    return await engine.launch(headless=config.headless)


async def create_context(
    browser: Browser,
    config: SuiteConfig,
    record_video_dir: Optional[str] = None,
) -> BrowserContext:
    """Create an isolated browser context for a single scenario.

    Args:
        record_video_dir: Optional directory for Playwright video recording.
    """
    viewport = config.viewport.model_dump()
    context_kwargs: dict = {
        "viewport": viewport,
        "locale": "en-US",
        "extra_http_headers": {
            "Accept-Language": "en-US,en;q=0.9",
        },
    }
    if record_video_dir:
        context_kwargs["record_video_dir"] = record_video_dir
        context_kwargs["record_video_size"] = viewport

    context = await browser.new_context(**context_kwargs)
    context.set_default_timeout(config.waits.action_timeout_ms)
    context.set_default_navigation_timeout(config.waits.navigation_timeout_ms)
    return context
