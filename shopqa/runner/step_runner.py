"""Step runner — translates scenario steps to page abstraction calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from shopqa.models.config import SuiteConfig
from shopqa.models.page_state import ItemDetails
from shopqa.models.scenario import Step
from shopqa.pages.cart import CartPage
from shopqa.pages.catalog import CatalogPage
from shopqa.pages.login import LoginPage
from shopqa.pages.surface import PageSurface

logger = logging.getLogger(__name__)


@dataclass
class ScenarioSession:
    """The pages of one browser session plus per-scenario observations."""

    surface: PageSurface
    login: LoginPage
    catalog: CatalogPage
    cart: CartPage
    dialogs: list[str] = field(default_factory=list)
    catalog_details: dict[str, ItemDetails] = field(default_factory=dict)

    @classmethod
    def open(cls, page: Page, config: SuiteConfig) -> "ScenarioSession":
        surface = PageSurface(page, config)
        return cls(
            surface=surface,
            login=LoginPage(surface),
            catalog=CatalogPage(surface),
            cart=CartPage(surface),
        )

    def page_named(self, name: str):
        pages = {"login": self.login, "inventory": self.catalog, "cart": self.cart}
        try:
            return pages[name]
        except KeyError:
            raise ValueError(f"Unknown page: {name}") from None

    async def observed_state(self) -> dict:
        """Snapshot of what the browser currently shows, for failure reports."""
        state: dict = {"url": self.surface.url}
        try:
            state["error_text"] = await self.login.error_text_now()
        except PlaywrightError as e:
            logger.debug("Could not read error text: %s", e)
            state["error_text"] = ""
        return state


async def run_step(session: ScenarioSession, step: Step) -> None:
    """Execute a single step through the owning page's ``act`` verbs."""

    logger.debug("Running step: %s | target=%s | %s",
                 step.action, step.target, step.description or "")

    match step.action:
        case "open_login":
            await session.login.act("open")

        case "login":
            await session.login.act("login", step.target or "", step.value or "")

        case "clear_login_form":
            await session.login.act("clear_form")

        case "close_error":
            await session.login.act("close_error")

        case "click_login_field":
            await session.login.act("click_field", step.target or "username")

        case "add_product":
            await session.catalog.act("add", _require_target(step))

        case "remove_product":
            await session.catalog.act("remove", _require_target(step))

        case "add_product_by_index":
            await session.catalog.act("add_by_index", int(_require_target(step)))

        case "add_all_products":
            await session.catalog.act("add_all")

        case "open_cart":
            await session.catalog.act("open_cart")

        case "remove_from_cart":
            await session.cart.act("remove", _require_target(step))

        case "clear_cart":
            await session.cart.act("clear")

        case "continue_shopping":
            await session.cart.act("continue_shopping")

        case "checkout":
            await session.cart.act("checkout")

        case "logout":
            await session.catalog.act("logout")

        case "reload":
            await session.surface.reload()

        case "go_back":
            await session.surface.go_back()

        case _:
            raise ValueError(f"Unknown action: {step.action}")


def _require_target(step: Step) -> str:
    if not step.target:
        raise ValueError(f"{step.action} step requires a target")
    return step.target
