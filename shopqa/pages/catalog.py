"""Catalog (inventory) page abstraction."""

from __future__ import annotations

import logging
from typing import Any

from shopqa.models.page_state import ItemDetails

from .base import dispatch
from .surface import PageSurface

logger = logging.getLogger(__name__)


class CatalogPage:
    name = "inventory"

    header_secondary = ".header_secondary_container"
    inventory_container = ".inventory_container"
    inventory_items = ".inventory_item"
    product_name = ".inventory_item_name"
    product_price = ".inventory_item_price"
    product_description = ".inventory_item_desc"
    add_button = ".btn_primary"
    remove_button = ".btn_secondary"
    shopping_cart_link = ".shopping_cart_link"
    shopping_cart_badge = ".shopping_cart_badge"
    menu_button = ".bm-burger-button"
    logout_link = "#logout_sidebar_link"

    def __init__(self, surface: PageSurface):
        self.surface = surface

    @property
    def path(self) -> str:
        return self.surface.config.paths.inventory

    async def navigate(self) -> None:
        await self.surface.goto(self.path)

    async def is_visible(self, selector: str) -> bool:
        return await self.surface.is_visible(selector)

    async def read_text(self, selector: str) -> str:
        return await self.surface.read_text(selector)

    async def act(self, verb: str, *args: Any) -> Any:
        return await dispatch(self, {
            "open": self.navigate,
            "add": self.add_product,
            "add_all": self.add_all_products,
            "remove": self.remove_product,
            "add_by_index": self.add_product_by_index,
            "remove_by_index": self.remove_product_by_index,
            "open_cart": self.open_cart,
            "logout": self.logout,
        }, verb, *args)

    async def is_loaded(self) -> bool:
        return await self.surface.is_visible(self.inventory_container)

    async def title(self) -> str:
        # The heading shares its container with the sort control
        text = await self.surface.read_text(self.header_secondary)
        if text.startswith("Products"):
            return "Products"
        return text

    async def product_names(self) -> list[str]:
        await self.surface.is_visible(self.product_name)
        return await self.surface.read_all_texts(self.product_name)

    async def product_prices(self) -> list[str]:
        await self.surface.is_visible(self.product_price)
        return await self.surface.read_all_texts(self.product_price)

    async def product_count(self) -> int:
        return await self.surface.count(self.inventory_items)

    async def add_product(self, name: str) -> None:
        """Toggle ``name`` into the cart and wait for its remove control."""
        row = await self.surface.unique_row(self.inventory_items, self.product_name, name)
        await self.surface.click_in(row, self.add_button)
        if not await self.surface.wait_visible_in(row, self.remove_button):
            logger.warning("Remove control for '%s' did not appear after adding", name)

    async def remove_product(self, name: str) -> None:
        """Toggle ``name`` out of the cart and wait for its add control."""
        row = await self.surface.unique_row(self.inventory_items, self.product_name, name)
        await self.surface.click_in(row, self.remove_button)
        if not await self.surface.wait_visible_in(row, self.add_button):
            logger.warning("Add control for '%s' did not reappear after removing", name)

    async def add_product_by_index(self, index: int) -> bool:
        """Add the product at ``index``. Returns False if it was already in the cart."""
        row = await self.surface.nth_row(self.inventory_items, index)
        if not await self.surface.is_visible_in(row, self.add_button):
            logger.info("Product at index %d might already be in cart", index)
            return False
        await self.surface.click_in(row, self.add_button)
        await self.surface.wait_visible_in(row, self.remove_button)
        return True

    async def remove_product_by_index(self, index: int) -> bool:
        row = await self.surface.nth_row(self.inventory_items, index)
        if not await self.surface.is_visible_in(row, self.remove_button):
            logger.info("Product at index %d might not be in cart", index)
            return False
        await self.surface.click_in(row, self.remove_button)
        await self.surface.wait_visible_in(row, self.add_button)
        return True

    async def add_all_products(self) -> int:
        total = await self.product_count()
        added = 0
        for index in range(total):
            if await self.add_product_by_index(index):
                added += 1
        await self.wait_for_badge(total)
        return added

    async def is_badge_visible(self) -> bool:
        return await self.surface.is_visible(
            self.shopping_cart_badge, timeout_ms=self.surface.waits.quick_check_timeout_ms)

    async def is_badge_hidden(self) -> bool:
        return await self.surface.is_hidden(self.shopping_cart_badge)

    async def badge_count(self) -> int:
        if not await self.is_badge_visible():
            return 0
        text = await self.surface.read_text(self.shopping_cart_badge)
        try:
            return int(text)
        except ValueError:
            return 0

    async def wait_for_badge(self, expected: int) -> bool:
        """Poll until the badge shows ``expected`` (0 meaning no badge)."""
        async def _matches() -> bool:
            if not await self.surface.is_present_now(self.shopping_cart_badge):
                return expected == 0
            text = await self.surface.read_text(self.shopping_cart_badge)
            return text == str(expected)

        return await self.surface.wait_until(_matches, f"cart badge shows {expected}")

    async def is_product_in_cart(self, name: str) -> bool:
        row = await self.surface.unique_row(self.inventory_items, self.product_name, name)
        return await self.surface.wait_visible_in(row, self.remove_button)

    async def product_details(self, name: str) -> ItemDetails:
        row = await self.surface.unique_row(self.inventory_items, self.product_name, name)
        return ItemDetails(
            name=await self.surface.text_in(row, self.product_name),
            price=await self.surface.text_in(row, self.product_price),
            description=await self.surface.text_in(row, self.product_description),
        )

    async def open_cart(self) -> None:
        await self.surface.click(self.shopping_cart_link)
        cart_path = self.surface.config.paths.cart

        async def _on_cart() -> bool:
            return self.surface.on_path(cart_path)

        await self.surface.wait_until(_on_cart, "cart page")

    async def logout(self) -> None:
        await self.surface.click(self.menu_button)
        await self.surface.is_visible(self.logout_link)
        await self.surface.click(self.logout_link)
        login_path = self.surface.config.paths.login

        async def _on_login() -> bool:
            return self.surface.on_path(login_path)

        await self.surface.wait_until(_on_login, "login page after logout")
