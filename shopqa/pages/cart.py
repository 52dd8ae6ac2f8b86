"""Cart page abstraction."""

from __future__ import annotations

import logging
from typing import Any

from shopqa.errors import AssertionFailure, ProductLookupError
from shopqa.models.page_state import ItemDetails

from .base import dispatch
from .surface import PageSurface

logger = logging.getLogger(__name__)


class CartPage:
    name = "cart"

    cart_list = ".cart_list"
    cart_items = ".cart_item"
    item_name = ".inventory_item_name"
    item_price = ".inventory_item_price"
    item_description = ".inventory_item_desc"
    item_quantity = ".cart_quantity"
    remove_buttons = ".cart_item .btn_secondary"
    row_remove_button = ".btn_secondary"
    continue_shopping_button = ".cart_footer .btn_secondary"
    checkout_button = ".cart_footer .btn_action"

    def __init__(self, surface: PageSurface):
        self.surface = surface

    @property
    def path(self) -> str:
        return self.surface.config.paths.cart

    async def navigate(self) -> None:
        await self.surface.goto(self.path)

    async def is_visible(self, selector: str) -> bool:
        return await self.surface.is_visible(selector)

    async def read_text(self, selector: str) -> str:
        return await self.surface.read_text(selector)

    async def act(self, verb: str, *args: Any) -> Any:
        return await dispatch(self, {
            "open": self.navigate,
            "remove": self.remove_item,
            "remove_by_index": self.remove_item_by_index,
            "clear": self.clear_all,
            "continue_shopping": self.continue_shopping,
            "checkout": self.checkout,
        }, verb, *args)

    async def is_loaded(self) -> bool:
        return self.surface.on_path(self.path) and await self.surface.is_visible(self.cart_list)

    async def title(self) -> str:
        # v1 renders no heading on the cart page
        if self.surface.on_path(self.path):
            return "Your Cart"
        return ""

    async def item_count(self) -> int:
        return await self.surface.count(self.cart_items)

    async def is_empty(self) -> bool:
        return await self.item_count() == 0

    async def item_names(self) -> list[str]:
        return await self.surface.read_all_texts(f"{self.cart_items} {self.item_name}")

    async def item_prices(self) -> list[str]:
        return await self.surface.read_all_texts(f"{self.cart_items} {self.item_price}")

    async def item_quantities(self) -> list[str]:
        return await self.surface.read_all_texts(f"{self.cart_items} {self.item_quantity}")

    async def is_item_in_cart(self, name: str) -> bool:
        return name in await self.item_names()

    async def item_details(self, name: str) -> ItemDetails | None:
        try:
            row = await self.surface.unique_row(self.cart_items, self.item_name, name)
        except ProductLookupError:
            return None
        return ItemDetails(
            name=await self.surface.text_in(row, self.item_name),
            price=await self.surface.text_in(row, self.item_price),
            description=await self.surface.text_in(row, self.item_description),
            quantity=await self.surface.text_in(row, self.item_quantity),
        )

    async def remove_item(self, name: str) -> None:
        row = await self.surface.unique_row(self.cart_items, self.item_name, name)
        before = await self.item_count()
        await self.surface.click_in(row, self.row_remove_button)
        await self._wait_for_count_below(before)

    async def remove_item_by_index(self, index: int) -> None:
        total = await self.surface.count(self.remove_buttons)
        if index < 0 or index >= total:
            raise ProductLookupError(f"#{index}", 0, scope=f"cart (available: {total})")
        row = await self.surface.nth_row(self.cart_items, index)
        before = await self.item_count()
        await self.surface.click_in(row, self.row_remove_button)
        await self._wait_for_count_below(before)

    async def clear_all(self) -> int:
        """Remove the first item until the cart is empty. Returns items removed.

        The live count is re-read after every removal. A removal that does
        not lower the count raises AssertionFailure instead of looping.
        """
        removed = 0
        remaining = await self.item_count()
        while remaining > 0:
            await self.surface.click_first(self.remove_buttons)
            if not await self._wait_for_count_below(remaining):
                raise AssertionFailure(
                    f"Cart still holds {remaining} items after a removal",
                    observed={"url": self.surface.url, "cart_count": remaining},
                )
            removed += 1
            remaining = await self.item_count()
        logger.debug("Cleared %d items from cart", removed)
        return removed

    async def _wait_for_count_below(self, count: int) -> bool:
        async def _dropped() -> bool:
            return await self.item_count() < count

        return await self.surface.wait_until(_dropped, f"cart count below {count}")

    async def continue_shopping(self) -> None:
        await self.surface.click(self.continue_shopping_button)
        inventory = self.surface.config.paths.inventory

        async def _on_inventory() -> bool:
            return self.surface.on_path(inventory)

        await self.surface.wait_until(_on_inventory, "inventory page")

    async def checkout(self) -> None:
        await self.surface.click(self.checkout_button)
        checkout = self.surface.config.paths.checkout

        async def _on_checkout() -> bool:
            return self.surface.on_path(checkout)

        await self.surface.wait_until(_on_checkout, "checkout page")
