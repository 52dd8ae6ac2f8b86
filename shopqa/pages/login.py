"""Login page abstraction."""

from __future__ import annotations

import logging
from typing import Any

from .base import dispatch
from .surface import PageSurface

logger = logging.getLogger(__name__)


class LoginPage:
    name = "login"

    username_input = "#user-name"
    password_input = "#password"
    login_button = "#login-button"
    error_message = '[data-test="error"]'
    error_close_button = ".error-button"
    login_logo = ".login_logo"
    login_credentials = "#login_credentials"
    login_password = ".login_password"

    def __init__(self, surface: PageSurface):
        self.surface = surface

    @property
    def path(self) -> str:
        return self.surface.config.paths.login

    async def navigate(self) -> None:
        await self.surface.goto(self.path)

    async def is_visible(self, selector: str) -> bool:
        return await self.surface.is_visible(selector)

    async def read_text(self, selector: str) -> str:
        return await self.surface.read_text(selector)

    async def act(self, verb: str, *args: Any) -> Any:
        return await dispatch(self, {
            "open": self.navigate,
            "login": self.attempt,
            "clear_form": self.clear_form,
            "close_error": self.close_error,
            "click_field": self.click_field,
        }, verb, *args)

    async def is_loaded(self) -> bool:
        return await self.surface.is_visible(self.login_button)

    async def is_logo_visible(self) -> bool:
        return await self.surface.is_visible(self.login_logo)

    async def attempt(self, username: str, password: str) -> None:
        """Fill both fields and submit.

        Waits until the browser has either left the login page or shown an
        error, bounded by the settle timeout. Success is for the caller to
        judge from the resulting state.
        """
        logger.debug("Attempting login as '%s'", username)
        await self.surface.fill(self.username_input, username)
        await self.surface.fill(self.password_input, password)
        await self.surface.click(self.login_button)
        await self.surface.wait_until(self._attempt_settled, "login outcome")

    async def _attempt_settled(self) -> bool:
        if not self.surface.on_path(self.path):
            return True
        return await self.surface.is_present_now(self.error_message)

    async def is_error_displayed(self) -> bool:
        return await self.surface.is_visible(self.error_message)

    async def is_error_hidden(self) -> bool:
        return await self.surface.is_hidden(self.error_message)

    async def error_text(self) -> str:
        if await self.surface.is_visible(self.error_message):
            return await self.surface.read_text(self.error_message)
        return ""

    async def error_text_now(self) -> str:
        """Current error text without waiting; empty when none is shown."""
        if await self.surface.is_present_now(self.error_message):
            return await self.surface.read_text(self.error_message)
        return ""

    async def close_error(self) -> None:
        if await self.surface.is_visible(self.error_close_button):
            await self.surface.click(self.error_close_button)
            await self.surface.wait_until(self._error_gone, "error dismissed")

    async def _error_gone(self) -> bool:
        return not await self.surface.is_present_now(self.error_message)

    async def clear_form(self) -> None:
        await self.surface.fill(self.username_input, "")
        await self.surface.fill(self.password_input, "")

    async def click_field(self, field: str) -> None:
        selector = self.password_input if field == "password" else self.username_input
        await self.surface.click(selector)

    async def accepted_usernames(self) -> str:
        if await self.surface.is_visible(self.login_credentials):
            return await self.surface.read_text(self.login_credentials)
        return ""

    async def password_info(self) -> str:
        if await self.surface.is_visible(self.login_password):
            return await self.surface.read_text(self.login_password)
        return ""

    async def is_redirected_after_login(self) -> bool:
        inventory = self.surface.config.paths.inventory

        async def _on_inventory() -> bool:
            return self.surface.on_path(inventory)

        return await self.surface.wait_until(_on_inventory, "redirect to inventory")
