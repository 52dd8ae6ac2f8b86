"""Expectation checker — evaluates step post-conditions against page state."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable

from playwright.async_api import Error as PlaywrightError

from shopqa.data.helpers import parse_currency, same_members
from shopqa.errors import FormatError, ProductLookupError
from shopqa.models.fixtures import PRICE_PATTERN
from shopqa.models.scenario import Expectation

from .step_runner import ScenarioSession

logger = logging.getLogger(__name__)


class CheckResult:
    def __init__(self, passed: bool, message: str = "", actual: Any = None):
        self.passed = passed
        self.message = message
        self.actual = None if actual is None else str(actual)


async def check_expectation(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    """Evaluate a single expectation and return the result.

    Lookup and format problems fail the expectation rather than the run.
    """
    logger.debug("Checking expectation: %s %s", expectation.expectation_type,
                 expectation.target or expectation.expected_value or "")
    try:
        match expectation.expectation_type:
            case "on_page":
                return await _check_on_page(session, expectation)
            case "page_loaded":
                return await _check_page_loaded(session, expectation)
            case "page_title":
                return await _check_page_title(session, expectation)
            case "logo_visible":
                return _flag(await session.login.is_logo_visible(), "Login logo")
            case "error_visible":
                return _flag(await session.login.is_error_displayed(), "Error message")
            case "error_hidden":
                hidden = await session.login.is_error_hidden()
                if hidden:
                    return CheckResult(True, "Error message is hidden")
                return CheckResult(False, "Error message still visible",
                                   await session.login.error_text_now())
            case "error_text":
                return await _check_error_text(session, expectation, exact=True)
            case "error_contains":
                return await _check_error_text(session, expectation, exact=False)
            case "products_listed":
                return await _check_products_listed(session)
            case "prices_formatted":
                return await _check_prices_formatted(session)
            case "catalog_details":
                return await _check_catalog_details(session, expectation)
            case "badge_count":
                return await _check_badge_count(session, expectation)
            case "badge_hidden":
                return _flag(await session.catalog.is_badge_hidden(), "Cart badge", hidden=True)
            case "product_in_cart":
                return await _check_product_toggle(session, expectation, in_cart=True)
            case "product_not_in_cart":
                return await _check_product_toggle(session, expectation, in_cart=False)
            case "cart_count":
                return await _check_cart_count(session, expectation)
            case "cart_contains":
                return await _check_cart_membership(session, expectation, present=True)
            case "cart_excludes":
                return await _check_cart_membership(session, expectation, present=False)
            case "cart_names":
                return await _check_cart_names(session, expectation)
            case "cart_empty":
                return await _check_cart_empty(session)
            case "cart_total":
                return await _check_cart_total(session, expectation)
            case "cart_quantities":
                return await _check_cart_quantities(session, expectation)
            case "cart_matches_catalog":
                return await _check_cart_matches_catalog(session, expectation)
            case "text_contains":
                return await _check_text_contains(session, expectation)
            case "element_visible":
                if not expectation.selector:
                    return CheckResult(False, "No selector for element_visible")
                return _flag(await session.surface.is_visible(expectation.selector),
                             f"Element '{expectation.selector}'")
            case "no_dialogs":
                if session.dialogs:
                    return CheckResult(False, f"{len(session.dialogs)} dialog(s) opened",
                                       session.dialogs)
                return CheckResult(True, "No dialogs opened")
            case _:
                return CheckResult(False, f"Unknown expectation type: {expectation.expectation_type}")
    except (FormatError, ProductLookupError) as e:
        return CheckResult(False, str(e))
    except PlaywrightError as e:
        return CheckResult(False, f"Browser error: {e}")


def _flag(value: bool, subject: str, hidden: bool = False) -> CheckResult:
    if hidden:
        return CheckResult(value, f"{subject} is hidden" if value else f"{subject} is still visible")
    return CheckResult(value, f"{subject} is visible" if value else f"{subject} not visible")


async def _settle(
    session: ScenarioSession,
    read: Callable[[], Awaitable[Any]],
    accept: Callable[[Any], bool],
    description: str,
) -> tuple[bool, Any]:
    """Poll ``read`` until ``accept`` holds; return the outcome and last value read."""
    last: list[Any] = [None]

    async def _check() -> bool:
        last[0] = await read()
        return accept(last[0])

    ok = await session.surface.wait_until(_check, description)
    return ok, last[0]


async def _check_on_page(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    page_name = expectation.target or ""
    suffix = session.surface.config.paths.for_page(page_name)

    async def _url() -> str:
        return session.surface.url

    ok, url = await _settle(session, _url, lambda _: session.surface.on_path(suffix),
                            f"url ends with {suffix}")
    if ok:
        return CheckResult(True, f"On {page_name} page", url)
    return CheckResult(False, f"Expected path ending '{suffix}', got '{url}'", url)


async def _check_page_loaded(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    page = session.page_named(expectation.target or "")
    return _flag(await page.is_loaded(), f"{page.name} page")


async def _check_page_title(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    page = session.page_named(expectation.target or "")
    title = await page.title()
    if title == expectation.expected_value:
        return CheckResult(True, "Title matches", title)
    return CheckResult(False, f"Expected title '{expectation.expected_value}', got '{title}'", title)


async def _check_error_text(
    session: ScenarioSession, expectation: Expectation, exact: bool,
) -> CheckResult:
    expected = expectation.expected_value or ""
    text = await session.login.error_text()
    matched = text == expected if exact else expected in text
    if matched:
        return CheckResult(True, "Error text matches", text)
    verb = "equal" if exact else "contain"
    return CheckResult(False, f"Expected error to {verb} '{expected}', got '{text}'", text)


async def _check_products_listed(session: ScenarioSession) -> CheckResult:
    count = await session.catalog.product_count()
    names = await session.catalog.product_names()
    prices = await session.catalog.product_prices()
    if count > 0 and names and prices:
        return CheckResult(True, f"{count} products listed", count)
    return CheckResult(False, "No products listed", count)


async def _check_prices_formatted(session: ScenarioSession) -> CheckResult:
    prices = await session.catalog.product_prices()
    if not prices:
        return CheckResult(False, "No prices rendered")
    bad = [p for p in prices if not PRICE_PATTERN.match(p)]
    if bad:
        return CheckResult(False, f"Malformed prices: {bad}", bad)
    return CheckResult(True, f"{len(prices)} prices well formed")


async def _check_catalog_details(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    name = expectation.target or ""
    details = await session.catalog.product_details(name)
    session.catalog_details[name] = details
    if details.name != name:
        return CheckResult(False, f"Expected name '{name}', got '{details.name}'", details.name)
    if expectation.expected_value and details.price != expectation.expected_value:
        return CheckResult(
            False, f"Expected price {expectation.expected_value}, got {details.price}",
            details.price)
    return CheckResult(True, f"Catalog shows {name} at {details.price}", details.price)


async def _check_badge_count(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    expected = int(expectation.expected_value or 0)
    await session.catalog.wait_for_badge(expected)
    actual = await session.catalog.badge_count()
    if actual == expected:
        return CheckResult(True, f"Cart badge shows {actual}", actual)
    return CheckResult(False, f"Expected cart badge {expected}, got {actual}", actual)


async def _check_product_toggle(
    session: ScenarioSession, expectation: Expectation, in_cart: bool,
) -> CheckResult:
    name = expectation.target or ""
    row = await session.surface.unique_row(
        session.catalog.inventory_items, session.catalog.product_name, name)
    wanted = session.catalog.remove_button if in_cart else session.catalog.add_button
    if await session.surface.wait_visible_in(row, wanted):
        state = "in cart" if in_cart else "not in cart"
        return CheckResult(True, f"'{name}' is {state}")
    if in_cart:
        return CheckResult(False, f"'{name}' has no remove control")
    return CheckResult(False, f"'{name}' still shows its remove control")


async def _check_cart_count(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    expected = int(expectation.expected_value or 0)
    ok, actual = await _settle(session, session.cart.item_count,
                               lambda n: n == expected, f"cart holds {expected}")
    if ok:
        return CheckResult(True, f"Cart holds {actual} items", actual)
    return CheckResult(False, f"Expected {expected} cart items, got {actual}", actual)


async def _check_cart_membership(
    session: ScenarioSession, expectation: Expectation, present: bool,
) -> CheckResult:
    name = expectation.target or ""
    names = await session.cart.item_names()
    if (name in names) == present:
        return CheckResult(True, f"'{name}' {'in' if present else 'not in'} cart", names)
    if present:
        return CheckResult(False, f"'{name}' missing from cart {names}", names)
    return CheckResult(False, f"'{name}' still in cart", names)


async def _check_cart_names(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    expected = expectation.expected_values
    ok, names = await _settle(session, session.cart.item_names,
                              lambda n: same_members(n, expected), "cart names")
    if ok:
        return CheckResult(True, "Cart holds exactly the expected products", names)
    return CheckResult(False, f"Expected cart {sorted(expected)}, got {sorted(names or [])}", names)


async def _check_cart_empty(session: ScenarioSession) -> CheckResult:
    ok, count = await _settle(session, session.cart.item_count,
                              lambda n: n == 0, "cart empty")
    if ok:
        return CheckResult(True, "Cart is empty", 0)
    return CheckResult(False, f"Cart still holds {count} items", count)


async def _check_cart_total(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    expected = parse_currency(expectation.expected_value or "")
    prices = await session.cart.item_prices()
    total = sum((parse_currency(p) for p in prices), Decimal("0"))
    if total == expected:
        return CheckResult(True, f"Cart total {total}", total)
    return CheckResult(False, f"Expected cart total {expected}, got {total}", total)


async def _check_cart_quantities(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    quantities = await session.cart.item_quantities()
    if quantities == expectation.expected_values:
        return CheckResult(True, "Quantities match", quantities)
    return CheckResult(
        False, f"Expected quantities {expectation.expected_values}, got {quantities}", quantities)


async def _check_cart_matches_catalog(
    session: ScenarioSession, expectation: Expectation,
) -> CheckResult:
    name = expectation.target or ""
    listed = session.catalog_details.get(name)
    if listed is None:
        return CheckResult(False, f"No catalog details recorded for '{name}'")
    line = await session.cart.item_details(name)
    if line is None:
        return CheckResult(False, f"'{name}' not found in cart")
    mismatches = []
    if line.name != listed.name:
        mismatches.append(f"name {line.name!r} != {listed.name!r}")
    # The cart renders prices without the currency symbol
    if parse_currency(line.price) != parse_currency(listed.price):
        mismatches.append(f"price {line.price!r} != {listed.price!r}")
    if line.description != listed.description:
        mismatches.append("description differs")
    if line.quantity != "1":
        mismatches.append(f"quantity {line.quantity!r} != '1'")
    if mismatches:
        return CheckResult(False, "; ".join(mismatches), line.model_dump())
    return CheckResult(True, f"Cart line for '{name}' matches catalog")


async def _check_text_contains(session: ScenarioSession, expectation: Expectation) -> CheckResult:
    if not expectation.selector or not expectation.expected_value:
        return CheckResult(False, "Missing selector or expected_value")
    if not await session.surface.is_visible(expectation.selector):
        return CheckResult(False, f"Element '{expectation.selector}' not visible")
    text = await session.surface.read_text(expectation.selector)
    if expectation.expected_value in text:
        return CheckResult(True, f"Found '{expectation.expected_value}'", text)
    return CheckResult(False, f"'{expectation.expected_value}' not in text", text)
