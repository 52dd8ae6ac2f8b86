"""Scenario catalog — turns fixture records into executable scenario cases.

Every case is built from copies of fixture records. Cases that need more
products or users than the fixture set provides are left out rather than
failing the build.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from shopqa.data.helpers import DataHelper, normalize_product_key, parse_currency
from shopqa.models.fixtures import Product, UserCredential
from shopqa.models.scenario import Expectation, ScenarioCase, Step
from shopqa.pages.cart import CartPage
from shopqa.pages.catalog import CatalogPage
from shopqa.pages.login import LoginPage

logger = logging.getLogger(__name__)

SQL_INJECTION_USERNAMES = [
    "admin' OR '1'='1",
    "admin'; DROP TABLE users; --",
    "' UNION SELECT * FROM users --",
]

XSS_PAYLOADS = [
    '<script>alert("XSS")</script>',
    'javascript:alert("XSS")',
    '<img src=x onerror=alert("XSS")>',
]

SPECIAL_CHARACTER_CREDENTIALS = [
    ("user@#$%^&*()", "pass!@#$%"),
    ('user"with"quotes', "pass'with'quotes"),
    ("user\nwith\nnewlines", "pass\twith\ttabs"),
]

MISMATCH_ERROR_FRAGMENT = "Username and password do not match"
RAPID_ATTEMPTS = 5
LONG_INPUT_LENGTH = 1000


def expect(expectation_type: str, target: str | None = None, value: object = None,
           values: Iterable[str] = (), selector: str | None = None,
           description: str = "") -> Expectation:
    return Expectation(
        expectation_type=expectation_type,
        target=target,
        expected_value=None if value is None else str(value),
        expected_values=list(values),
        selector=selector,
        description=description,
    )


def open_login() -> Step:
    return Step(
        action="open_login",
        description="Open the login page",
        expectations=[expect("on_page", "login"), expect("page_loaded", "login")],
    )


def login_as(username: str, password: str, expectations: list[Expectation],
             description: str = "") -> Step:
    return Step(
        action="login", target=username, value=password,
        description=description or f"Log in as '{username}'",
        expectations=expectations,
    )


def rejected_login(username: str, password: str, description: str = "") -> list[Step]:
    return [
        Step(action="clear_login_form", description="Clear the login form"),
        login_as(username, password, [expect("error_visible"), expect("on_page", "login")],
                 description=description),
    ]


def signed_in(user: UserCredential, extra: Iterable[Expectation] = ()) -> list[Step]:
    return [
        open_login(),
        login_as(user.username, user.password,
                 [expect("on_page", "inventory"), *extra]),
    ]


def add(product: Product, badge: int | None = None) -> Step:
    expectations = [expect("product_in_cart", product.name)]
    if badge is not None:
        expectations.append(expect("badge_count", value=badge))
    return Step(action="add_product", target=product.name,
                description=f"Add '{product.name}' to the cart", expectations=expectations)


def remove(product: Product, badge: int | None = None) -> Step:
    expectations = [expect("product_not_in_cart", product.name)]
    if badge is not None:
        expectations.append(expect("badge_count", value=badge))
    return Step(action="remove_product", target=product.name,
                description=f"Remove '{product.name}' from the catalog page",
                expectations=expectations)


def open_cart(expectations: Iterable[Expectation] = ()) -> Step:
    return Step(action="open_cart", description="Open the cart",
                expectations=[expect("on_page", "cart"), *expectations])


def price_total(products: Iterable[Product]) -> Decimal:
    return sum((parse_currency(p.price) for p in products), Decimal("0"))


# ============================================================================
# Login scenarios
# ============================================================================


def valid_login_cases(helper: DataHelper) -> list[ScenarioCase]:
    cases = []
    for user in helper.all_valid_credentials():
        cases.append(ScenarioCase(
            scenario_id=f"login-valid-{user.identifier}",
            name=f"Should login successfully with {user.label}",
            tags=["login", "smoke"],
            credential=user,
            steps=[
                Step(action="open_login", description="Open the login page", expectations=[
                    expect("on_page", "login"),
                    expect("page_loaded", "login"),
                    expect("logo_visible"),
                ]),
                login_as(user.username, user.password, [
                    expect("on_page", "inventory"),
                    expect("error_hidden"),
                    expect("page_loaded", "inventory"),
                    expect("page_title", "inventory", "Products"),
                    expect("products_listed"),
                    expect("prices_formatted"),
                    expect("element_visible", selector=CatalogPage.shopping_cart_link),
                    expect("element_visible", selector=CatalogPage.menu_button),
                ]),
            ],
        ))
    return cases


def invalid_login_cases(helper: DataHelper) -> list[ScenarioCase]:
    cases = []
    for user in helper.all_invalid_credentials():
        cases.append(ScenarioCase(
            scenario_id=f"login-invalid-{user.identifier}",
            name=f"Should show error for {user.identifier}",
            tags=["login", "negative"],
            credential=user,
            steps=[
                open_login(),
                login_as(user.username, user.password, [
                    expect("on_page", "login"),
                    expect("page_loaded", "login"),
                    expect("error_visible"),
                    expect("error_text", value=user.expected_error),
                ]),
            ],
        ))
    return cases


def login_edge_cases(helper: DataHelper) -> list[ScenarioCase]:
    cases = [
        ScenarioCase(
            scenario_id="login-page-elements",
            name="Should display login page elements correctly",
            tags=["login", "ui"],
            steps=[Step(action="open_login", expectations=[
                expect("logo_visible"),
                expect("element_visible", selector=LoginPage.username_input),
                expect("element_visible", selector=LoginPage.password_input),
                expect("element_visible", selector=LoginPage.login_button),
                expect("text_contains", value="standard_user", selector=LoginPage.login_credentials),
                expect("text_contains", value="secret_sauce", selector=LoginPage.login_password),
            ])],
        ),
        ScenarioCase(
            scenario_id="login-error-close-button",
            name="Should close error message when X button is clicked",
            tags=["login", "negative"],
            steps=[
                open_login(),
                login_as("invalid_user", "wrong_password", [expect("error_visible")]),
                Step(action="close_error", expectations=[expect("error_hidden")]),
            ],
        ),
    ]

    sql_steps = [open_login()]
    for username in SQL_INJECTION_USERNAMES:
        sql_steps += rejected_login(username, "password")
        sql_steps.append(Step(action="close_error"))
    cases.append(ScenarioCase(
        scenario_id="login-sql-injection",
        name="Should handle SQL injection attempts",
        tags=["login", "security"],
        steps=sql_steps,
    ))

    xss_steps = [open_login()]
    for payload in XSS_PAYLOADS:
        xss_steps += [
            Step(action="clear_login_form"),
            login_as(payload, "password", [expect("error_visible"), expect("no_dialogs")]),
            Step(action="close_error"),
        ]
    cases.append(ScenarioCase(
        scenario_id="login-xss",
        name="Should handle XSS attempts in login fields",
        tags=["login", "security"],
        steps=xss_steps,
    ))

    special_steps = [open_login()]
    for username, password in SPECIAL_CHARACTER_CREDENTIALS:
        special_steps += rejected_login(username, password)
        special_steps.append(Step(action="close_error"))
    cases.append(ScenarioCase(
        scenario_id="login-special-characters",
        name="Should handle special characters in credentials",
        tags=["login", "negative"],
        steps=special_steps,
    ))

    cases.append(ScenarioCase(
        scenario_id="login-error-persists",
        name="Should maintain error state after page elements interaction",
        tags=["login", "negative"],
        steps=[
            open_login(),
            login_as("invalid_user", "wrong_password", [expect("error_visible")]),
            Step(action="click_login_field", target="username",
                 expectations=[expect("error_visible")]),
            Step(action="click_login_field", target="password", expectations=[
                expect("error_visible"),
                expect("error_contains", value=MISMATCH_ERROR_FRAGMENT),
            ]),
        ],
    ))

    rapid_steps = [open_login()]
    for attempt in range(RAPID_ATTEMPTS):
        rapid_steps += rejected_login("rapid_test_user", "wrong_pass",
                                      description=f"Rapid attempt {attempt + 1}")
        rapid_steps.append(Step(action="close_error"))
    rapid_steps[-1].expectations.append(expect("page_loaded", "login"))
    cases.append(ScenarioCase(
        scenario_id="login-rapid-attempts",
        name="Should handle rapid successive login attempts",
        tags=["login", "negative"],
        steps=rapid_steps,
    ))

    user = _first_valid(helper)
    if user is None:
        return cases

    long_input = helper.random_string(LONG_INPUT_LENGTH)
    cases.append(ScenarioCase(
        scenario_id="login-long-input",
        name="Should handle very long input strings",
        tags=["login", "negative"],
        credential=user,
        steps=[
            open_login(),
            login_as(long_input, user.password,
                     [expect("error_visible"), expect("on_page", "login")],
                     description="Log in with a very long username"),
            Step(action="close_error"),
            *rejected_login(user.username, long_input,
                            description="Log in with a very long password"),
        ],
    ))
    cases.append(ScenarioCase(
        scenario_id="login-retry-after-error",
        name="Should clear form and allow retry after error",
        tags=["login"],
        credential=user,
        steps=[
            open_login(),
            login_as("invalid_user", "wrong_password", [expect("error_visible")]),
            Step(action="clear_login_form"),
            login_as(user.username, user.password,
                     [expect("on_page", "inventory"), expect("page_loaded", "inventory")]),
        ],
    ))
    cases.append(ScenarioCase(
        scenario_id="login-session-persists",
        name="Should maintain session after successful login",
        tags=["login", "session"],
        credential=user,
        steps=[
            *signed_in(user),
            open_cart(),
            Step(action="go_back", expectations=[
                expect("on_page", "inventory"), expect("page_loaded", "inventory"),
            ]),
        ],
    ))
    cases.append(ScenarioCase(
        scenario_id="login-logout",
        name="Should logout successfully",
        tags=["login", "session"],
        credential=user,
        steps=[
            *signed_in(user),
            Step(action="logout", expectations=[
                expect("on_page", "login"), expect("page_loaded", "login"),
            ]),
        ],
    ))
    cases.append(ScenarioCase(
        scenario_id="login-reload",
        name="Should handle page refresh after login",
        tags=["login", "session"],
        credential=user,
        steps=[
            *signed_in(user),
            Step(action="reload", expectations=[expect("page_loaded", "inventory")]),
        ],
    ))
    return cases


# ============================================================================
# Cart scenarios
# ============================================================================


def cart_cases(helper: DataHelper) -> list[ScenarioCase]:
    user = _first_valid(helper)
    if user is None:
        logger.warning("No valid credentials in fixtures, skipping cart scenarios")
        return []
    all_products = helper.all_products()
    builders = [
        (1, _add_single),
        (3, _add_sampled),
        (1, _add_all),
        (2, _remove_from_catalog),
        (2, _remove_from_cart_page),
        (2, _clear_cart),
        (1, _readd_same_product),
        (4, _modify_contents),
        (2, _persists_across_navigation),
        (3, _validate_totals),
        (1, _survives_reload),
        (1, _details_match_catalog),
        (1, _checkout_available),
        (0, _empty_cart_state),
        (3, _end_to_end),
    ]
    cases = []
    for needed, build in builders:
        if len(all_products) < needed:
            logger.info("Skipping %s: needs %d products, fixtures have %d",
                        build.__name__.lstrip("_"), needed, len(all_products))
            continue
        case = build(helper, user)
        case.credential = user
        cases.append(case)
    return cases


def _add_single(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    product = helper.product(0)
    return ScenarioCase(
        scenario_id=f"cart-add-single-{normalize_product_key(product.name)}",
        name="Should add single product to cart and validate",
        tags=["cart", "smoke"],
        products=[product],
        steps=[
            *signed_in(user, [expect("badge_hidden"), expect("badge_count", value=0)]),
            add(product, badge=1),
            open_cart([
                expect("page_loaded", "cart"),
                expect("page_title", "cart", "Your Cart"),
                expect("cart_contains", product.name),
                expect("cart_count", value=1),
                expect("cart_names", values=[product.name]),
                expect("cart_total", value=parse_currency(product.price)),
            ]),
        ],
    )


def _add_sampled(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    products = helper.sample_products(3)
    steps = signed_in(user)
    for count, product in enumerate(products, 1):
        steps.append(add(product, badge=count))
    steps.append(open_cart([
        expect("cart_count", value=len(products)),
        expect("cart_names", values=[p.name for p in products]),
    ]))
    return ScenarioCase(
        scenario_id="cart-add-multiple",
        name="Should add multiple products to cart",
        tags=["cart", "sampled"],
        products=products,
        steps=steps,
    )


def _add_all(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    products = list(helper.all_products())
    return ScenarioCase(
        scenario_id="cart-add-all",
        name="Should add all available products to cart",
        tags=["cart"],
        products=products,
        steps=[
            *signed_in(user),
            Step(action="add_all_products", description="Add every product by position",
                 expectations=[expect("badge_count", value=len(products))]),
            open_cart([
                expect("cart_count", value=len(products)),
                expect("cart_names", values=[p.name for p in products]),
            ]),
        ],
    )


def _remove_from_catalog(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    first, second = helper.sample_products(2)
    return ScenarioCase(
        scenario_id="cart-remove-from-catalog",
        name="Should remove product from products page",
        tags=["cart", "sampled"],
        products=[first, second],
        steps=[
            *signed_in(user),
            add(first, badge=1),
            add(second, badge=2),
            remove(first, badge=1),
            open_cart([expect("cart_count", value=1), expect("cart_excludes", first.name)]),
        ],
    )


def _remove_from_cart_page(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    first, second = helper.sample_products(2)
    return ScenarioCase(
        scenario_id="cart-remove-from-cart-page",
        name="Should remove product from cart page",
        tags=["cart", "sampled"],
        products=[first, second],
        steps=[
            *signed_in(user),
            add(first),
            add(second, badge=2),
            open_cart([expect("cart_count", value=2)]),
            Step(action="remove_from_cart", target=first.name, expectations=[
                expect("cart_count", value=1),
                expect("cart_excludes", first.name),
                expect("cart_contains", second.name),
            ]),
        ],
    )


def _clear_cart(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    products = helper.sample_products(2)
    return ScenarioCase(
        scenario_id="cart-clear-all",
        name="Should remove all products and verify empty cart",
        tags=["cart", "sampled"],
        products=products,
        steps=[
            *signed_in(user),
            *[add(p) for p in products],
            open_cart([expect("cart_count", value=len(products))]),
            Step(action="clear_cart", expectations=[
                expect("cart_empty"), expect("cart_count", value=0),
            ]),
            Step(action="continue_shopping", expectations=[
                expect("on_page", "inventory"),
                expect("badge_hidden"),
                expect("badge_count", value=0),
            ]),
        ],
    )


def _readd_same_product(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    product = helper.product(0)
    return ScenarioCase(
        scenario_id="cart-readd-same-product",
        name="Should handle adding same product multiple times",
        tags=["cart", "idempotence"],
        products=[product],
        steps=[
            *signed_in(user),
            add(product, badge=1),
            remove(product, badge=0),
            add(product, badge=1),
            open_cart([
                expect("cart_count", value=1),
                expect("cart_quantities", values=["1"]),
            ]),
        ],
    )


def _modify_contents(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    p0, p1, p2, p3 = helper.sample_products(4)
    return ScenarioCase(
        scenario_id="cart-modify-contents",
        name="Should modify cart contents by removing and adding different products",
        tags=["cart", "sampled"],
        products=[p0, p1, p2, p3],
        steps=[
            *signed_in(user),
            add(p0),
            add(p1, badge=2),
            remove(p0),
            add(p2),
            add(p3, badge=3),
            open_cart([
                expect("cart_excludes", p0.name),
                expect("cart_names", values=[p1.name, p2.name, p3.name]),
            ]),
        ],
    )


def _persists_across_navigation(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    product = helper.product(1)
    return ScenarioCase(
        scenario_id="cart-persists-across-navigation",
        name="Should verify cart persistence during navigation",
        tags=["cart", "session"],
        products=[product],
        steps=[
            *signed_in(user),
            add(product),
            open_cart([expect("cart_contains", product.name)]),
            Step(action="continue_shopping", expectations=[
                expect("on_page", "inventory"),
                expect("badge_count", value=1),
                expect("product_in_cart", product.name),
            ]),
            open_cart([expect("cart_contains", product.name)]),
        ],
    )


def _validate_totals(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    products = helper.sample_products(3)
    return ScenarioCase(
        scenario_id="cart-validate-totals",
        name="Should validate cart totals and pricing",
        tags=["cart", "sampled", "pricing"],
        products=products,
        steps=[
            *signed_in(user),
            *[add(p) for p in products],
            open_cart([expect("cart_total", value=price_total(products))]),
        ],
    )


def _survives_reload(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    product = helper.random_product()
    return ScenarioCase(
        scenario_id="cart-survives-reload",
        name="Should handle cart operations with page refresh",
        tags=["cart", "session", "sampled"],
        products=[product],
        steps=[
            *signed_in(user),
            add(product, badge=1),
            Step(action="reload", expectations=[
                expect("badge_count", value=1),
                expect("product_in_cart", product.name),
            ]),
            open_cart([expect("cart_contains", product.name)]),
        ],
    )


def _details_match_catalog(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    product = helper.product(0)
    return ScenarioCase(
        scenario_id="cart-details-match-catalog",
        name="Should verify cart item details match product details",
        tags=["cart", "pricing"],
        products=[product],
        steps=[
            *signed_in(user, [expect("catalog_details", product.name, product.price)]),
            add(product),
            open_cart([expect("cart_matches_catalog", product.name)]),
        ],
    )


def _checkout_available(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    product = helper.product(0)
    return ScenarioCase(
        scenario_id="cart-checkout-available",
        name="Should verify checkout button availability",
        tags=["cart", "checkout"],
        products=[product],
        steps=[
            *signed_in(user),
            add(product),
            open_cart([expect("element_visible", selector=CartPage.checkout_button)]),
            Step(action="checkout", expectations=[expect("on_page", "checkout")]),
        ],
    )


def _empty_cart_state(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    return ScenarioCase(
        scenario_id="cart-empty-state",
        name="Should validate empty cart state and messaging",
        tags=["cart"],
        steps=[
            *signed_in(user),
            open_cart([expect("cart_empty"), expect("cart_count", value=0)]),
            Step(action="continue_shopping", expectations=[expect("on_page", "inventory")]),
        ],
    )


def _end_to_end(helper: DataHelper, user: UserCredential) -> ScenarioCase:
    products = helper.sample_products(3)
    steps = signed_in(user)
    for count, product in enumerate(products, 1):
        steps.append(add(product, badge=count))
    steps += [
        remove(products[0], badge=2),
        open_cart([
            expect("cart_count", value=2),
            expect("cart_names", values=[p.name for p in products[1:]]),
        ]),
        Step(action="clear_cart", expectations=[expect("cart_empty")]),
        Step(action="continue_shopping", expectations=[
            expect("on_page", "inventory"), expect("badge_hidden"),
        ]),
    ]
    return ScenarioCase(
        scenario_id="cart-end-to-end",
        name="Should add, remove and clear products end to end",
        tags=["cart", "smoke", "sampled"],
        products=products,
        steps=steps,
    )


# ============================================================================
# Assembly
# ============================================================================


def _first_valid(helper: DataHelper) -> Optional[UserCredential]:
    users = helper.all_valid_credentials()
    return users[0] if users else None


def build_scenarios(helper: DataHelper) -> list[ScenarioCase]:
    """Build the full scenario set from the helper's fixtures."""
    cases = [
        *valid_login_cases(helper),
        *invalid_login_cases(helper),
        *login_edge_cases(helper),
        *cart_cases(helper),
    ]
    seen: set[str] = set()
    for case in cases:
        if case.scenario_id in seen:
            raise ValueError(f"Duplicate scenario id: {case.scenario_id}")
        seen.add(case.scenario_id)
    logger.debug("Built %d scenarios", len(cases))
    return cases


def filter_scenarios(
    cases: Iterable[ScenarioCase],
    grep: str | None = None,
    tags: Iterable[str] = (),
) -> list[ScenarioCase]:
    """Keep cases whose id or name contains ``grep`` and that carry any of ``tags``."""
    wanted = {t.lower() for t in tags}
    needle = grep.lower() if grep else None
    selected = []
    for case in cases:
        if needle and needle not in case.scenario_id.lower() and needle not in case.name.lower():
            continue
        if wanted and not wanted.intersection(t.lower() for t in case.tags):
            continue
        selected.append(case)
    return selected
