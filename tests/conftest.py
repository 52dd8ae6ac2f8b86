"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from playwright.async_api import Browser, BrowserContext, Page

from shopqa.data.helpers import DataHelper
from shopqa.models.config import SuiteConfig, WaitConfig
from shopqa.models.fixtures import FixtureSet, Product, UserCredential
from shopqa.models.result import RunResult, ScenarioResult
from shopqa.pages.cart import CartPage
from shopqa.pages.catalog import CatalogPage
from shopqa.pages.login import LoginPage
from shopqa.pages.surface import PageSurface
from shopqa.runner.step_runner import ScenarioSession

BASE_URL = "https://www.saucedemo.com"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def suite_config(tmp_path: Path) -> SuiteConfig:
    """Create a suite configuration with short waits."""
    return SuiteConfig(
        base_url=BASE_URL,
        waits=WaitConfig(
            action_timeout_ms=500,
            visibility_timeout_ms=200,
            quick_check_timeout_ms=100,
            settle_timeout_ms=200,
            poll_interval_ms=10,
            navigation_timeout_ms=1000,
        ),
        max_parallel_contexts=2,
        scenario_timeout_seconds=5,
        runs_dir=str(tmp_path / "runs"),
        report_output_dir=str(tmp_path / "reports"),
    )


# ============================================================================
# Fixture Data
# ============================================================================


@pytest.fixture
def valid_user() -> UserCredential:
    """Create a valid credential."""
    return UserCredential(
        id="standard", username="standard_user", password="secret_sauce",
        classification="valid", userType="standard",
    )


@pytest.fixture
def invalid_user() -> UserCredential:
    """Create an invalid credential."""
    return UserCredential(
        id="locked_out", username="locked_out_user", password="secret_sauce",
        classification="invalid",
        expectedError="Epic sadface: Sorry, this user has been locked out.",
    )


@pytest.fixture
def products() -> tuple[Product, ...]:
    """Create a small product catalog."""
    return (
        Product(name="Sauce Labs Backpack", price="$29.99", description="carry.allTheThings()"),
        Product(name="Sauce Labs Bike Light", price="$9.99", description="A red light"),
        Product(name="Sauce Labs Bolt T-Shirt", price="$15.99", description="Bolt"),
        Product(name="Sauce Labs Fleece Jacket", price="$49.99", description="Fleece"),
    )


@pytest.fixture
def fixture_set(valid_user, invalid_user, products) -> FixtureSet:
    """Create a fixture set from the single records above."""
    return FixtureSet(valid_users=(valid_user,), invalid_users=(invalid_user,), products=products)


@pytest.fixture
def helper(fixture_set: FixtureSet) -> DataHelper:
    """Create a seeded data helper."""
    return DataHelper(fixture_set, seed=1234)


def write_fixture_files(directory: Path, users: dict, products: dict) -> Path:
    """Write users.json and products.json into ``directory``."""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "users.json").write_text(json.dumps(users))
    (directory / "products.json").write_text(json.dumps(products))
    return directory


@pytest.fixture
def fixture_files(tmp_path: Path):
    """Fixture that provides the write_fixture_files function."""
    return lambda users, products: write_fixture_files(tmp_path / "fixtures", users, products)


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def run_result() -> RunResult:
    """Create a run result with one pass and one failure."""
    return RunResult(
        run_id="run_0000aaaa",
        started_at="2025-01-01T00:00:00Z",
        completed_at="2025-01-01T00:01:00Z",
        base_url=BASE_URL,
        total_scenarios=2,
        passed=1,
        failed=1,
        duration_seconds=60.0,
        scenario_results=[
            ScenarioResult(scenario_id="login-valid-standard", name="Login standard",
                           tags=["login"], result="pass"),
            ScenarioResult(scenario_id="cart-clear-all", name="Clear cart", tags=["cart"],
                           result="fail", failure_reason="Cart still holds 1 items",
                           observed={"url": f"{BASE_URL}/v1/cart.html", "error_text": ""}),
        ],
    )


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_page() -> AsyncMock:
    """Create a mock Playwright page."""
    page = AsyncMock(spec=Page)
    page.url = f"{BASE_URL}/v1/index.html"
    page.screenshot = AsyncMock()
    page.goto = AsyncMock()
    page.reload = AsyncMock()
    page.go_back = AsyncMock()
    page.click = AsyncMock()
    page.fill = AsyncMock()
    page.text_content = AsyncMock(return_value="")
    page.locator = Mock(return_value=AsyncMock())
    page.wait_for_selector = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.on = Mock()
    return page


async def _run_predicate_once(predicate, description=""):
    return await predicate()


@pytest.fixture
def mock_surface(suite_config: SuiteConfig) -> MagicMock:
    """Create a PageSurface mock whose polling evaluates the predicate once."""
    surface = MagicMock(spec=PageSurface)
    surface.config = suite_config
    surface.waits = suite_config.waits
    surface.url = f"{BASE_URL}/v1/index.html"
    surface.on_path = Mock(return_value=False)
    surface.wait_until = AsyncMock(side_effect=_run_predicate_once)
    surface.is_visible = AsyncMock(return_value=True)
    surface.is_hidden = AsyncMock(return_value=True)
    surface.is_present_now = AsyncMock(return_value=False)
    surface.read_text = AsyncMock(return_value="")
    surface.read_all_texts = AsyncMock(return_value=[])
    surface.count = AsyncMock(return_value=0)
    surface.unique_row = AsyncMock(return_value=Mock(name="row"))
    surface.nth_row = AsyncMock(return_value=Mock(name="row"))
    surface.wait_visible_in = AsyncMock(return_value=True)
    surface.is_visible_in = AsyncMock(return_value=True)
    surface.text_in = AsyncMock(return_value="")
    return surface


@pytest.fixture
def session(mock_surface: MagicMock) -> ScenarioSession:
    """Create a scenario session wired to the mock surface."""
    return ScenarioSession(
        surface=mock_surface,
        login=LoginPage(mock_surface),
        catalog=CatalogPage(mock_surface),
        cart=CartPage(mock_surface),
    )


@pytest.fixture
def mock_context() -> AsyncMock:
    """Create a mock Playwright browser context."""
    context = AsyncMock(spec=BrowserContext)
    context.new_page = AsyncMock()
    return context


@pytest.fixture
def mock_browser() -> AsyncMock:
    """Create a mock Playwright browser."""
    browser = AsyncMock(spec=Browser)
    browser.new_context = AsyncMock()
    return browser
