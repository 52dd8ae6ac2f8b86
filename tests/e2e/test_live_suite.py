"""Live end-to-end runs against the storefront. Set SHOPQA_LIVE=1 to enable."""

import os

import pytest

from shopqa.data.helpers import DataHelper
from shopqa.fixtures.store import FixtureStore
from shopqa.models.config import SuiteConfig
from shopqa.runner.executor import ScenarioExecutor
from shopqa.scenarios.catalog import build_scenarios, filter_scenarios

pytestmark = [
    pytest.mark.e2e,
    pytest.mark.skipif(os.environ.get("SHOPQA_LIVE") != "1",
                       reason="live storefront runs need SHOPQA_LIVE=1"),
]


@pytest.fixture(scope="module")
def live_cases():
    helper = DataHelper(FixtureStore().load(), seed=int(os.environ.get("SHOPQA_SEED", "0")))
    return build_scenarios(helper)


async def _run(cases, tmp_path):
    config = SuiteConfig(
        base_url=os.environ.get("SHOPQA_BASE_URL", "https://www.saucedemo.com"),
        runs_dir=str(tmp_path),
    )
    return await ScenarioExecutor(config, tmp_path).execute(cases)


def _describe(run) -> str:
    return "; ".join(f"{r.scenario_id}: {r.failure_reason}"
                     for r in run.scenario_results if r.result != "pass")


@pytest.mark.asyncio
class TestLiveSuite:
    """Scenario groups executed in a real browser."""

    async def test_smoke(self, live_cases, tmp_path):
        run = await _run(filter_scenarios(live_cases, tags=["smoke"]), tmp_path)
        assert run.total_scenarios > 0
        assert run.passed == run.total_scenarios, _describe(run)

    async def test_negative_logins(self, live_cases, tmp_path):
        run = await _run(filter_scenarios(live_cases, grep="login-invalid"), tmp_path)
        assert run.passed == run.total_scenarios, _describe(run)

    async def test_cart_end_to_end(self, live_cases, tmp_path):
        run = await _run(filter_scenarios(live_cases, grep="cart-end-to-end"), tmp_path)
        assert run.total_scenarios == 1
        assert run.passed == 1, _describe(run)
