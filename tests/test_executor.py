"""Tests for the executor module — scenario lifecycle, context isolation, failure capture."""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shopqa.errors import AssertionFailure
from shopqa.models.config import SuiteConfig
from shopqa.models.result import RunResult
from shopqa.models.scenario import Expectation, ScenarioCase, Step
from shopqa.runner.executor import ScenarioExecutor


def _make_config(**overrides) -> SuiteConfig:
    """Create a SuiteConfig for testing."""
    values = {"max_parallel_contexts": 2, "scenario_timeout_seconds": 5}
    values.update(overrides)
    return SuiteConfig(**values)


def _make_case(scenario_id="login-valid-standard", steps=None) -> ScenarioCase:
    """Create a ScenarioCase for testing."""
    return ScenarioCase(
        scenario_id=scenario_id,
        name=f"Scenario {scenario_id}",
        tags=["login"],
        steps=steps or [
            Step(action="open_login", expectations=[
                Expectation(expectation_type="on_page", target="login"),
            ]),
            Step(action="login", target="standard_user", value="secret_sauce", expectations=[
                Expectation(expectation_type="on_page", target="inventory"),
                Expectation(expectation_type="products_listed"),
            ]),
            Step(action="logout"),
        ],
    )


def _make_mock_page():
    """Create an AsyncMock page whose locator probes are plain mocks."""
    page = AsyncMock()
    page.url = "https://www.saucedemo.com/v1/inventory.html"
    page.on = Mock()  # Sync callback registration
    locator = Mock()
    locator.first.is_visible = AsyncMock(return_value=False)
    page.locator = Mock(return_value=locator)
    return page


def _make_mock_context(page=None):
    """Create an AsyncMock context that returns a mock page."""
    ctx = AsyncMock()
    ctx.new_page = AsyncMock(return_value=page or _make_mock_page())
    return ctx


# Patch targets for browser infrastructure
ASYNC_PW = "shopqa.runner.executor.async_playwright"
LAUNCH = "shopqa.runner.executor.launch_browser"
CONTEXT = "shopqa.runner.executor.create_context"
RUN_STEP = "shopqa.runner.executor.run_step"
CHECK = "shopqa.runner.executor.check_expectation"


async def _execute(executor, cases, context, step_effect=None, check_results=None,
                   context_effect=None):
    """Run executor.execute() with Playwright and the runners patched out."""
    with patch(ASYNC_PW) as mock_pw_cls, \
         patch(LAUNCH, return_value=AsyncMock()), \
         patch(CONTEXT, return_value=context) as ctx_fn, \
         patch(RUN_STEP, new_callable=AsyncMock) as mock_step, \
         patch(CHECK, new_callable=AsyncMock) as mock_check:
        if context_effect is not None:
            ctx_fn.side_effect = context_effect
        mock_pw_cls.return_value.__aenter__ = AsyncMock(return_value=AsyncMock())
        mock_pw_cls.return_value.__aexit__ = AsyncMock(return_value=False)
        if step_effect is not None:
            mock_step.side_effect = step_effect
        if check_results is not None:
            mock_check.side_effect = check_results
        else:
            mock_check.return_value = Mock(passed=True, message="OK", actual=None)

        result = await executor.execute(cases, sample_seed=42)
    return result, ctx_fn, mock_step, mock_check


class TestExecutorInit:
    """Tests for ScenarioExecutor initialization."""

    def test_creates_run_directory(self, tmp_path):
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        assert executor.run_dir.exists()
        assert executor.run_dir.parent == tmp_path

    def test_run_id_format(self, tmp_path):
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        assert executor.run_id.startswith("run_")
        assert len(executor.run_id) == 12  # "run_" + 8 hex chars


@pytest.mark.asyncio
class TestExecutorExecute:
    """Tests for the main execute() method."""

    async def test_single_scenario_pass(self, tmp_path):
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        result, _, mock_step, mock_check = await _execute(
            executor, [_make_case()], _make_mock_context())

        assert isinstance(result, RunResult)
        assert result.total_scenarios == 1
        assert result.passed == 1
        assert result.sample_seed == 42
        assert result.run_id == executor.run_id
        assert mock_step.await_count == 3
        assert mock_check.await_count == 3
        scenario = result.scenario_results[0]
        assert scenario.expectations_passed == 3
        assert [s.status for s in scenario.step_results] == ["pass", "pass", "pass"]

    async def test_failed_expectation_stops_scenario(self, tmp_path):
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        checks = [
            Mock(passed=True, message="OK", actual=None),
            Mock(passed=False, message="Expected path ending '/v1/inventory.html'",
                 actual="https://www.saucedemo.com/v1/index.html"),
        ]
        result, _, mock_step, mock_check = await _execute(
            executor, [_make_case()], _make_mock_context(), check_results=checks)

        scenario = result.scenario_results[0]
        assert result.failed == 1
        assert scenario.result == "fail"
        assert "on_page" in scenario.failure_reason
        assert scenario.observed["url"].endswith("/v1/inventory.html")
        assert "error_text" in scenario.observed
        assert [s.status for s in scenario.step_results] == ["pass", "fail", "skip"]
        # products_listed never evaluated, logout never run
        assert mock_check.await_count == 2
        assert mock_step.await_count == 2
        assert scenario.expectations_failed == 1

    async def test_step_exception_is_fail(self, tmp_path):
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        result, _, _, _ = await _execute(
            executor, [_make_case()], _make_mock_context(),
            step_effect=[None, PlaywrightTimeoutError("Timeout 500ms exceeded"), None])

        scenario = result.scenario_results[0]
        assert scenario.result == "fail"
        assert "Timeout 500ms" in scenario.failure_reason
        assert scenario.step_results[1].status == "fail"
        assert scenario.step_results[2].status == "skip"

    async def test_assertion_failure_observed_merged(self, tmp_path):
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        failure = AssertionFailure("Cart still holds 2 items", observed={"cart_count": 2})
        result, _, _, _ = await _execute(
            executor, [_make_case()], _make_mock_context(), step_effect=[failure])

        scenario = result.scenario_results[0]
        assert scenario.observed["cart_count"] == 2
        assert "url" in scenario.observed

    async def test_unexpected_exception_is_error(self, tmp_path):
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        result, _, _, _ = await _execute(
            executor, [_make_case()], _make_mock_context(),
            step_effect=RuntimeError("boom"))

        assert result.errors == 1
        assert result.scenario_results[0].result == "error"
        assert result.scenario_results[0].failure_reason == "boom"

    async def test_screenshot_on_failure(self, tmp_path):
        page = _make_mock_page()
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        result, _, _, _ = await _execute(
            executor, [_make_case()], _make_mock_context(page),
            check_results=[Mock(passed=False, message="nope", actual=None)])

        shots = result.scenario_results[0].screenshots
        assert len(shots) == 1
        assert "login-valid-standard" in shots[0]
        page.screenshot.assert_awaited_once()

    async def test_no_screenshot_when_disabled(self, tmp_path):
        page = _make_mock_page()
        executor = ScenarioExecutor(_make_config(screenshot_on_failure=False), runs_dir=tmp_path)
        await _execute(executor, [_make_case()], _make_mock_context(page),
                       check_results=[Mock(passed=False, message="nope", actual=None)])
        page.screenshot.assert_not_awaited()

    async def test_context_isolation_per_scenario(self, tmp_path):
        """Each scenario gets its own browser context, closed afterwards."""
        context = _make_mock_context()
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        cases = [_make_case("a"), _make_case("b"), _make_case("c")]
        result, ctx_fn, _, _ = await _execute(executor, cases, context)

        assert result.total_scenarios == 3
        assert ctx_fn.call_count == 3
        assert context.close.await_count == 3

    async def test_broken_context_only_fails_its_scenario(self, tmp_path):
        """A page that cannot be opened is an error for that scenario alone."""
        broken = _make_mock_context()
        broken.new_page.side_effect = PlaywrightError("Target closed")
        healthy = _make_mock_context()
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        cases = [_make_case("a"), _make_case("b")]
        result, _, _, _ = await _execute(executor, cases, healthy,
                                         context_effect=[broken, healthy])

        assert result.total_scenarios == 2
        assert result.errors == 1
        assert result.passed == 1
        errored = [r for r in result.scenario_results if r.result == "error"][0]
        assert "Target closed" in errored.failure_reason
        broken.close.assert_awaited_once()
        healthy.close.assert_awaited_once()

    async def test_context_creation_failure_is_error(self, tmp_path):
        """A context that cannot be created has nothing to close."""
        healthy = _make_mock_context()
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        cases = [_make_case("a"), _make_case("b")]
        result, _, _, _ = await _execute(
            executor, cases, healthy,
            context_effect=[PlaywrightError("Browser has been closed"), healthy])

        assert result.errors == 1
        assert result.passed == 1
        errored = [r for r in result.scenario_results if r.result == "error"][0]
        assert errored.failure_reason.startswith("Browser setup failed")
        healthy.close.assert_awaited_once()

    async def test_dialog_listener_registered(self, tmp_path):
        page = _make_mock_page()
        executor = ScenarioExecutor(_make_config(), runs_dir=tmp_path)
        await _execute(executor, [_make_case()], _make_mock_context(page))
        assert page.on.call_args.args[0] == "dialog"

    async def test_timeout_is_error(self, tmp_path):
        context = _make_mock_context()
        executor = ScenarioExecutor(_make_config(scenario_timeout_seconds=1), runs_dir=tmp_path)

        async def _hang(session, step):
            await asyncio.sleep(10)

        result, _, _, _ = await _execute(executor, [_make_case()], context, step_effect=_hang)

        scenario = result.scenario_results[0]
        assert scenario.result == "error"
        assert "timed out" in scenario.failure_reason
        context.close.assert_awaited_once()

    async def test_parallelism_bounded(self, tmp_path):
        """No more than max_parallel_contexts scenarios run at once."""
        state = {"active": 0, "peak": 0}

        async def _step(session, step):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1

        executor = ScenarioExecutor(_make_config(max_parallel_contexts=2), runs_dir=tmp_path)
        cases = [_make_case(str(i), steps=[Step(action="reload")]) for i in range(5)]
        result, _, _, _ = await _execute(executor, cases, _make_mock_context(), step_effect=_step)

        assert result.passed == 5
        assert state["peak"] <= 2
