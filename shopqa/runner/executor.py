"""Scenario executor — runs scenario cases using Playwright."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Dialog, async_playwright
from playwright.async_api import Error as PlaywrightError

from shopqa.data.helpers import screenshot_name, utc_timestamp
from shopqa.errors import AssertionFailure, ShopQAError
from shopqa.models.config import SuiteConfig
from shopqa.models.result import ExpectationResult, RunResult, ScenarioResult, StepResult
from shopqa.models.scenario import ScenarioCase
from shopqa.utils.browser import create_context, launch_browser

from .expectation_checker import check_expectation
from .step_runner import ScenarioSession, run_step

logger = logging.getLogger(__name__)


class ScenarioExecutor:
    """Executes scenario cases against a live site using Playwright."""

    def __init__(self, config: SuiteConfig, runs_dir: Path):
        self.config = config
        self.runs_dir = runs_dir
        self.run_id = f"run_{uuid.uuid4().hex[:8]}"
        self.run_dir = runs_dir / self.run_id
        self.run_dir.mkdir(parents=True, exist_ok=True)

    async def execute(
        self, cases: list[ScenarioCase], sample_seed: Optional[int] = None,
    ) -> RunResult:
        """Execute scenarios and return the aggregated run result.

        One browser is shared by the run. Each scenario gets a fresh context,
        so cookies and the cart never leak between scenarios.
        """
        started_at = utc_timestamp()
        start_time = time.time()
        total = len(cases)
        logger.info("Starting execution of %d scenarios against %s",
                    total, self.config.base_url)

        async with async_playwright() as p:
            logger.debug("Launching %s (headless=%s)...",
                         self.config.browser, self.config.headless)
            browser = await launch_browser(p, self.config)

            semaphore = asyncio.Semaphore(self.config.max_parallel_contexts)

            async def _run_one(index: int, case: ScenarioCase) -> ScenarioResult:
                async with semaphore:
                    logger.info("Running scenario [%d/%d]: %s",
                                index + 1, total, case.name)
                    result = await self._run_isolated(browser, case)
                    logger.info("[%s] %s: %s (%.1fs)",
                                result.result.upper(), case.scenario_id, case.name,
                                result.duration_seconds)
                    return result

            scenario_results = list(await asyncio.gather(
                *(_run_one(i, case) for i, case in enumerate(cases))
            ))

            await browser.close()

        duration = time.time() - start_time
        run_result = RunResult(
            run_id=self.run_id,
            started_at=started_at,
            completed_at=utc_timestamp(),
            base_url=self.config.base_url,
            browser=self.config.browser,
            sample_seed=sample_seed,
            total_scenarios=len(scenario_results),
            passed=sum(1 for r in scenario_results if r.result == "pass"),
            failed=sum(1 for r in scenario_results if r.result == "fail"),
            errors=sum(1 for r in scenario_results if r.result == "error"),
            duration_seconds=round(duration, 2),
            scenario_results=scenario_results,
        )

        logger.info(
            "Execution complete: %d passed, %d failed, %d errors (%.1fs)",
            run_result.passed, run_result.failed, run_result.errors, duration,
        )
        return run_result

    async def _run_isolated(self, browser: Browser, case: ScenarioCase) -> ScenarioResult:
        """Run one scenario in its own context, bounded by the scenario timeout.

        Any failure to set the context up is an ``error`` for this scenario
        alone; sibling scenarios keep running.
        """
        scenario_start = time.time()
        video_dir = None
        if self.config.record_video:
            video_dir = str(self.run_dir / "videos" / case.scenario_id)

        context = None
        try:
            context = await create_context(browser, self.config, record_video_dir=video_dir)
            page = await context.new_page()
        except (ShopQAError, PlaywrightError) as e:
            logger.error("Could not open a browser context for %s: %s", case.scenario_id, e)
            if context is not None:
                await self._close_context(context, case)
            return self._error_result(case, scenario_start, f"Browser setup failed: {e}")

        try:
            session = ScenarioSession.open(page, self.config)

            async def _on_dialog(dialog: Dialog) -> None:
                session.dialogs.append(dialog.message)
                logger.warning("Dialog opened during %s: %s", case.scenario_id, dialog.message)
                await dialog.dismiss()

            page.on("dialog", _on_dialog)

            try:
                return await asyncio.wait_for(
                    self._run_scenario(session, case),
                    timeout=self.config.scenario_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.error("Scenario %s timed out after %ds",
                             case.scenario_id, self.config.scenario_timeout_seconds)
                return self._error_result(
                    case, scenario_start,
                    f"Scenario timed out after {self.config.scenario_timeout_seconds}s",
                    observed={"url": page.url},
                )
        finally:
            await self._close_context(context, case)

    @staticmethod
    async def _close_context(context: BrowserContext, case: ScenarioCase) -> None:
        try:
            await context.close()
        except PlaywrightError as e:
            logger.debug("Closing context for %s failed: %s", case.scenario_id, e)

    @staticmethod
    def _error_result(
        case: ScenarioCase, started: float, reason: str, observed: Optional[dict] = None,
    ) -> ScenarioResult:
        return ScenarioResult(
            scenario_id=case.scenario_id,
            name=case.name,
            tags=case.tags,
            result="error",
            duration_seconds=round(time.time() - started, 2),
            failure_reason=reason,
            observed=observed or {},
        )

    async def _run_scenario(self, session: ScenarioSession, case: ScenarioCase) -> ScenarioResult:
        """Run steps in order, checking each step's expectations before moving on."""
        scenario_start = time.time()
        step_results: list[StepResult] = []
        screenshots: list[str] = []
        passed_count = 0
        failed_count = 0
        failure_reason: Optional[str] = None
        observed: dict = {}
        status = "pass"

        try:
            for step_idx, step in enumerate(case.steps):
                if status != "pass":
                    step_results.append(StepResult(
                        step_index=step_idx, action=step.action, target=step.target,
                        description=step.description, status="skip",
                        error_message="Skipped after earlier failure",
                    ))
                    continue

                logger.debug("  Step %d/%d: %s %s",
                             step_idx + 1, len(case.steps), step.action,
                             step.description or step.target or "")
                step_start = time.time()
                step_result = StepResult(
                    step_index=step_idx, action=step.action, target=step.target,
                    description=step.description,
                )
                step_results.append(step_result)

                try:
                    await run_step(session, step)
                except (ShopQAError, PlaywrightError) as e:
                    step_result.status = "fail"
                    step_result.error_message = str(e)
                    step_result.duration_seconds = round(time.time() - step_start, 2)
                    status = "fail"
                    failure_reason = f"Step {step_idx + 1} ({step.action}) failed: {e}"
                    observed = await session.observed_state()
                    if isinstance(e, AssertionFailure):
                        observed.update(e.observed)
                    logger.debug("  Step %d failed: %s", step_idx + 1, e)
                    continue

                for exp in step.expectations:
                    outcome = await check_expectation(session, exp)
                    step_result.expectation_results.append(ExpectationResult(
                        expectation_type=exp.expectation_type,
                        target=exp.target,
                        expected_value=exp.expected_value,
                        description=exp.description,
                        passed=outcome.passed,
                        actual_value=outcome.actual,
                        message=outcome.message,
                    ))
                    if outcome.passed:
                        passed_count += 1
                        logger.debug("    %s: PASSED — %s", exp.expectation_type, outcome.message)
                        continue
                    failed_count += 1
                    step_result.status = "fail"
                    status = "fail"
                    label = exp.description or exp.expectation_type
                    failure_reason = f"Step {step_idx + 1} ({step.action}): {label}: {outcome.message}"
                    observed = await session.observed_state()
                    logger.debug("    %s: FAILED — %s", exp.expectation_type, outcome.message)
                    break

                step_result.duration_seconds = round(time.time() - step_start, 2)

        except Exception as e:
            logger.error("Scenario %s crashed: %s", case.scenario_id, e)
            status = "error"
            failure_reason = str(e)
            observed = await session.observed_state()

        if status != "pass" and self.config.screenshot_on_failure:
            shot_dir = self.run_dir / "screenshots"
            shot_dir.mkdir(parents=True, exist_ok=True)
            path = shot_dir / f"{screenshot_name(case.scenario_id)}.png"
            saved = await session.surface.screenshot(str(path))
            if saved:
                screenshots.append(saved)

        return ScenarioResult(
            scenario_id=case.scenario_id,
            name=case.name,
            tags=case.tags,
            result=status,
            duration_seconds=round(time.time() - scenario_start, 2),
            failure_reason=failure_reason,
            observed=observed,
            screenshots=screenshots,
            step_results=step_results,
            expectations_passed=passed_count,
            expectations_failed=failed_count,
        )
