"""Suite orchestrator — coordinates fixture loading, scenario build, execution and reporting."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import time
from pathlib import Path
from typing import Iterable

from shopqa.data.helpers import DataHelper
from shopqa.fixtures.store import FixtureStore
from shopqa.models.config import SuiteConfig
from shopqa.models.result import RunResult
from shopqa.models.scenario import ScenarioCase
from shopqa.reporter.reporter import Reporter
from shopqa.runner.executor import ScenarioExecutor
from shopqa.scenarios.catalog import build_scenarios, filter_scenarios

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates a full suite run."""

    def __init__(self, config: SuiteConfig):
        self.config = config
        self.runs_dir = Path(config.runs_dir)
        # A seed is always chosen so a failing sampled run can be replayed
        if config.sample_seed is None:
            self.seed = random.randrange(2**32)
        else:
            self.seed = config.sample_seed

    def build_cases(
        self, grep: str | None = None, tags: Iterable[str] = (),
    ) -> list[ScenarioCase]:
        """Load fixtures and build the filtered scenario set.

        Raises FixtureLoadError when a fixture file is missing or malformed.
        """
        fixtures = FixtureStore(self.config.fixtures_dir).load()
        logger.info("Loaded %d valid users, %d invalid users, %d products",
                    len(fixtures.valid_users), len(fixtures.invalid_users),
                    len(fixtures.products))
        logger.info("Sampling seed: %d", self.seed)
        helper = DataHelper(fixtures, seed=self.seed)
        cases = filter_scenarios(build_scenarios(helper), grep=grep, tags=tags)
        logger.debug("%d scenarios selected", len(cases))
        return cases

    def run(self, grep: str | None = None, tags: Iterable[str] = ()) -> dict:
        """Build, execute and report. Returns a summary dict for display."""
        return asyncio.run(self._run(grep, tags))

    async def _run(self, grep: str | None, tags: Iterable[str]) -> dict:
        start = time.time()
        logger.info("=== Starting suite run against %s ===", self.config.base_url)

        cases = self.build_cases(grep, tags)
        if not cases:
            logger.warning("No scenarios matched the given filters")

        self.runs_dir.mkdir(parents=True, exist_ok=True)
        executor = ScenarioExecutor(self.config, self.runs_dir)
        run_result = await executor.execute(cases, sample_seed=self.seed)
        self._save_run_result(run_result)

        previous_run = self._load_previous_run_result(run_result.run_id)
        reports = self._report(run_result, previous_run=previous_run)

        duration = time.time() - start
        logger.info("=== Suite run complete in %.1fs ===", duration)

        return {
            "run_id": run_result.run_id,
            "duration": round(duration, 2),
            "seed": self.seed,
            "results": {
                "total": run_result.total_scenarios,
                "passed": run_result.passed,
                "failed": run_result.failed,
                "errors": run_result.errors,
            },
            "failures": [
                (r.scenario_id, r.failure_reason or "")
                for r in run_result.scenario_results if r.result != "pass"
            ],
            "reports": reports,
        }

    def _report(
        self, run_result: RunResult, previous_run: RunResult | None = None,
    ) -> dict[str, str]:
        reporter = Reporter(self.config)
        return reporter.generate_reports(
            run_result,
            previous_run=previous_run,
            output_dir=Path(self.config.report_output_dir),
        )

    def _save_run_result(self, run_result: RunResult) -> None:
        """Persist RunResult to the run directory."""
        path = self.runs_dir / run_result.run_id / "run_result.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Saving run result to %s", path)
        with open(path, "w") as f:
            json.dump(run_result.model_dump(), f, indent=2, default=str)

    def _load_previous_run_result(self, current_run_id: str) -> RunResult | None:
        """Load the most recent previous RunResult from existing JSON reports."""
        report_dir = Path(self.config.report_output_dir)
        if not report_dir.exists():
            return None

        report_files = sorted(
            report_dir.glob("report_run_*.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )

        for report_path in report_files:
            try:
                with open(report_path) as f:
                    data = json.load(f)
                if data.get("run_id") == current_run_id:
                    continue
                return RunResult.model_validate(data)
            except (OSError, ValueError) as e:
                logger.debug("Could not load previous run from %s: %s", report_path, e)
                continue

        return None
