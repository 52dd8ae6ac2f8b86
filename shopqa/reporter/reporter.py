"""Report generation orchestration."""

from __future__ import annotations

import logging
from pathlib import Path

from shopqa.models.config import SuiteConfig
from shopqa.models.result import RunResult

from .json_report import generate_json_report
from .regression_detector import detect_regressions

logger = logging.getLogger(__name__)


class Reporter:
    """Generates reports from scenario results."""

    def __init__(self, config: SuiteConfig):
        self.config = config

    def generate_reports(
        self,
        run_result: RunResult,
        previous_run: RunResult | None = None,
        output_dir: Path | None = None,
    ) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        out_dir = output_dir or Path(self.config.report_output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        generated = {}
        logger.debug("Report output directory: %s", out_dir)

        if not run_result.summary:
            run_result.summary = self.basic_summary(run_result)

        regressions = []
        if previous_run:
            logger.debug("Detecting regressions against previous run...")
            regressions = detect_regressions(previous_run, run_result)
            logger.debug("Found %d regressions", len(regressions))

        if "json" in self.config.report_formats:
            path = out_dir / f"report_{run_result.run_id}.json"
            logger.debug("Generating JSON report...")
            generate_json_report(run_result, regressions, path)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        unknown = set(self.config.report_formats) - {"json"}
        if unknown:
            logger.warning("Ignoring unsupported report formats: %s", ", ".join(sorted(unknown)))

        return generated

    @staticmethod
    def basic_summary(run_result: RunResult) -> str:
        parts = [
            f"Tested {run_result.base_url} with {run_result.browser}: "
            f"{run_result.total_scenarios} scenarios in {run_result.duration_seconds:.1f}s.",
            f"Results: {run_result.passed} passed, {run_result.failed} failed, "
            f"{run_result.errors} errors.",
        ]
        if run_result.sample_seed is not None:
            parts.append(f"Sample seed: {run_result.sample_seed}.")
        failures = [r for r in run_result.scenario_results if r.result != "pass"]
        if failures:
            parts.append(f"Key failures: {', '.join(f.scenario_id for f in failures[:5])}")
        return " ".join(parts)
