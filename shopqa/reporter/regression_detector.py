"""Regression detection — compares run results to find new failures."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from shopqa.models.result import RunResult

logger = logging.getLogger(__name__)


@dataclass
class Regression:
    scenario_id: str
    name: str
    previous_result: str
    current_result: str
    failure_reason: str | None = None


def detect_regressions(previous: RunResult, current: RunResult) -> list[Regression]:
    """Compare two runs and find scenarios that regressed (pass -> fail/error).

    Scenarios are matched by ``scenario_id``. Ids that only exist in one of
    the runs are ignored.
    """
    prev_by_id = {r.scenario_id: r for r in previous.scenario_results}

    regressions = []
    for result in current.scenario_results:
        prev = prev_by_id.get(result.scenario_id)
        if prev and prev.result == "pass" and result.result in ("fail", "error"):
            regressions.append(Regression(
                scenario_id=result.scenario_id,
                name=result.name,
                previous_result=prev.result,
                current_result=result.result,
                failure_reason=result.failure_reason,
            ))

    if regressions:
        logger.warning("Detected %d regressions", len(regressions))
    return regressions
