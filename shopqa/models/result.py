"""Result data structures produced by the executor."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ExpectationResult(BaseModel):
    """Result of evaluating a single post-condition."""
    expectation_type: str
    target: Optional[str] = None
    expected_value: Optional[str] = None
    description: str = ""
    passed: bool = False
    actual_value: Optional[str] = None
    message: str = ""


class StepResult(BaseModel):
    """Result of executing a single scenario step and its post-conditions."""
    step_index: int
    action: str
    target: Optional[str] = None
    description: str = ""
    status: str = "pass"  # pass, fail, skip
    error_message: Optional[str] = None
    duration_seconds: float = 0.0
    expectation_results: list[ExpectationResult] = Field(default_factory=list)


class ScenarioResult(BaseModel):
    scenario_id: str
    name: str
    tags: list[str] = Field(default_factory=list)
    result: str  # pass, fail, error
    duration_seconds: float = 0.0
    failure_reason: Optional[str] = None
    # Last observed state when the scenario stopped: url, error_text
    observed: dict[str, Any] = Field(default_factory=dict)
    screenshots: list[str] = Field(default_factory=list)
    step_results: list[StepResult] = Field(default_factory=list)
    expectations_passed: int = 0
    expectations_failed: int = 0


class RunResult(BaseModel):
    run_id: str
    started_at: str
    completed_at: str
    base_url: str
    browser: str = "chromium"
    sample_seed: Optional[int] = None
    total_scenarios: int = 0
    passed: int = 0
    failed: int = 0
    errors: int = 0
    duration_seconds: float = 0.0
    scenario_results: list[ScenarioResult] = Field(default_factory=list)
    summary: str = ""
