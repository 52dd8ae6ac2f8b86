"""Configuration models for the scenario suite."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class SitePaths(BaseModel):
    """Path suffixes of the pages under test, relative to ``base_url``."""
    login: str = "/v1/index.html"
    inventory: str = "/v1/inventory.html"
    cart: str = "/v1/cart.html"
    checkout: str = "/v1/checkout-step-one.html"

    def for_page(self, name: str) -> str:
        if name not in type(self).model_fields:
            raise KeyError(f"Unknown page: {name}")
        return getattr(self, name)


class WaitConfig(BaseModel):
    # Bounded wait for primary actions (click, fill, read)
    action_timeout_ms: int = 10000
    # Bounded wait for visibility checks that return False on timeout
    visibility_timeout_ms: int = 5000
    # Short probe for elements that are often legitimately absent (cart badge)
    quick_check_timeout_ms: int = 1000
    # Upper bound for condition polling after state-changing actions
    settle_timeout_ms: int = 10000
    poll_interval_ms: int = 100
    navigation_timeout_ms: int = 30000


class SuiteConfig(BaseModel):
    base_url: str = "https://www.saucedemo.com"
    paths: SitePaths = Field(default_factory=SitePaths)
    waits: WaitConfig = Field(default_factory=WaitConfig)

    # Browser
    browser: str = "chromium"
    headless: bool = True
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)

    # Execution limits
    max_parallel_contexts: int = 3
    scenario_timeout_seconds: int = 90

    # Data
    fixtures_dir: Optional[str] = None
    sample_seed: Optional[int] = None

    # Reporting
    screenshot_on_failure: bool = True
    record_video: bool = False
    runs_dir: str = "./runs"
    report_output_dir: str = "./qa-reports"
    report_formats: list[str] = Field(default_factory=lambda: ["json"])

    @field_validator("base_url", mode="before")
    @classmethod
    def resolve_env_base_url(cls, v: str) -> str:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v

    @field_validator("browser")
    @classmethod
    def check_browser(cls, v: str) -> str:
        if v not in SUPPORTED_BROWSERS:
            raise ValueError(f"browser must be one of {', '.join(SUPPORTED_BROWSERS)}")
        return v

    @field_validator("max_parallel_contexts")
    @classmethod
    def check_parallelism(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_parallel_contexts must be at least 1")
        return v

    @classmethod
    def load(cls, path: str | Path) -> "SuiteConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls.model_validate(data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
