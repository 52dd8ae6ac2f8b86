"""Exception taxonomy for the scenario suite."""

from __future__ import annotations

from typing import Any


class ShopQAError(Exception):
    """Base class for errors raised by the suite itself."""


class FixtureLoadError(ShopQAError):
    """A fixture file is missing or malformed. Fatal for the whole run."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load fixture {source}: {reason}")


class FormatError(ShopQAError, ValueError):
    """A value does not match the textual pattern it is expected to follow."""

    def __init__(self, value: str, expected: str):
        self.value = value
        self.expected = expected
        super().__init__(f"{value!r} is not a valid {expected}")


class ProductLookupError(ShopQAError, LookupError):
    """A named entity could not be located uniquely on the rendered page."""

    def __init__(self, name: str, matches: int = 0, scope: str = "page"):
        self.name = name
        self.matches = matches
        self.scope = scope
        if matches == 0:
            detail = "no match"
        else:
            detail = f"{matches} matches"
        super().__init__(f"Could not locate '{name}' on {scope} ({detail})")


class AssertionFailure(ShopQAError, AssertionError):
    """Observed page state diverges from the expected post-condition."""

    def __init__(self, message: str, observed: dict[str, Any] | None = None):
        self.message = message
        self.observed = observed or {}
        super().__init__(message)
