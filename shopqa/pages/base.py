"""Capability interface shared by the page abstractions."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .surface import PageSurface


@runtime_checkable
class PageUnderTest(Protocol):
    """One logical screen of the storefront.

    Implementations hold a ``PageSurface`` rather than extending a common
    base class; ``act`` dispatches a named user input to the page's verbs.
    """

    name: str
    surface: PageSurface

    @property
    def path(self) -> str: ...

    async def navigate(self) -> None: ...

    async def is_visible(self, selector: str) -> bool: ...

    async def read_text(self, selector: str) -> str: ...

    async def act(self, verb: str, *args: Any) -> Any: ...


async def dispatch(page: PageUnderTest, verbs: dict[str, Any], verb: str, *args: Any) -> Any:
    """Run ``verbs[verb](*args)`` or fail loudly for an unsupported verb."""
    handler = verbs.get(verb)
    if handler is None:
        raise ValueError(f"{page.name} page does not support '{verb}'")
    return await handler(*args)
