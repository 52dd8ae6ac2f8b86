"""Data access helpers — fixture selection and small pure utilities."""

from __future__ import annotations

import logging
import random
import re
import string
from collections import Counter
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable

from shopqa.errors import FormatError
from shopqa.models.fixtures import FixtureSet, Product, UserCredential

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = "$€£¥"
_DECIMAL_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_WHITESPACE_RE = re.compile(r"\s+")


class DataHelper:
    """Selects fixture records for scenarios.

    Selections are copies, so a scenario can never alter the shared fixture
    set. Sampling uses a private ``random.Random``; pass ``seed`` to make a
    run's random picks reproducible.
    """

    def __init__(self, fixtures: FixtureSet, seed: int | None = None):
        self.fixtures = fixtures
        self.seed = seed
        self._rng = random.Random(seed)

    def all_valid_credentials(self) -> tuple[UserCredential, ...]:
        return tuple(u.model_copy() for u in self.fixtures.valid_users)

    def all_invalid_credentials(self) -> tuple[UserCredential, ...]:
        return tuple(u.model_copy() for u in self.fixtures.invalid_users)

    def all_products(self) -> tuple[Product, ...]:
        return tuple(p.model_copy() for p in self.fixtures.products)

    def product(self, index: int) -> Product:
        return self.fixtures.products[index].model_copy()

    def sample_products(self, n: int) -> list[Product]:
        """Return ``min(n, len(products))`` distinct products in random order."""
        if n < 0:
            raise ValueError(f"cannot sample {n} products")
        pool = list(self.all_products())
        count = min(n, len(pool))
        picked = self._rng.sample(pool, count)
        logger.debug("Sampled %d products: %s", count, [p.name for p in picked])
        return picked

    def random_product(self) -> Product:
        return self._rng.choice(self.all_products())

    def random_string(self, length: int = 10) -> str:
        return generate_random_string(length, self._rng)


def parse_currency(text: str) -> Decimal:
    """Parse a price such as ``"$29.99"`` or ``"29.99"`` into a Decimal."""
    raw = text.strip()
    if raw and raw[0] in CURRENCY_SYMBOLS:
        raw = raw[1:]
    if not _DECIMAL_RE.match(raw):
        raise FormatError(text, "currency amount")
    try:
        return Decimal(raw)
    except InvalidOperation as e:
        raise FormatError(text, "currency amount") from e


def normalize_product_key(name: str) -> str:
    """Turn a display name into the key the storefront uses in its markup."""
    key = _WHITESPACE_RE.sub("-", name.lower())
    for ch in "().":
        key = key.replace(ch, "")
    return key


def generate_random_string(length: int = 10, rng: random.Random | None = None) -> str:
    alphabet = string.ascii_letters + string.digits
    chooser = rng or random
    return "".join(chooser.choice(alphabet) for _ in range(length))


def same_members(first: Iterable[str], second: Iterable[str]) -> bool:
    """True when both iterables hold the same items, ignoring order."""
    return Counter(first) == Counter(second)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def screenshot_name(base: str) -> str:
    """Build a filesystem-safe, timestamped screenshot name."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
    safe = re.sub(r"[^A-Za-z0-9_-]+", "-", base).strip("-") or "screenshot"
    return f"{safe}-{stamp}"
