"""Fixture store — loads user and product records from JSON files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from shopqa.errors import FixtureLoadError
from shopqa.models.fixtures import FixtureSet, Product, UserCredential

logger = logging.getLogger(__name__)

DEFAULT_FIXTURES_DIR = Path(__file__).parent / "data"

USERS_FILE = "users.json"
PRODUCTS_FILE = "products.json"


class FixtureStore:
    """Reads the static fixture files for one run.

    The loaded set is immutable and meant to be passed around explicitly;
    nothing here caches it globally.
    """

    def __init__(self, fixtures_dir: str | Path | None = None):
        self.fixtures_dir = Path(fixtures_dir) if fixtures_dir else DEFAULT_FIXTURES_DIR

    def load(self) -> FixtureSet:
        """Load users and products. Raises FixtureLoadError on any problem."""
        users = self._read(USERS_FILE)
        products = self._read(PRODUCTS_FILE)

        valid = self._collection(users, "validUsers", USERS_FILE)
        invalid = self._collection(users, "invalidUsers", USERS_FILE)
        product_records = self._collection(products, "products", PRODUCTS_FILE)

        try:
            fixture_set = FixtureSet(
                valid_users=tuple(
                    UserCredential(**record, classification="valid") for record in valid
                ),
                invalid_users=tuple(
                    UserCredential(**record, classification="invalid") for record in invalid
                ),
                products=tuple(Product(**record) for record in product_records),
            )
        except (ValidationError, TypeError) as e:
            raise FixtureLoadError(str(self.fixtures_dir), str(e)) from e

        logger.debug(
            "Loaded fixtures from %s: %d valid users, %d invalid users, %d products",
            self.fixtures_dir, len(fixture_set.valid_users),
            len(fixture_set.invalid_users), len(fixture_set.products),
        )
        return fixture_set

    def _read(self, filename: str) -> dict:
        path = self.fixtures_dir / filename
        if not path.exists():
            raise FixtureLoadError(filename, f"file not found at {path}")
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise FixtureLoadError(filename, str(e)) from e
        if not isinstance(data, dict):
            raise FixtureLoadError(filename, "top level must be an object")
        return data

    @staticmethod
    def _collection(data: dict, key: str, filename: str) -> list[dict]:
        records = data.get(key)
        if not isinstance(records, list):
            raise FixtureLoadError(filename, f"missing '{key}' list")
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise FixtureLoadError(filename, f"{key}[{index}] is not an object")
        return records
