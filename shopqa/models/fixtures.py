"""Fixture records: user credentials and catalog products."""

from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PRICE_PATTERN = re.compile(r"^\$\d+\.\d{2}$")


class UserCredential(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    identifier: str = Field(alias="id")
    username: str
    password: str
    classification: Literal["valid", "invalid"]
    expected_error: Optional[str] = Field(default=None, alias="expectedError")
    user_type: Optional[str] = Field(default=None, alias="userType")

    @model_validator(mode="after")
    def check_expected_error(self) -> "UserCredential":
        if self.classification == "invalid" and not self.expected_error:
            raise ValueError(f"invalid credential '{self.identifier}' needs an expectedError")
        if self.classification == "valid" and self.expected_error is not None:
            raise ValueError(f"valid credential '{self.identifier}' must not carry an expectedError")
        return self

    @property
    def label(self) -> str:
        return self.user_type or self.identifier


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    price: str
    description: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("product name must not be blank")
        return v

    @field_validator("price")
    @classmethod
    def price_format(cls, v: str) -> str:
        if not PRICE_PATTERN.match(v):
            raise ValueError(f"price {v!r} does not match $D+.DD")
        return v


class FixtureSet(BaseModel):
    """Everything loaded from the fixture store. Read-only for a whole run."""
    model_config = ConfigDict(frozen=True)

    valid_users: tuple[UserCredential, ...] = ()
    invalid_users: tuple[UserCredential, ...] = ()
    products: tuple[Product, ...] = ()

    @model_validator(mode="after")
    def check_unique_names(self) -> "FixtureSet":
        seen: set[str] = set()
        for product in self.products:
            if product.name in seen:
                raise ValueError(f"duplicate product name '{product.name}'")
            seen.add(product.name)
        for expected, group in (("valid", self.valid_users), ("invalid", self.invalid_users)):
            identifiers: set[str] = set()
            for user in group:
                if user.identifier in identifiers:
                    raise ValueError(f"duplicate {expected} credential id '{user.identifier}'")
                identifiers.add(user.identifier)
                if user.classification != expected:
                    raise ValueError(
                        f"credential '{user.identifier}' is classified {user.classification} "
                        f"but listed with {expected} users"
                    )
        return self
