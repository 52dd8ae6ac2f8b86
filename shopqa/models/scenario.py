"""Scenario data structures produced by the scenario catalog."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from shopqa.models.fixtures import Product, UserCredential

ACTION_TYPES = frozenset({
    "open_login", "login", "clear_login_form", "close_error", "click_login_field",
    "add_product", "remove_product", "add_product_by_index", "add_all_products",
    "open_cart", "remove_from_cart", "clear_cart", "continue_shopping", "checkout",
    "logout", "reload", "go_back",
})

EXPECTATION_TYPES = frozenset({
    "on_page", "page_loaded", "page_title", "logo_visible",
    "error_visible", "error_hidden", "error_text", "error_contains",
    "products_listed", "prices_formatted", "catalog_details",
    "badge_count", "badge_hidden", "product_in_cart", "product_not_in_cart",
    "cart_count", "cart_contains", "cart_excludes", "cart_names", "cart_empty",
    "cart_total", "cart_quantities", "cart_matches_catalog",
    "text_contains", "element_visible", "no_dialogs",
})


class Expectation(BaseModel):
    expectation_type: str
    target: Optional[str] = None  # page name or product name
    expected_value: Optional[str] = None
    # Used by set-valued checks such as cart_names / cart_quantities
    expected_values: list[str] = Field(default_factory=list)
    selector: Optional[str] = None
    description: str = ""

    @field_validator("expectation_type")
    @classmethod
    def known_type(cls, v: str) -> str:
        if v not in EXPECTATION_TYPES:
            raise ValueError(f"Unknown expectation type: {v}")
        return v


class Step(BaseModel):
    action: str
    target: Optional[str] = None  # product name, username, field, index
    value: Optional[str] = None  # password
    description: str = ""
    # Post-conditions that must hold before the next step runs
    expectations: list[Expectation] = Field(default_factory=list)

    @field_validator("action")
    @classmethod
    def known_action(cls, v: str) -> str:
        if v not in ACTION_TYPES:
            raise ValueError(f"Unknown action: {v}")
        return v


class ScenarioCase(BaseModel):
    scenario_id: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    credential: Optional[UserCredential] = None
    products: list[Product] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)

    @property
    def expectation_count(self) -> int:
        return sum(len(s.expectations) for s in self.steps)
