"""Snapshots of what a page renders for one item."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class ItemDetails(BaseModel):
    name: str
    price: str
    description: str = ""
    quantity: Optional[str] = None  # only rendered in the cart
