"""Schemas shared by list endpoints."""

import math

from pydantic import BaseModel, Field


class PaginationMeta(BaseModel):
    """Pagination metadata for list responses."""

    page: int = Field(description="Current page number (1-indexed)")
    size: int = Field(description="Items per page")
    total: int = Field(description="Total number of items")
    total_pages: int = Field(description="Total number of pages")

    @classmethod
    def build(cls, page: int, size: int, total: int) -> "PaginationMeta":
        return cls(
            page=page,
            size=size,
            total=total,
            total_pages=math.ceil(total / size) if total else 0,
        )


class MoneyMeta(BaseModel):
    """Metadata describing how monetary amounts are represented."""

    currency: str = Field(description="ISO currency code (e.g., RUB)")
    minor_unit: int = Field(description="Number of decimal places for the currency")
