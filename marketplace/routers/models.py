"""
Web UI Pydantic Models

Request bodies for the cart and catalog endpoints.
"""
from pydantic import BaseModel, Field


# ==================== CART MODELS ====================

class AddToCartRequest(BaseModel):
    part_id: str
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int  # <= 0 removes the line


# ==================== PARTS MODELS ====================

class PartsQuery(BaseModel):
    category: str | None = None
    brand: str | None = None
    model: str | None = None
    year: str | None = None
    search: str | None = None
