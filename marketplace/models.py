"""
Pydantic Models - API Entities and Request Bodies

Field names are snake_case in Python and camelCase on the wire
(the API is a JavaScript backend). Use `model_dump(by_alias=True)`
when sending a body.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for models exchanged with the API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ============================================================
# Enums
# ============================================================

class AccountType(str, Enum):
    """Registration account kind."""
    BUYER = "buyer"
    STORE = "store"  # Store owner, gets a Store record


# ============================================================
# Entities
# ============================================================

class Store(ApiModel):
    """Seller storefront owned by a store account."""
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class User(ApiModel):
    """Authenticated account."""
    id: str
    username: str
    email: Optional[str] = None
    is_admin: bool = False
    store: Optional[Store] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_store_owner(self) -> bool:
        return self.store is not None


class Part(ApiModel):
    """Catalog item (a car part listed by a store)."""
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    discount_price: Optional[Decimal] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    is_available: bool = True
    category: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None
    store: Optional[Store] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_string(cls, value: Any) -> Any:
        # Some rows store the year as a number
        if isinstance(value, int):
            return str(value)
        return value

    @property
    def effective_price(self) -> Decimal:
        """Discounted price when present and lower than the list price."""
        if self.discount_price is not None and self.discount_price < self.price:
            return self.discount_price
        return self.price


# ============================================================
# Requests / Responses
# ============================================================

class LoginRequest(ApiModel):
    username: str
    password: str


class RegisterRequest(ApiModel):
    """Buyer or store registration. Store accounts must name their store."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: Optional[str] = None
    user_type: AccountType = AccountType.BUYER
    store_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def _store_fields(self) -> "RegisterRequest":
        if self.user_type == AccountType.STORE and not self.store_name:
            raise ValueError("store_name is required for store accounts")
        return self


class PartRequest(ApiModel):
    """Body for creating a part; for updates only the set fields are sent."""
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    discount_price: Optional[Decimal] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    is_available: Optional[bool] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None

    def to_payload(self) -> dict:
        """JSON-ready body containing only the fields that were set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class AuthResponse(ApiModel):
    """Login/register result."""
    message: Optional[str] = None
    token: Optional[str] = None
    user: User

