# domain/entities/product.py
from enum import Enum
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ProductStatus(str, Enum):
    """Catalog lifecycle of a product; retired products stay referenced by old orders."""
    ACTIVE = "active"
    RETIRED = "retired"


class Product(BaseModel):
    """Entity representing a catalog product as seen by checkout."""
    id: Optional[str] = Field(None, description="Unique identifier of the product as a string")
    name: str = Field(..., description="Name of the product")
    price: Decimal = Field(..., ge=0, description="Unit price of the product")
    stock: int = Field(..., ge=0, description="Available stock quantity, must be non-negative")
    image: Optional[str] = Field(None, description="Primary image URL")
    status: ProductStatus = Field(ProductStatus.ACTIVE, description="Catalog status (active/retired)")

    @model_validator(mode="before")
    @classmethod
    def map_legacy_active_flag(cls, data):
        """Documents written by the storefront carry `isActive`/`is_active` booleans instead of a status."""
        if isinstance(data, dict) and "status" not in data:
            for key in ("is_active", "isActive"):
                if key in data:
                    data = dict(data)
                    flag = data.pop(key)
                    data["status"] = ProductStatus.ACTIVE if flag else ProductStatus.RETIRED
                    break
        return data

    @field_validator("name")
    def validate_name(cls, value):
        """Ensure name is a non-empty string."""
        if not value or not isinstance(value, str):
            raise ValueError("Name must be a non-empty string")
        return value.strip()

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE
