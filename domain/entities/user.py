# domain/entities/user.py
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

ADMIN_ROLE = "admin"


class Buyer(BaseModel):
    """Buyer profile as needed on invoices."""
    id: Optional[str] = Field(None, description="Unique identifier of the user as a string")
    name: Optional[str] = Field(None, description="Full name of the user")
    email: Optional[str] = Field(None, description="Email address of the user")
    phone: Optional[str] = Field(None, description="Phone number of the user")
    roles: List[str] = Field(default_factory=lambda: ["user"], description="Roles assigned to the user")


class Caller(BaseModel):
    """An authenticated principal invoking an order operation."""
    id: str = Field(..., description="ID of the authenticated user")
    roles: List[str] = Field(default_factory=lambda: ["user"], description="Roles granted to the caller")

    @field_validator("id")
    def validate_id(cls, value):
        if not value or not value.strip():
            raise ValueError("Caller id must be a non-empty string")
        return value

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles
