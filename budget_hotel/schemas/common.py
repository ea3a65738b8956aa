"""
Base schema classes with common configuration.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from budget_hotel.models.base import MAX_ID
from budget_hotel.models.enums import UserRole

__all__ = [
    "BaseSchema",
    "Actor",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    All application-facing schemas inherit from this to get ORM loading and
    whitespace stripping.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True,
    )


class Actor(BaseSchema):
    """
    The caller of an operation, as established by the upstream auth layer,
    plus the client signals used for promotion abuse checks.
    """

    user_id: int = Field(..., gt=0, le=MAX_ID)
    role: UserRole = UserRole.CUSTOMER
    device_fingerprint: Optional[str] = None
    ip_address: Optional[str] = None

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER
