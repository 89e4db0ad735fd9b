"""Pydantic request/response schemas used by the API.

Schemas play the role of serializers: they keep API input/output shapes
stable, validate request bodies and decide which fields are read only.
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar('T')

USERNAME_PATTERN = r'^[\w.@+-]+$'


class RegisterIn(BaseModel):
    """Payload for the user registration endpoint."""
    username: str = Field(min_length=1, max_length=150, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=4)
    email: Optional[str] = None


class LoginIn(BaseModel):
    """Credentials for the JSON login endpoint."""
    username: str
    password: str


class TokenOut(BaseModel):
    """Authentication response containing an access token."""
    access_token: str
    token_type: str = 'bearer'


class UserOut(BaseModel):
    """Public view of a user with the ids of the products they own."""
    id: int
    username: str
    email: Optional[str] = None
    is_staff: bool = False
    products: List[int] = []


class ProductIn(BaseModel):
    """Request body for creating or fully replacing a product.

    The owner is never accepted from the client; it is always the
    authenticated user.
    """
    name: str = Field(min_length=1, max_length=100)
    description: str = ''

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        """Trim surrounding whitespace before the length limits apply."""
        return v.strip() if isinstance(v, str) else v


class ProductPatch(BaseModel):
    """Partial update; only the fields present in the request are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        """Trim surrounding whitespace before the length limits apply."""
        return v.strip() if isinstance(v, str) else v


class ProductOut(BaseModel):
    """Product representation returned by the API."""
    id: int
    name: str
    description: str
    image: Optional[str] = None
    owner: str
    owner_id: int
    created: datetime


class Page(BaseModel, Generic[T]):
    """Page-number paginated list response."""
    count: int
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[T]
