"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table and uses relationships where appropriate.
"""

from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `username`: unique login name
    - `password_hash`: hashed password string (never store plaintext)
    - `is_staff`: staff users may modify any product
    - `is_active`: inactive users cannot authenticate
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False, unique=True, max_length=150)
    email: Optional[str] = None
    password_hash: str
    is_staff: bool = False
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    products: List['Product'] = Relationship(back_populates='owner')


class Product(SQLModel, table=True):
    """A catalog product owned by the user who created it.

    `image` is a path relative to the media root, or `None` when no
    image has been uploaded. `created` is set once on insert.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, index=True)
    description: str = ''
    image: Optional[str] = None
    owner_id: int = Field(foreign_key='user.id', index=True)
    created: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    owner: Optional[User] = Relationship(back_populates='products')
