"""Request and object level permission checks.

Permissions are small classes with two hooks, mirroring how the views
use them: `has_permission` runs before the handler touches the
database, `has_object_permission` runs once the target row is loaded.
Both return a bool; `check_permissions` and `check_object_permissions`
turn a refusal into the matching HTTP error (401 for anonymous users,
403 for authenticated ones).
"""

from typing import Iterable, Optional

from fastapi import HTTPException, Request

from . import models

SAFE_METHODS = ('GET', 'HEAD', 'OPTIONS')


class BasePermission:
    message = 'You do not have permission to perform this action.'

    def has_permission(self, request: Request, user: Optional[models.User]) -> bool:
        return True

    def has_object_permission(self, request: Request, user: Optional[models.User], obj) -> bool:
        return True


class IsAuthenticatedOrReadOnly(BasePermission):
    """Anyone may read; only authenticated users may write."""
    message = 'Authentication credentials were not provided.'

    def has_permission(self, request, user):
        return request.method in SAFE_METHODS or user is not None


class IsOwnerOrReadOnly(BasePermission):
    """Only the owner of an object (or a staff user) may modify it."""
    message = 'Only the owner may modify this object.'

    def has_object_permission(self, request, user, obj):
        if request.method in SAFE_METHODS:
            return True
        if user is None:
            return False
        return user.is_staff or getattr(obj, 'owner_id', None) == user.id


def _deny(user: Optional[models.User], permission: BasePermission):
    if user is None:
        raise HTTPException(status_code=401, detail=permission.message, headers={'WWW-Authenticate': 'Bearer'})
    raise HTTPException(status_code=403, detail=permission.message)


def check_permissions(request: Request, user: Optional[models.User], permissions: Iterable[BasePermission]) -> None:
    for permission in permissions:
        if not permission.has_permission(request, user):
            _deny(user, permission)


def check_object_permissions(request: Request, user: Optional[models.User], obj, permissions: Iterable[BasePermission]) -> None:
    for permission in permissions:
        if not permission.has_object_permission(request, user, obj):
            _deny(user, permission)
