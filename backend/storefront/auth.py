"""Authentication helpers and FastAPI security dependencies.

This module provides utilities to decode JWT tokens and two FastAPI
dependencies: `get_current_user` requires a valid bearer token and
returns the corresponding `User`, while `get_optional_user` lets
anonymous requests through as `None` (read-only endpoints) but still
rejects a token that is present and invalid.

Token verification raises HTTPExceptions on failure so the helpers can
be used directly inside route dependencies.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlmodel import Session

from .config import settings
from .database import get_session
from . import models, repositories

bearer_scheme = HTTPBearer(auto_error=False)
logger = logging.getLogger("storefront.auth")

_UNAUTHORIZED_HEADERS = {'WWW-Authenticate': 'Bearer'}


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Returns the decoded payload on success or raises an HTTPException
    with status 401 on failure.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail='token expired', headers=_UNAUTHORIZED_HEADERS)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail='invalid token', headers=_UNAUTHORIZED_HEADERS)


def user_from_token(token: str, session: Session) -> models.User:
    payload = decode_token(token)
    user_id = payload.get('user_id')
    if not user_id:
        raise HTTPException(status_code=401, detail='invalid token payload', headers=_UNAUTHORIZED_HEADERS)
    user = repositories.UserRepository(session).get(user_id)
    if not user or not user.is_active:
        logger.warning("token_rejected user_id=%s", user_id)
        raise HTTPException(status_code=401, detail='user not found', headers=_UNAUTHORIZED_HEADERS)
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    session: Session = Depends(get_session),
) -> Optional[models.User]:
    """Return the authenticated user, or `None` when no token was sent."""
    if credentials is None:
        return None
    return user_from_token(credentials.credentials, session)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    session: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency that returns the authenticated user.

    Raises HTTPException(401) when the token is missing or invalid, or
    when the user no longer exists or is inactive.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail='Authentication credentials were not provided.', headers=_UNAUTHORIZED_HEADERS)
    return user_from_token(credentials.credentials, session)
