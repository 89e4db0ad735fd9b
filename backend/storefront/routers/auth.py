"""Registration and token endpoints."""

from fastapi import APIRouter, Depends, Form, HTTPException
from sqlmodel import Session

from ..auth import get_current_user
from ..database import get_session
from ..schemas import LoginIn, RegisterIn, TokenOut, UserOut
from ..utils.rate_limit import throttle
from .. import models, services

router = APIRouter(prefix='/auth', tags=['auth'], dependencies=[Depends(throttle)])


@router.post('/register', status_code=201, response_model=UserOut)
def register(payload: RegisterIn, db: Session = Depends(get_session)):
    """Create a new user account."""
    try:
        user = services.AuthService(db).register(payload.username, payload.password, payload.email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return services.UserService(db).to_out(user)


def _issue(db: Session, username: str, password: str) -> TokenOut:
    token = services.AuthService(db).authenticate(username, password)
    if not token:
        raise HTTPException(status_code=401, detail='invalid credentials')
    return TokenOut(access_token=token)


@router.post('/login', response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_session)):
    """Authenticate with a JSON body and return a signed bearer token."""
    return _issue(db, payload.username, payload.password)


@router.post('/token', response_model=TokenOut)
def obtain_token(username: str = Form(...), password: str = Form(...), db: Session = Depends(get_session)):
    """Form-encoded variant of `/auth/login`, usable from the docs UI."""
    return _issue(db, username, password)


@router.get('/me', response_model=UserOut)
def me(user: models.User = Depends(get_current_user), db: Session = Depends(get_session)):
    return services.UserService(db).to_out(user)
