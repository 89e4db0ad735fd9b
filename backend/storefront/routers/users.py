"""Read-only user endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlmodel import Session

from ..config import settings
from ..database import get_session
from ..schemas import Page, UserOut
from .. import services

router = APIRouter(prefix='/users', tags=['users'])


@router.get('', name='user-list', response_model=Page[UserOut])
def list_users(
    request: Request,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_session),
):
    try:
        return services.UserService(db).page(str(request.url_for('user-list')), page=page, page_size=page_size)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get('/{user_id}', name='user-detail', response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_session)):
    svc = services.UserService(db)
    try:
        return svc.to_out(svc.get(user_id))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
