"""Product endpoints: list, create, retrieve, update, delete and image upload.

Every handler runs the same two permission stages: the request-level
check before any lookup, then the object-level check once the product
is loaded. Reads are public; writes need a token, and changing an
existing product needs to be its owner (or staff).
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile
from sqlmodel import Session

from ..auth import get_optional_user
from ..config import settings
from ..database import get_session
from ..permissions import IsAuthenticatedOrReadOnly, IsOwnerOrReadOnly, check_object_permissions, check_permissions
from ..schemas import Page, ProductIn, ProductOut, ProductPatch
from ..utils import media
from .. import models, services

router = APIRouter(prefix='/products', tags=['products'])

permission_classes = (IsAuthenticatedOrReadOnly(), IsOwnerOrReadOnly())


def _load(request: Request, user: Optional[models.User], db: Session, product_id: int) -> models.Product:
    check_permissions(request, user, permission_classes)
    try:
        product = services.ProductService(db).get(product_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    check_object_permissions(request, user, product, permission_classes)
    return product


@router.get('', name='product-list', response_model=Page[ProductOut])
def list_products(
    request: Request,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = None,
    ordering: Optional[str] = None,
    owner: Optional[int] = None,
    db: Session = Depends(get_session),
    user: Optional[models.User] = Depends(get_optional_user),
):
    """Paginated product list with optional search, ordering and owner filter."""
    check_permissions(request, user, permission_classes)
    svc = services.ProductService(db)
    try:
        return svc.page(
            str(request.url_for('product-list')),
            page=page,
            page_size=page_size,
            search=search,
            ordering=ordering,
            owner_id=owner,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post('', name='product-create', status_code=201, response_model=ProductOut)
def create_product(
    request: Request,
    payload: ProductIn,
    response: Response,
    db: Session = Depends(get_session),
    user: Optional[models.User] = Depends(get_optional_user),
):
    check_permissions(request, user, permission_classes)
    svc = services.ProductService(db)
    product = svc.create(user, payload)
    response.headers['Location'] = str(request.url_for('product-detail', product_id=product.id))
    return svc.to_out(product)


@router.get('/{product_id}', name='product-detail', response_model=ProductOut)
def get_product(
    request: Request,
    product_id: int,
    db: Session = Depends(get_session),
    user: Optional[models.User] = Depends(get_optional_user),
):
    product = _load(request, user, db, product_id)
    return services.ProductService(db).to_out(product)


@router.put('/{product_id}', response_model=ProductOut)
def update_product(
    request: Request,
    product_id: int,
    payload: ProductIn,
    db: Session = Depends(get_session),
    user: Optional[models.User] = Depends(get_optional_user),
):
    product = _load(request, user, db, product_id)
    svc = services.ProductService(db)
    return svc.to_out(svc.replace(product, payload))


@router.patch('/{product_id}', response_model=ProductOut)
def partial_update_product(
    request: Request,
    product_id: int,
    payload: ProductPatch,
    db: Session = Depends(get_session),
    user: Optional[models.User] = Depends(get_optional_user),
):
    product = _load(request, user, db, product_id)
    svc = services.ProductService(db)
    try:
        return svc.to_out(svc.patch(product, payload))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete('/{product_id}', status_code=204)
def delete_product(
    request: Request,
    product_id: int,
    db: Session = Depends(get_session),
    user: Optional[models.User] = Depends(get_optional_user),
):
    product = _load(request, user, db, product_id)
    services.ProductService(db).delete(product)
    return Response(status_code=204)


@router.post('/{product_id}/image', response_model=ProductOut)
def upload_image(
    request: Request,
    product_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_session),
    user: Optional[models.User] = Depends(get_optional_user),
):
    """Attach an image to a product, replacing any previous one."""
    product = _load(request, user, db, product_id)
    media.validate_upload_filename(file.filename)
    payload = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(payload) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail='file too large')
    if not payload:
        raise HTTPException(status_code=400, detail='empty file')
    image_format = media.sniff_image(payload)
    svc = services.ProductService(db)
    return svc.to_out(svc.set_image(product, payload, image_format))


@router.delete('/{product_id}/image', response_model=ProductOut)
def delete_image(
    request: Request,
    product_id: int,
    db: Session = Depends(get_session),
    user: Optional[models.User] = Depends(get_optional_user),
):
    product = _load(request, user, db, product_id)
    svc = services.ProductService(db)
    return svc.to_out(svc.clear_image(product))
