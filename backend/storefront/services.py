"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories
and auxiliary logic. Services are intentionally thin: they perform
validation, execute domain logic and persist aggregates via
repositories. They raise `ValueError` for bad input and `LookupError`
for missing rows; controllers translate both into HTTP errors.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Optional
from urllib.parse import urlencode

from passlib.context import CryptContext
import jwt
from sqlmodel import Session

from . import models, repositories, schemas
from .config import settings
from .utils import media

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
logger = logging.getLogger("storefront.services")


class AuthService:
    """Authentication related operations (register + authenticate)."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def register(self, username: str, password: str, email: Optional[str] = None, is_staff: bool = False) -> models.User:
        """Create a new user with a hashed password.

        Raises `ValueError` when the username is already taken.
        """
        if self.user_repo.get_by_username(username):
            raise ValueError(f"username already exists: {username}")
        hashed = PWD_CTX.hash(password)
        u = models.User(username=username, email=email, password_hash=hashed, is_staff=is_staff)
        user = self.user_repo.create(u)
        logger.info("user_registered id=%s staff=%s", user.id, user.is_staff)
        return user

    def authenticate(self, username: str, password: str) -> Optional[str]:
        """Verify credentials and return a signed JWT token on success.

        Returns `None` if authentication fails.
        """
        user = self.user_repo.get_by_username(username)
        if not user or not user.is_active:
            logger.warning("login_failed username=%s", username)
            return None
        if not PWD_CTX.verify(password, user.password_hash):
            logger.warning("login_failed username=%s", username)
            return None
        return self.issue_token(user)

    def issue_token(self, user: models.User) -> str:
        expire = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRE_HOURS)
        payload = {"user_id": user.id, "username": user.username, "exp": int(expire.timestamp())}
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def as_utc(value: datetime) -> datetime:
    """SQLite drops the offset; stored timestamps are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def page_links(base_url: str, params: dict, page: int, page_size: int, count: int):
    """Return absolute `(next, previous)` links for page-number pagination."""
    def _link(p: int) -> str:
        query = {k: v for k, v in params.items() if v is not None and k not in ('page', 'page_size')}
        if p > 1:
            query['page'] = p
        if page_size != settings.PAGE_SIZE:
            query['page_size'] = page_size
        return f"{base_url}?{urlencode(query)}" if query else base_url

    last = max(1, (count + page_size - 1) // page_size)
    next_link = _link(page + 1) if page < last else None
    prev_link = _link(page - 1) if page > 1 else None
    return next_link, prev_link


def check_page(page: int, page_size: int, count: int) -> int:
    """Validate the requested page and return the row offset for it."""
    if page < 1:
        raise LookupError("invalid page")
    offset = (page - 1) * page_size
    # page 1 is always valid, even for an empty result set
    if page > 1 and offset >= count:
        raise LookupError("invalid page")
    return offset


class ProductService:
    """Create, update and serialize products on behalf of a user."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.ProductRepository(session)

    def get(self, product_id: int) -> models.Product:
        product = self.repo.get(product_id)
        if not product:
            raise LookupError("product not found")
        return product

    def create(self, owner: models.User, data: schemas.ProductIn) -> models.Product:
        """Persist a new product owned by `owner`.

        The owner always comes from the authenticated user; the request
        body has no owner field.
        """
        product = models.Product(name=data.name, description=data.description, owner_id=owner.id)
        product = self.repo.create(product)
        logger.info("product_created id=%s owner=%s", product.id, owner.id)
        return product

    def replace(self, product: models.Product, data: schemas.ProductIn) -> models.Product:
        product.name = data.name
        product.description = data.description
        return self.repo.save(product)

    def patch(self, product: models.Product, data: schemas.ProductPatch) -> models.Product:
        """Apply only the fields the client sent."""
        changes = data.model_dump(exclude_unset=True)
        if 'name' in changes and changes['name'] is None:
            raise ValueError("name may not be null")
        if changes.get('description', '') is None:
            changes['description'] = ''
        for field, value in changes.items():
            setattr(product, field, value)
        return self.repo.save(product)

    def delete(self, product: models.Product) -> None:
        image = product.image
        product_id = product.id
        self.repo.delete(product)
        media.delete_media(image)
        logger.info("product_deleted id=%s", product_id)

    def set_image(self, product: models.Product, payload: bytes, image_format: str) -> models.Product:
        """Store a new image for `product`, removing the previous file."""
        previous = product.image
        stored = media.save_image(payload, image_format)
        product.image = stored
        try:
            product = self.repo.save(product)
        except Exception:
            self.session.rollback()
            media.delete_media(stored)
            raise
        if previous and previous != product.image:
            media.delete_media(previous)
        return product

    def clear_image(self, product: models.Product) -> models.Product:
        previous = product.image
        product.image = None
        product = self.repo.save(product)
        media.delete_media(previous)
        return product

    def to_out(self, product: models.Product) -> schemas.ProductOut:
        owner = product.owner
        return schemas.ProductOut(
            id=product.id,
            name=product.name,
            description=product.description,
            image=media.media_url(product.image),
            owner=owner.username if owner else '',
            owner_id=product.owner_id,
            created=as_utc(product.created),
        )

    def page(
        self,
        base_url: str,
        page: int = 1,
        page_size: Optional[int] = None,
        search: Optional[str] = None,
        ordering: Optional[str] = None,
        owner_id: Optional[int] = None,
    ) -> schemas.Page[schemas.ProductOut]:
        """Return one page of products in the paginated response shape."""
        page_size = page_size or settings.PAGE_SIZE
        count = self.repo.count(search=search, owner_id=owner_id)
        offset = check_page(page, page_size, count)
        rows = self.repo.list(offset=offset, limit=page_size, search=search, ordering=ordering, owner_id=owner_id)
        params = {'search': search, 'ordering': ordering, 'owner': owner_id}
        next_link, prev_link = page_links(base_url, params, page, page_size, count)
        return schemas.Page[schemas.ProductOut](
            count=count,
            next=next_link,
            previous=prev_link,
            results=[self.to_out(p) for p in rows],
        )


class UserService:
    """Read-only user queries for the users endpoints."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.product_repo = repositories.ProductRepository(session)

    def get(self, user_id: int) -> models.User:
        user = self.user_repo.get(user_id)
        if not user:
            raise LookupError("user not found")
        return user

    def to_out(self, user: models.User) -> schemas.UserOut:
        return schemas.UserOut(
            id=user.id,
            username=user.username,
            email=user.email,
            is_staff=user.is_staff,
            products=self.product_repo.ids_for_owner(user.id),
        )

    def page(self, base_url: str, page: int = 1, page_size: Optional[int] = None) -> schemas.Page[schemas.UserOut]:
        page_size = page_size or settings.PAGE_SIZE
        count = self.user_repo.count()
        offset = check_page(page, page_size, count)
        rows = self.user_repo.list(offset=offset, limit=page_size)
        next_link, prev_link = page_links(base_url, {}, page, page_size, count)
        return schemas.Page[schemas.UserOut](
            count=count,
            next=next_link,
            previous=prev_link,
            results=[self.to_out(u) for u in rows],
        )
