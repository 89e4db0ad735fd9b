"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
products). Repositories return SQLModel objects and perform
commits/refreshes where appropriate.
"""

from typing import List, Optional
from sqlmodel import Session, select, or_
from sqlalchemy import func
from . import models

PRODUCT_ORDERING = {
    'created': (models.Product.created.asc(), models.Product.id.asc()),
    '-created': (models.Product.created.desc(), models.Product.id.desc()),
    'name': (models.Product.name.asc(), models.Product.id.asc()),
    '-name': (models.Product.name.desc(), models.Product.id.desc()),
    'id': (models.Product.id.asc(),),
    '-id': (models.Product.id.desc(),),
}
DEFAULT_PRODUCT_ORDERING = '-created'


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance."""
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username or `None` if not found."""
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def list(self, offset: int = 0, limit: int = 10) -> List[models.User]:
        stmt = select(models.User).order_by(models.User.id).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count(self) -> int:
        return self.session.exec(select(func.count(models.User.id))).one()


class ProductRepository:
    """CRUD and query operations for `Product` records."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, product: models.Product) -> models.Product:
        """Persist a new product and return the managed instance."""
        self.session.add(product)
        self.session.commit()
        self.session.refresh(product)
        return product

    def get(self, product_id: int) -> Optional[models.Product]:
        """Fetch a product by id."""
        return self.session.get(models.Product, product_id)

    def save(self, product: models.Product) -> models.Product:
        """Commit changes made to an already persisted product."""
        self.session.add(product)
        self.session.commit()
        self.session.refresh(product)
        return product

    def delete(self, product: models.Product) -> None:
        self.session.delete(product)
        self.session.commit()

    def _filtered(self, stmt, search: Optional[str], owner_id: Optional[int]):
        term = search.strip().lower() if search else ""
        if term:
            # literal substring: % and _ in the term are escaped
            stmt = stmt.where(or_(
                func.lower(models.Product.name).contains(term, autoescape=True),
                func.lower(models.Product.description).contains(term, autoescape=True),
            ))
        if owner_id is not None:
            stmt = stmt.where(models.Product.owner_id == owner_id)
        return stmt

    def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        ordering: Optional[str] = None,
        owner_id: Optional[int] = None,
    ) -> List[models.Product]:
        """Return one window of products matching the filters.

        `ordering` is one of the keys of `PRODUCT_ORDERING`; anything else
        raises `ValueError`.
        """
        key = ordering or DEFAULT_PRODUCT_ORDERING
        if key not in PRODUCT_ORDERING:
            raise ValueError(f"invalid ordering: {key}")
        stmt = self._filtered(select(models.Product), search, owner_id)
        stmt = stmt.order_by(*PRODUCT_ORDERING[key]).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count(self, search: Optional[str] = None, owner_id: Optional[int] = None) -> int:
        stmt = self._filtered(select(func.count(models.Product.id)), search, owner_id)
        return self.session.exec(stmt).one()

    def ids_for_owner(self, owner_id: int) -> List[int]:
        """Return the ids of all products owned by `owner_id`, oldest first."""
        stmt = select(models.Product.id).where(models.Product.owner_id == owner_id).order_by(models.Product.id)
        return list(self.session.exec(stmt).all())
