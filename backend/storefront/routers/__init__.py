"""HTTP routers, one per resource.

`api_router` collects every resource router under the `/api` prefix and
serves the root view listing them; `auth_router` carries the token
endpoints.
"""

from fastapi import APIRouter, Depends, Request

from ..utils.rate_limit import throttle
from . import auth, products, users

# (name, route name of the list endpoint)
REGISTERED = (
    ('products', 'product-list'),
    ('users', 'user-list'),
)

api_router = APIRouter(prefix='/api', dependencies=[Depends(throttle)])


@api_router.get('', name='api-root')
def api_root(request: Request):
    """List the URL of every registered resource."""
    return {name: str(request.url_for(route)) for name, route in REGISTERED}


api_router.include_router(products.router)
api_router.include_router(users.router)

auth_router = auth.router

__all__ = ['api_router', 'auth_router', 'REGISTERED']
