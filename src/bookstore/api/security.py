"""Bearer-token authentication and role checks for the HTTP API.

Routes declare what they need as dependencies:

    user: User = Depends(current_user)
    customer: Customer = Depends(current_customer)
    admin: Admin = Depends(require_admin)

Missing or invalid tokens answer 401; a valid account lacking the role
answers 403.
"""

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from bookstore.accounts.account.tokens import ACCESS, AuthenticationError, decode_token
from bookstore.accounts.account.user import AccountType, User
from bookstore.accounts.admin.admin import Admin
from bookstore.accounts.customer.customer import Customer
from bookstore.accounts.publisher.publisher import Publisher

bearer_scheme = HTTPBearer(auto_error=False)


async def current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        claims = decode_token(credentials.credentials, ACCESS)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    try:
        user = current_domain.repository_for(User).get(claims["sub"])
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=401, detail="Account no longer exists") from exc
    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account is deactivated")
    return user


async def current_customer(user: User = Depends(current_user)) -> Customer:
    customer = current_domain.repository_for(Customer).find_by_user(user.id)
    if customer is None:
        raise HTTPException(status_code=403, detail="Customer account required")
    return customer


async def current_publisher(user: User = Depends(current_user)) -> Publisher:
    publisher = current_domain.repository_for(Publisher).find_by_user(user.id)
    if publisher is None or not user.has_role(AccountType.PUBLISHER):
        raise HTTPException(status_code=403, detail="Publisher account required")
    return publisher


async def require_admin(user: User = Depends(current_user)) -> Admin:
    admin = current_domain.repository_for(Admin).find_by_user(user.id)
    if admin is None or not user.has_role(AccountType.ADMIN):
        raise HTTPException(status_code=403, detail="Admin access required")
    return admin


def admin_with(permission):
    """Dependency factory: an admin holding ``permission`` (a Permission member)."""

    async def _dependency(admin: Admin = Depends(require_admin)) -> Admin:
        if not admin.has_permission(permission.value):
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission.value}")
        return admin

    return _dependency
