"""FastAPI routes for the Accounts context — users, publishers and admins."""

import json

import structlog
from fastapi import APIRouter, Depends, File, UploadFile
from protean.utils.globals import current_domain

from bookstore.accounts.account.authentication import ChangePassword, Login, RequestPasswordReset, ResetPassword
from bookstore.accounts.account.profile import (
    ChangeAvatar,
    DeactivateUser,
    ReactivateUser,
    RemoveAvatar,
    UpdateUserProfile,
)
from bookstore.accounts.account.registration import RegisterCustomer, RegisterPublisher, UpgradeToPublisher
from bookstore.accounts.account.user import User, normalize_email
from bookstore.accounts.admin.admin import Admin, Permission
from bookstore.accounts.admin.management import GrantPermission, RevokePermission
from bookstore.accounts.api.schemas import (
    AdminResponse,
    ChangePasswordRequest,
    CustomerResponse,
    EmailRequest,
    ExistsResponse,
    LoginRequest,
    MessageResponse,
    PayoutRequest,
    PermissionRequest,
    PreferencesRequest,
    ProfileResponse,
    PublisherIdResponse,
    PublisherResponse,
    ReadingProgressRequest,
    RegisterCustomerRequest,
    RegisterPublisherRequest,
    ResetPasswordRequest,
    StatusResponse,
    TokenResponse,
    UpdateProfileRequest,
    UpdatePublisherRequest,
    UpgradeToPublisherRequest,
    UserIdResponse,
    UserResponse,
    VerifyPublisherRequest,
)
from bookstore.accounts.customer.customer import Customer
from bookstore.accounts.customer.library import (
    AddToWishlist,
    RemoveFromWishlist,
    UpdatePreferences,
    UpdateReadingProgress,
)
from bookstore.accounts.publisher.management import RecordPayout, UpdatePublisherProfile, VerifyPublisher
from bookstore.accounts.publisher.publisher import Publisher
from bookstore.api.security import admin_with, current_customer, current_publisher, current_user, require_admin
from bookstore.utils.storage import UploadKind, store_upload

logger = structlog.get_logger(__name__)

_RESET_MESSAGE = "If that email is registered, a password reset link has been sent"


def _profile(user: User) -> ProfileResponse:
    customer = current_domain.repository_for(Customer).find_by_user(user.id)
    publisher = current_domain.repository_for(Publisher).find_by_user(user.id)
    admin = current_domain.repository_for(Admin).find_by_user(user.id)
    return ProfileResponse(
        user=UserResponse.from_user(user),
        customer=CustomerResponse.from_customer(customer) if customer else None,
        publisher=PublisherResponse.from_publisher(publisher, include_earnings=True) if publisher else None,
        admin=AdminResponse.from_admin(admin) if admin else None,
    )


def _reload(user: User) -> User:
    return current_domain.repository_for(User).get(user.id)


# ---------------------------------------------------------------------------
# User Router
# ---------------------------------------------------------------------------
user_router = APIRouter(prefix="/api/user", tags=["users"])


@user_router.post("/register", status_code=201, response_model=UserIdResponse)
async def register_customer(body: RegisterCustomerRequest) -> UserIdResponse:
    command = RegisterCustomer(
        username=body.username,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        phone=body.phone,
        favorite_genres=json.dumps(body.favorite_genres),
    )
    result = current_domain.process(command, asynchronous=False)
    return UserIdResponse(user_id=result)


@user_router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest) -> TokenResponse:
    token = current_domain.process(Login(email=body.email, password=body.password), asynchronous=False)
    user = current_domain.repository_for(User).find_by_email(body.email)
    return TokenResponse(token=token, user=UserResponse.from_user(user))


@user_router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: EmailRequest) -> MessageResponse:
    token = current_domain.process(RequestPasswordReset(email=body.email), asynchronous=False)
    if token:
        # Delivery is out of band; the token is only written to the log
        logger.info("Password reset token issued", email=normalize_email(body.email), reset_token=token)
    return MessageResponse(message=_RESET_MESSAGE)


@user_router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest) -> MessageResponse:
    current_domain.process(ResetPassword(token=body.token, new_password=body.new_password), asynchronous=False)
    return MessageResponse(message="Password has been reset")


@user_router.get("/validate-token", response_model=UserResponse)
async def validate_token(user: User = Depends(current_user)) -> UserResponse:
    return UserResponse.from_user(user)


@user_router.get("/profile", response_model=ProfileResponse)
async def get_profile(user: User = Depends(current_user)) -> ProfileResponse:
    return _profile(user)


@user_router.put("/profile", response_model=UserResponse)
async def update_profile(body: UpdateProfileRequest, user: User = Depends(current_user)) -> UserResponse:
    command = UpdateUserProfile(
        user_id=str(user.id),
        full_name=body.full_name,
        display_name=body.display_name,
        phone=body.phone,
    )
    current_domain.process(command, asynchronous=False)
    return UserResponse.from_user(_reload(user))


@user_router.put("/password", response_model=StatusResponse)
async def change_password(body: ChangePasswordRequest, user: User = Depends(current_user)) -> StatusResponse:
    command = ChangePassword(
        user_id=str(user.id),
        current_password=body.current_password,
        new_password=body.new_password,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@user_router.post("/avatar", response_model=UserResponse)
async def upload_avatar(avatar: UploadFile = File(...), user: User = Depends(current_user)) -> UserResponse:
    path = store_upload(UploadKind.AVATAR, avatar.filename, avatar.content_type, await avatar.read())
    current_domain.process(ChangeAvatar(user_id=str(user.id), avatar_path=path), asynchronous=False)
    return UserResponse.from_user(_reload(user))


@user_router.delete("/avatar", response_model=UserResponse)
async def remove_avatar(user: User = Depends(current_user)) -> UserResponse:
    current_domain.process(RemoveAvatar(user_id=str(user.id)), asynchronous=False)
    return UserResponse.from_user(_reload(user))


@user_router.post("/check", response_model=ExistsResponse)
async def check_email(body: EmailRequest) -> ExistsResponse:
    user = current_domain.repository_for(User).find_by_email(body.email)
    return ExistsResponse(exists=user is not None)


@user_router.get("/wishlist", response_model=list[str])
async def get_wishlist(customer: Customer = Depends(current_customer)) -> list[str]:
    return customer.wishlist_ids


@user_router.post("/wishlist/{book_id}", response_model=list[str])
async def add_to_wishlist(book_id: str, customer: Customer = Depends(current_customer)) -> list[str]:
    current_domain.process(AddToWishlist(customer_id=str(customer.id), book_id=book_id), asynchronous=False)
    return current_domain.repository_for(Customer).get(customer.id).wishlist_ids


@user_router.delete("/wishlist/{book_id}", response_model=list[str])
async def remove_from_wishlist(book_id: str, customer: Customer = Depends(current_customer)) -> list[str]:
    current_domain.process(RemoveFromWishlist(customer_id=str(customer.id), book_id=book_id), asynchronous=False)
    return current_domain.repository_for(Customer).get(customer.id).wishlist_ids


@user_router.put("/reading-list/{book_id}", response_model=CustomerResponse)
async def update_reading_progress(
    book_id: str, body: ReadingProgressRequest, customer: Customer = Depends(current_customer)
) -> CustomerResponse:
    command = UpdateReadingProgress(
        customer_id=str(customer.id),
        book_id=book_id,
        progress=body.progress,
        status=body.status,
    )
    current_domain.process(command, asynchronous=False)
    return CustomerResponse.from_customer(current_domain.repository_for(Customer).get(customer.id))


@user_router.put("/preferences", response_model=CustomerResponse)
async def update_preferences(body: PreferencesRequest, customer: Customer = Depends(current_customer)):
    command = UpdatePreferences(customer_id=str(customer.id), favorite_genres=json.dumps(body.favorite_genres))
    current_domain.process(command, asynchronous=False)
    return CustomerResponse.from_customer(current_domain.repository_for(Customer).get(customer.id))


@user_router.put("/{user_id}/deactivate", response_model=StatusResponse)
async def deactivate_user(user_id: str, admin: Admin = Depends(admin_with(Permission.USER_MANAGEMENT))):
    current_domain.process(DeactivateUser(user_id=user_id), asynchronous=False)
    return StatusResponse()


@user_router.put("/{user_id}/reactivate", response_model=StatusResponse)
async def reactivate_user(user_id: str, admin: Admin = Depends(admin_with(Permission.USER_MANAGEMENT))):
    current_domain.process(ReactivateUser(user_id=user_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Publisher Router
# ---------------------------------------------------------------------------
publisher_router = APIRouter(prefix="/api/publisher", tags=["publishers"])


@publisher_router.post("/register/publisher", status_code=201, response_model=UserIdResponse)
async def register_publisher(body: RegisterPublisherRequest) -> UserIdResponse:
    command = RegisterPublisher(
        username=body.username,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        phone=body.phone,
        pen_name=body.pen_name,
        biography=body.biography,
        website=body.website,
        genres=json.dumps(body.genres),
    )
    result = current_domain.process(command, asynchronous=False)
    return UserIdResponse(user_id=result)


@publisher_router.post("/upgrade/publisher", status_code=201, response_model=PublisherIdResponse)
async def upgrade_to_publisher(body: UpgradeToPublisherRequest, user: User = Depends(current_user)):
    command = UpgradeToPublisher(
        user_id=str(user.id),
        pen_name=body.pen_name,
        biography=body.biography,
        website=body.website,
        genres=json.dumps(body.genres),
    )
    result = current_domain.process(command, asynchronous=False)
    return PublisherIdResponse(publisher_id=result)


@publisher_router.get("/profile", response_model=PublisherResponse)
async def get_publisher_profile(publisher: Publisher = Depends(current_publisher)) -> PublisherResponse:
    return PublisherResponse.from_publisher(publisher, include_earnings=True)


@publisher_router.put("/profile", response_model=PublisherResponse)
async def update_publisher_profile(
    body: UpdatePublisherRequest, publisher: Publisher = Depends(current_publisher)
) -> PublisherResponse:
    command = UpdatePublisherProfile(
        publisher_id=str(publisher.id),
        pen_name=body.pen_name,
        biography=body.biography,
        website=body.website,
        genres=json.dumps(body.genres) if body.genres is not None else None,
    )
    current_domain.process(command, asynchronous=False)
    refreshed = current_domain.repository_for(Publisher).get(publisher.id)
    return PublisherResponse.from_publisher(refreshed, include_earnings=True)


@publisher_router.post("/payroll", response_model=PublisherResponse)
async def process_payout(body: PayoutRequest, publisher: Publisher = Depends(current_publisher)):
    current_domain.process(RecordPayout(publisher_id=str(publisher.id), amount=body.amount), asynchronous=False)
    refreshed = current_domain.repository_for(Publisher).get(publisher.id)
    return PublisherResponse.from_publisher(refreshed, include_earnings=True)


@publisher_router.post("/{publisher_id}/verify", response_model=StatusResponse)
async def verify_publisher(
    publisher_id: str,
    body: VerifyPublisherRequest,
    admin: Admin = Depends(admin_with(Permission.USER_MANAGEMENT)),
) -> StatusResponse:
    command = VerifyPublisher(publisher_id=publisher_id, documents_submitted=body.documents_submitted)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@publisher_router.get("/{publisher_id}", response_model=PublisherResponse)
async def get_publisher(publisher_id: str) -> PublisherResponse:
    publisher = current_domain.repository_for(Publisher).get(publisher_id)
    return PublisherResponse.from_publisher(publisher)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/api/admin", tags=["admins"])


@admin_router.get("/me", response_model=AdminResponse)
async def get_admin_profile(admin: Admin = Depends(require_admin)) -> AdminResponse:
    return AdminResponse.from_admin(admin)


@admin_router.post("/{admin_id}/permissions", response_model=AdminResponse)
async def grant_permission(
    admin_id: str,
    body: PermissionRequest,
    admin: Admin = Depends(admin_with(Permission.SYSTEM_SETTINGS)),
) -> AdminResponse:
    current_domain.process(GrantPermission(admin_id=admin_id, permission=body.permission), asynchronous=False)
    return AdminResponse.from_admin(current_domain.repository_for(Admin).get(admin_id))


@admin_router.delete("/{admin_id}/permissions/{permission}", response_model=AdminResponse)
async def revoke_permission(
    admin_id: str,
    permission: str,
    admin: Admin = Depends(admin_with(Permission.SYSTEM_SETTINGS)),
) -> AdminResponse:
    current_domain.process(RevokePermission(admin_id=admin_id, permission=permission), asynchronous=False)
    return AdminResponse.from_admin(current_domain.repository_for(Admin).get(admin_id))
