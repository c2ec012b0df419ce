"""Pydantic request/response schemas for the Accounts API.

These are external contracts, kept apart from the Protean commands they are
translated into.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from bookstore.utils.storage import public_url


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class RegisterCustomerRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: str
    password: str
    full_name: str = Field(min_length=1, max_length=150)
    phone: str | None = None
    favorite_genres: list[str] = []

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "username": "maria",
                    "email": "maria@example.com",
                    "password": "s3cret!",
                    "full_name": "Maria Santos",
                    "phone": "+63 917 123 4567",
                    "favorite_genres": ["Fantasy", "Mystery"],
                }
            ]
        }
    }


class RegisterPublisherRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: str
    password: str
    full_name: str = Field(min_length=1, max_length=150)
    phone: str | None = None
    pen_name: str | None = None
    biography: str | None = None
    website: str | None = None
    genres: list[str] = []


class UpgradeToPublisherRequest(BaseModel):
    pen_name: str | None = None
    biography: str | None = None
    website: str | None = None
    genres: list[str] = []


class LoginRequest(BaseModel):
    email: str
    password: str


class EmailRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class UpdateProfileRequest(BaseModel):
    full_name: str | None = None
    display_name: str | None = None
    phone: str | None = None


class ReadingProgressRequest(BaseModel):
    progress: int = Field(ge=0, le=100)
    status: str | None = None


class PreferencesRequest(BaseModel):
    favorite_genres: list[str]


class UpdatePublisherRequest(BaseModel):
    pen_name: str | None = None
    biography: str | None = None
    website: str | None = None
    genres: list[str] | None = None


class PayoutRequest(BaseModel):
    amount: float = Field(gt=0)


class VerifyPublisherRequest(BaseModel):
    documents_submitted: bool = True


class PermissionRequest(BaseModel):
    permission: str


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class MessageResponse(BaseModel):
    message: str


class UserIdResponse(BaseModel):
    user_id: str


class PublisherIdResponse(BaseModel):
    publisher_id: str


class ExistsResponse(BaseModel):
    exists: bool


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    full_name: str
    display_name: str | None = None
    phone_numbers: list[str] = []
    avatar_url: str | None = None
    is_active: bool
    email_verified: bool
    account_types: list[str]
    last_login_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=str(user.id),
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            display_name=user.display_name,
            phone_numbers=user.phones,
            avatar_url=public_url(user.avatar),
            is_active=bool(user.is_active),
            email_verified=bool(user.email_verified),
            account_types=user.roles,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
        )


class TokenResponse(BaseModel):
    token: str
    user: UserResponse


class ReadingEntryResponse(BaseModel):
    book_id: str
    status: str
    progress: int
    started_at: datetime | None = None
    completed_at: datetime | None = None


class PurchaseRecordResponse(BaseModel):
    order_id: str
    purchased_at: datetime
    total: float
    item_count: int


class CustomerResponse(BaseModel):
    id: str
    favorite_genres: list[str]
    wishlist: list[str]
    reading_list: list[ReadingEntryResponse]
    purchase_history: list[PurchaseRecordResponse]
    loyalty_points: int
    subscription_plan: str

    @classmethod
    def from_customer(cls, customer) -> "CustomerResponse":
        return cls(
            id=str(customer.id),
            favorite_genres=customer.genres,
            wishlist=customer.wishlist_ids,
            reading_list=[
                ReadingEntryResponse(
                    book_id=str(entry.book_id),
                    status=entry.status,
                    progress=entry.progress,
                    started_at=entry.started_at,
                    completed_at=entry.completed_at,
                )
                for entry in customer.reading_list
            ],
            purchase_history=[
                PurchaseRecordResponse(
                    order_id=str(record.order_id),
                    purchased_at=record.purchased_at,
                    total=record.total,
                    item_count=record.item_count,
                )
                for record in customer.purchase_history
            ],
            loyalty_points=customer.loyalty_points or 0,
            subscription_plan=customer.subscription_plan,
        )


class EarningsResponse(BaseModel):
    total: float = 0.0
    current_month: float = 0.0
    pending_payout: float = 0.0
    last_payout_at: datetime | None = None


class PublisherResponse(BaseModel):
    id: str
    user_id: str
    pen_name: str | None = None
    biography: str | None = None
    website: str | None = None
    genres: list[str]
    published_books: list[str]
    commission_rate: float
    is_verified: bool
    total_sales: int
    earnings: EarningsResponse | None = None

    @classmethod
    def from_publisher(cls, publisher, include_earnings=False) -> "PublisherResponse":
        earnings = None
        if include_earnings:
            current = publisher.earnings
            earnings = EarningsResponse(
                total=current.total if current else 0.0,
                current_month=current.current_month if current else 0.0,
                pending_payout=current.pending_payout if current else 0.0,
                last_payout_at=current.last_payout_at if current else None,
            )
        return cls(
            id=str(publisher.id),
            user_id=str(publisher.user_id),
            pen_name=publisher.pen_name,
            biography=publisher.biography,
            website=publisher.website,
            genres=publisher.genre_list,
            published_books=publisher.book_ids,
            commission_rate=publisher.commission_rate,
            is_verified=publisher.is_verified,
            total_sales=publisher.total_sales or 0,
            earnings=earnings,
        )


class ActivityEntryResponse(BaseModel):
    action: str
    target: str
    target_id: str | None = None
    logged_at: datetime | None = None


class AdminResponse(BaseModel):
    id: str
    level: str
    department: str | None = None
    permissions: list[str]
    activity_log: list[ActivityEntryResponse] = []

    @classmethod
    def from_admin(cls, admin) -> "AdminResponse":
        return cls(
            id=str(admin.id),
            level=admin.level,
            department=admin.department,
            permissions=admin.permission_list,
            activity_log=[
                ActivityEntryResponse(
                    action=entry.action,
                    target=entry.target,
                    target_id=str(entry.target_id) if entry.target_id else None,
                    logged_at=entry.logged_at,
                )
                for entry in admin.activity_log
            ],
        )


class ProfileResponse(BaseModel):
    user: UserResponse
    customer: CustomerResponse | None = None
    publisher: PublisherResponse | None = None
    admin: AdminResponse | None = None
