"""User aggregate: the login identity behind every Customer, Publisher and Admin profile."""

import json
import re
from datetime import datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String, Text

from bookstore.accounts.account.passwords import hash_password, verify_password
from bookstore.accounts.account.tokens import AuthenticationError
from bookstore.domain import bookstore

_EMAIL_PATTERN = re.compile(r"^[^@\s;,()<>\[\]\\:\"]+@[^@\s;,()<>\[\]\\:\"]+\.[^@\s;,()<>\[\]\\:\"]+$")
_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


class AccountType(Enum):
    """Roles a user account can carry. Each role has its own profile aggregate."""

    CUSTOMER = "Customer"
    PUBLISHER = "Publisher"
    ADMIN = "Admin"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@bookstore.aggregate
class User:
    """A person who can sign in to the marketplace.

    Credentials, contact details and role tags live here. Role-specific state
    (wishlist, earnings, permissions) lives on the profile aggregates, which
    reference the user by id.
    """

    username: String(required=True, max_length=50)
    email: String(required=True, max_length=254, unique=True)
    password_hash: String(required=True, max_length=255)
    full_name: String(required=True, max_length=150)
    display_name: String(max_length=100)
    phone_numbers: Text()  # JSON list of strings
    avatar: String(max_length=500)
    is_active: Boolean(default=True)
    email_verified: Boolean(default=False)
    phone_verified: Boolean(default=False)
    account_types: Text()  # JSON list of AccountType values
    last_login_at: DateTime()
    created_at: DateTime(default=datetime.now)
    updated_at: DateTime(default=datetime.now)

    @invariant.post
    def email_must_be_well_formed(self):
        if self.email and (not _EMAIL_PATTERN.match(self.email) or ".." in self.email):
            raise ValidationError({"email": [f"Invalid email address: {self.email!r}"]})

    @invariant.post
    def phone_numbers_must_be_valid(self):
        for number in self.phones:
            if not re.search(r"\d", number) or not _PHONE_PATTERN.match(number):
                raise ValidationError({"phone_numbers": [f"Invalid phone number: {number!r}"]})

    @invariant.post
    def must_carry_at_least_one_role(self):
        if not self.roles:
            raise ValidationError({"account_types": ["A user must have at least one account type"]})

    @property
    def roles(self) -> list[str]:
        return json.loads(self.account_types) if self.account_types else []

    @property
    def phones(self) -> list[str]:
        return json.loads(self.phone_numbers) if self.phone_numbers else []

    def has_role(self, role: AccountType) -> bool:
        return role.value in self.roles

    @classmethod
    def register(cls, username, email, password, full_name, account_type=AccountType.CUSTOMER, phone=None):
        from bookstore.accounts.account.events import UserRegistered

        user = cls(
            username=username.strip(),
            email=normalize_email(email),
            password_hash=hash_password(password),
            full_name=full_name.strip(),
            display_name=username.strip(),
            phone_numbers=json.dumps([phone] if phone else []),
            account_types=json.dumps([account_type.value]),
        )
        user.raise_(
            UserRegistered(
                user_id=user.id,
                username=user.username,
                email=user.email,
                account_type=account_type.value,
                registered_at=user.created_at,
            )
        )
        return user

    def add_role(self, role: AccountType):
        from bookstore.accounts.account.events import RoleAdded

        if self.has_role(role):
            raise ValidationError({"account_types": [f"User is already a {role.value}"]})

        self.account_types = json.dumps(self.roles + [role.value])
        self.updated_at = datetime.now()
        self.raise_(RoleAdded(user_id=self.id, role=role.value))

    def authenticate(self, password) -> bool:
        """Check credentials and stamp the login time on success."""
        from bookstore.accounts.account.events import UserLoggedIn

        if not verify_password(password, self.password_hash):
            return False
        if not self.is_active:
            raise AuthenticationError("Account is deactivated")

        self.last_login_at = datetime.now()
        self.raise_(UserLoggedIn(user_id=self.id, logged_in_at=self.last_login_at))
        return True

    def change_password(self, current_password, new_password):
        if not verify_password(current_password, self.password_hash):
            raise ValidationError({"current_password": ["Current password is incorrect"]})
        self.reset_password(new_password)

    def reset_password(self, new_password):
        from bookstore.accounts.account.events import PasswordChanged

        self.password_hash = hash_password(new_password)
        self.updated_at = datetime.now()
        self.raise_(PasswordChanged(user_id=self.id, changed_at=self.updated_at))

    def update_profile(self, full_name=_UNSET, display_name=_UNSET, phone=_UNSET):
        from bookstore.accounts.account.events import UserProfileUpdated

        if full_name is not _UNSET and full_name:
            self.full_name = full_name.strip()
        if display_name is not _UNSET:
            self.display_name = display_name.strip() if display_name else self.username
        if phone is not _UNSET:
            phones = self.phones
            if phone and phone not in phones:
                # The most recently supplied number is the primary one
                phones.insert(0, phone)
                self.phone_verified = False
            self.phone_numbers = json.dumps(phones)

        self.updated_at = datetime.now()
        self.raise_(
            UserProfileUpdated(
                user_id=self.id,
                full_name=self.full_name,
                display_name=self.display_name,
                phone=self.phones[0] if self.phones else None,
            )
        )

    def change_avatar(self, path):
        """Replace the avatar, returning the previous stored path (if any) for cleanup."""
        from bookstore.accounts.account.events import AvatarChanged

        previous = self.avatar
        self.avatar = path
        self.updated_at = datetime.now()
        self.raise_(AvatarChanged(user_id=self.id, avatar=path))
        return previous

    def deactivate(self):
        from bookstore.accounts.account.events import UserDeactivated

        if not self.is_active:
            raise ValidationError({"is_active": ["Account is already deactivated"]})

        self.is_active = False
        self.updated_at = datetime.now()
        self.raise_(UserDeactivated(user_id=self.id, deactivated_at=self.updated_at))

    def reactivate(self):
        from bookstore.accounts.account.events import UserReactivated

        if self.is_active:
            raise ValidationError({"is_active": ["Account is already active"]})

        self.is_active = True
        self.updated_at = datetime.now()
        self.raise_(UserReactivated(user_id=self.id, reactivated_at=self.updated_at))

    def request_password_reset(self):
        from bookstore.accounts.account.events import PasswordResetRequested

        self.raise_(PasswordResetRequested(user_id=self.id, email=self.email, requested_at=datetime.now()))

    def verify_email(self):
        self.email_verified = True
        self.updated_at = datetime.now()


@bookstore.repository(part_of=User)
class UserRepository:
    def find_by_email(self, email: str) -> User | None:
        return self._dao.query.filter(email=normalize_email(email)).all().first
