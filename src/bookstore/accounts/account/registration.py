"""Account registration — commands and handler.

Every registration creates the User together with the profile aggregate of
its role in one unit of work, so a user never exists without its profile.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from bookstore.accounts.account.user import AccountType, User
from bookstore.accounts.admin.admin import Admin, AdminLevel
from bookstore.accounts.customer.customer import Customer
from bookstore.accounts.publisher.publisher import Publisher
from bookstore.domain import bookstore


def _as_list(value):
    if value is None:
        return []
    return json.loads(value) if isinstance(value, str) else list(value)


def _ensure_email_available(email):
    if current_domain.repository_for(User).find_by_email(email) is not None:
        raise ValidationError({"email": ["Email is already registered"]})


@bookstore.command(part_of="User")
class RegisterCustomer:
    """Sign up a new buyer account."""

    username: String(required=True, max_length=50)
    email: String(required=True, max_length=254)
    password: String(required=True, max_length=128)
    full_name: String(required=True, max_length=150)
    phone: String(max_length=20)
    favorite_genres: Text()  # JSON list


@bookstore.command(part_of="User")
class RegisterPublisher:
    """Sign up a new account that sells books."""

    username: String(required=True, max_length=50)
    email: String(required=True, max_length=254)
    password: String(required=True, max_length=128)
    full_name: String(required=True, max_length=150)
    phone: String(max_length=20)
    pen_name: String(max_length=100)
    biography: String(max_length=2000)
    website: String(max_length=255)
    genres: Text()  # JSON list


@bookstore.command(part_of="User")
class UpgradeToPublisher:
    """Give an existing account a publisher profile."""

    user_id: Identifier(required=True)
    pen_name: String(max_length=100)
    biography: String(max_length=2000)
    website: String(max_length=255)
    genres: Text()  # JSON list


@bookstore.command(part_of="User")
class CreateAdmin:
    """Bootstrap a back-office account. Used by the management CLI."""

    username: String(required=True, max_length=50)
    email: String(required=True, max_length=254)
    password: String(required=True, max_length=128)
    full_name: String(required=True, max_length=150)
    level: String(default=AdminLevel.SUPER_ADMIN.value, max_length=20)
    department: String(max_length=30)


@bookstore.command_handler(part_of=User)
class RegistrationHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        _ensure_email_available(command.email)

        user = User.register(
            username=command.username,
            email=command.email,
            password=command.password,
            full_name=command.full_name,
            account_type=AccountType.CUSTOMER,
            phone=command.phone,
        )
        customer = Customer.create(user_id=user.id, favorite_genres=_as_list(command.favorite_genres))

        current_domain.repository_for(User).add(user)
        current_domain.repository_for(Customer).add(customer)
        return str(user.id)

    @handle(RegisterPublisher)
    def register_publisher(self, command):
        _ensure_email_available(command.email)

        user = User.register(
            username=command.username,
            email=command.email,
            password=command.password,
            full_name=command.full_name,
            account_type=AccountType.PUBLISHER,
            phone=command.phone,
        )
        publisher = Publisher.create(
            user_id=user.id,
            pen_name=command.pen_name or command.full_name,
            biography=command.biography,
            website=command.website,
            genres=_as_list(command.genres),
        )

        current_domain.repository_for(User).add(user)
        current_domain.repository_for(Publisher).add(publisher)
        return str(user.id)

    @handle(UpgradeToPublisher)
    def upgrade_to_publisher(self, command):
        user_repo = current_domain.repository_for(User)
        publisher_repo = current_domain.repository_for(Publisher)

        user = user_repo.get(command.user_id)
        if publisher_repo.find_by_user(user.id) is not None:
            raise ValidationError({"user_id": ["User already has a publisher profile"]})

        user.add_role(AccountType.PUBLISHER)
        publisher = Publisher.create(
            user_id=user.id,
            pen_name=command.pen_name or user.full_name,
            biography=command.biography,
            website=command.website,
            genres=_as_list(command.genres),
        )

        user_repo.add(user)
        publisher_repo.add(publisher)
        return str(publisher.id)

    @handle(CreateAdmin)
    def create_admin(self, command):
        _ensure_email_available(command.email)

        user = User.register(
            username=command.username,
            email=command.email,
            password=command.password,
            full_name=command.full_name,
            account_type=AccountType.ADMIN,
        )
        user.verify_email()
        admin = Admin.create(user_id=user.id, level=command.level, department=command.department)

        current_domain.repository_for(User).add(user)
        current_domain.repository_for(Admin).add(admin)
        return str(user.id)
