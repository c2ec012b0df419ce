"""Domain events for the User aggregate."""

from protean.fields import DateTime, Identifier, String

from bookstore.domain import bookstore


@bookstore.event(part_of="User")
class UserRegistered:
    """A new account signed up on the marketplace."""

    __version__ = 1

    user_id: Identifier(required=True)
    username: String(required=True)
    email: String(required=True)
    account_type: String(required=True)
    registered_at: DateTime(required=True)


@bookstore.event(part_of="User")
class RoleAdded:
    """An existing account took on another role, such as becoming a publisher."""

    __version__ = 1

    user_id: Identifier(required=True)
    role: String(required=True)


@bookstore.event(part_of="User")
class UserLoggedIn:
    __version__ = 1

    user_id: Identifier(required=True)
    logged_in_at: DateTime(required=True)


@bookstore.event(part_of="User")
class PasswordChanged:
    __version__ = 1

    user_id: Identifier(required=True)
    changed_at: DateTime(required=True)


@bookstore.event(part_of="User")
class PasswordResetRequested:
    """A reset token was issued. Delivery of the token is out of band."""

    __version__ = 1

    user_id: Identifier(required=True)
    email: String(required=True)
    requested_at: DateTime(required=True)


@bookstore.event(part_of="User")
class UserProfileUpdated:
    __version__ = 1

    user_id: Identifier(required=True)
    full_name: String(required=True)
    display_name: String()
    phone: String()


@bookstore.event(part_of="User")
class AvatarChanged:
    __version__ = 1

    user_id: Identifier(required=True)
    avatar: String()


@bookstore.event(part_of="User")
class UserDeactivated:
    __version__ = 1

    user_id: Identifier(required=True)
    deactivated_at: DateTime(required=True)


@bookstore.event(part_of="User")
class UserReactivated:
    __version__ = 1

    user_id: Identifier(required=True)
    reactivated_at: DateTime(required=True)
