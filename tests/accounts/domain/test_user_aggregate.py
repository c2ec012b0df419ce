import pytest
from protean.exceptions import ValidationError

from bookstore.accounts.account.events import PasswordChanged, RoleAdded, UserLoggedIn, UserRegistered
from bookstore.accounts.account.tokens import AuthenticationError
from bookstore.accounts.account.user import AccountType, User, normalize_email


def _register(**overrides):
    fields = {
        "username": "reader",
        "email": "Reader@Example.com ",
        "password": "secret123",
        "full_name": "Ada Reader",
    }
    fields.update(overrides)
    return User.register(**fields)


class TestRegistration:
    def test_register_normalises_email(self):
        user = _register()

        assert user.email == "reader@example.com"
        assert user.display_name == "reader"
        assert user.is_active is True
        assert user.roles == [AccountType.CUSTOMER.value]

    def test_password_is_hashed(self):
        user = _register()

        assert user.password_hash != "secret123"
        assert user.password_hash.startswith("pbkdf2_sha256$")

    def test_raises_user_registered(self):
        user = _register(account_type=AccountType.PUBLISHER)

        registered = [e for e in user._events if isinstance(e, UserRegistered)]
        assert registered[0].account_type == "Publisher"

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            _register(email="not-an-email")

    def test_short_password_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _register(password="abc")
        assert "password" in exc.value.messages

    def test_phone_is_recorded(self):
        user = _register(phone="+63 917 123 4567")
        assert user.phones == ["+63 917 123 4567"]

    def test_invalid_phone_rejected(self):
        with pytest.raises(ValidationError):
            _register(phone="call me maybe")

    def test_normalize_email(self):
        assert normalize_email("  Foo@Bar.COM ") == "foo@bar.com"
        assert normalize_email(None) == ""


class TestRoles:
    def test_add_role(self):
        user = _register()
        user.add_role(AccountType.PUBLISHER)

        assert user.has_role(AccountType.CUSTOMER)
        assert user.has_role(AccountType.PUBLISHER)
        assert any(isinstance(e, RoleAdded) for e in user._events)

    def test_duplicate_role_rejected(self):
        user = _register()
        with pytest.raises(ValidationError):
            user.add_role(AccountType.CUSTOMER)


class TestAuthentication:
    def test_correct_password(self):
        user = _register()
        user._events.clear()

        assert user.authenticate("secret123") is True
        assert user.last_login_at is not None
        assert any(isinstance(e, UserLoggedIn) for e in user._events)

    def test_wrong_password(self):
        user = _register()
        assert user.authenticate("wrong-password") is False
        assert user.last_login_at is None

    def test_deactivated_account(self):
        user = _register()
        user.deactivate()
        with pytest.raises(AuthenticationError):
            user.authenticate("secret123")


class TestPasswords:
    def test_change_password(self):
        user = _register()
        user.change_password("secret123", "better-secret")

        assert user.authenticate("better-secret")
        assert any(isinstance(e, PasswordChanged) for e in user._events)

    def test_change_password_requires_current(self):
        user = _register()
        with pytest.raises(ValidationError) as exc:
            user.change_password("wrong", "better-secret")
        assert "current_password" in exc.value.messages


class TestProfile:
    def test_partial_update(self):
        user = _register()
        user.update_profile(display_name="Ada")

        assert user.display_name == "Ada"
        assert user.full_name == "Ada Reader"

    def test_blank_display_name_falls_back_to_username(self):
        user = _register()
        user.update_profile(display_name="")
        assert user.display_name == "reader"

    def test_new_phone_becomes_primary(self):
        user = _register(phone="09171234567")
        user.phone_verified = True
        user.update_profile(phone="09981234567")

        assert user.phones == ["09981234567", "09171234567"]
        assert user.phone_verified is False

    def test_change_avatar_returns_previous(self):
        user = _register()
        assert user.change_avatar("avatars/one.png") is None
        assert user.change_avatar("avatars/two.png") == "avatars/one.png"


class TestActivation:
    def test_deactivate_and_reactivate(self):
        user = _register()
        user.deactivate()
        assert user.is_active is False

        user.reactivate()
        assert user.is_active is True

    def test_deactivate_twice_rejected(self):
        user = _register()
        user.deactivate()
        with pytest.raises(ValidationError):
            user.deactivate()

    def test_reactivate_active_rejected(self):
        user = _register()
        with pytest.raises(ValidationError):
            user.reactivate()
