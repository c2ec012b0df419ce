"""Sign-in and password lifecycle — commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from bookstore.accounts.account import tokens
from bookstore.accounts.account.tokens import AuthenticationError, InvalidToken
from bookstore.accounts.account.user import User
from bookstore.domain import bookstore

logger = structlog.get_logger(__name__)


@bookstore.command(part_of="User")
class Login:
    email: String(required=True, max_length=254)
    password: String(required=True, max_length=128)


@bookstore.command(part_of="User")
class RequestPasswordReset:
    email: String(required=True, max_length=254)


@bookstore.command(part_of="User")
class ResetPassword:
    token: String(required=True, max_length=1000)
    new_password: String(required=True, max_length=128)


@bookstore.command(part_of="User")
class ChangePassword:
    user_id: Identifier(required=True)
    current_password: String(required=True, max_length=128)
    new_password: String(required=True, max_length=128)


@bookstore.command_handler(part_of=User)
class AuthenticationHandler:
    @handle(Login)
    def login(self, command):
        """Return a signed access token for valid credentials."""
        repo = current_domain.repository_for(User)
        user = repo.find_by_email(command.email)
        if user is None or not user.authenticate(command.password):
            logger.warning("Failed login attempt", email=command.email)
            raise AuthenticationError("Invalid email or password")

        repo.add(user)
        logger.info("User logged in", user_id=str(user.id))
        return tokens.issue_token(str(user.id))

    @handle(RequestPasswordReset)
    def request_password_reset(self, command):
        """Issue a short-lived reset token, or None when the e-mail is unknown.

        Callers must answer the same way in both cases so that the endpoint
        does not reveal which addresses are registered.
        """
        repo = current_domain.repository_for(User)
        user = repo.find_by_email(command.email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        user.request_password_reset()
        repo.add(user)
        return tokens.issue_token(
            str(user.id),
            purpose=tokens.PASSWORD_RESET,
            fp=tokens.fingerprint(user.password_hash),
        )

    @handle(ResetPassword)
    def reset_password(self, command):
        try:
            claims = tokens.decode_token(command.token, purpose=tokens.PASSWORD_RESET)
        except InvalidToken as exc:
            raise ValidationError({"token": [str(exc)]}) from exc

        repo = current_domain.repository_for(User)
        user = repo.get(claims["sub"])
        if claims.get("fp") != tokens.fingerprint(user.password_hash):
            raise ValidationError({"token": ["Reset token has already been used"]})

        user.reset_password(command.new_password)
        repo.add(user)

    @handle(ChangePassword)
    def change_password(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.change_password(command.current_password, command.new_password)
        repo.add(user)
