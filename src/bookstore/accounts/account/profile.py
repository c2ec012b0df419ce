"""User profile and account status — commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from bookstore.accounts.account.user import User
from bookstore.domain import bookstore
from bookstore.utils.storage import remove_upload


@bookstore.command(part_of="User")
class UpdateUserProfile:
    """Partial update; omitted fields are left unchanged."""

    user_id: Identifier(required=True)
    full_name: String(max_length=150)
    display_name: String(max_length=100)
    phone: String(max_length=20)


@bookstore.command(part_of="User")
class ChangeAvatar:
    user_id: Identifier(required=True)
    avatar_path: String(required=True, max_length=500)


@bookstore.command(part_of="User")
class RemoveAvatar:
    user_id: Identifier(required=True)


@bookstore.command(part_of="User")
class DeactivateUser:
    user_id: Identifier(required=True)


@bookstore.command(part_of="User")
class ReactivateUser:
    user_id: Identifier(required=True)


@bookstore.command_handler(part_of=User)
class ManageProfileHandler:
    @handle(UpdateUserProfile)
    def update_profile(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        changes = {
            field: getattr(command, field)
            for field in ("full_name", "display_name", "phone")
            if getattr(command, field) is not None
        }
        user.update_profile(**changes)
        repo.add(user)

    @handle(ChangeAvatar)
    def change_avatar(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        previous = user.change_avatar(command.avatar_path)
        repo.add(user)
        remove_upload(previous)

    @handle(RemoveAvatar)
    def remove_avatar(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        previous = user.change_avatar(None)
        repo.add(user)
        remove_upload(previous)

    @handle(DeactivateUser)
    def deactivate_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.deactivate()
        repo.add(user)

    @handle(ReactivateUser)
    def reactivate_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.reactivate()
        repo.add(user)
