"""Admin permission management — commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from bookstore.accounts.admin.admin import Admin
from bookstore.domain import bookstore


@bookstore.command(part_of="Admin")
class GrantPermission:
    admin_id: Identifier(required=True)
    permission: String(required=True, max_length=50)


@bookstore.command(part_of="Admin")
class RevokePermission:
    admin_id: Identifier(required=True)
    permission: String(required=True, max_length=50)


@bookstore.command_handler(part_of=Admin)
class ManageAdminHandler:
    @handle(GrantPermission)
    def grant_permission(self, command):
        repo = current_domain.repository_for(Admin)
        admin = repo.get(command.admin_id)
        admin.grant_permission(command.permission)
        repo.add(admin)

    @handle(RevokePermission)
    def revoke_permission(self, command):
        repo = current_domain.repository_for(Admin)
        admin = repo.get(command.admin_id)
        admin.revoke_permission(command.permission)
        repo.add(admin)
