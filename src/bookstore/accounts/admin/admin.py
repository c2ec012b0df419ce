"""Admin profile aggregate with an append-only activity log."""

import json
from datetime import datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, String, Text

from bookstore.domain import bookstore


class AdminLevel(Enum):
    SUPER_ADMIN = "super-admin"
    ADMIN = "admin"
    MODERATOR = "moderator"
    SUPPORT = "support"


class Permission(Enum):
    USER_MANAGEMENT = "user-management"
    BOOK_MANAGEMENT = "book-management"
    ORDER_MANAGEMENT = "order-management"
    CONTENT_MODERATION = "content-moderation"
    ANALYTICS_VIEW = "analytics-view"
    SYSTEM_SETTINGS = "system-settings"
    PAYMENT_MANAGEMENT = "payment-management"
    SUPPORT_TICKETS = "support-tickets"


class Department(Enum):
    OPERATIONS = "operations"
    CONTENT = "content"
    CUSTOMER_SERVICE = "customer-service"
    TECHNICAL = "technical"
    FINANCE = "finance"


@bookstore.entity(part_of="Admin")
class ActivityEntry:
    action: String(required=True, max_length=100)
    target: String(required=True, max_length=50)
    target_id: Identifier()
    logged_at: DateTime(default=datetime.now)


@bookstore.aggregate
class Admin:
    """Back-office profile of a user. Super admins hold every permission implicitly."""

    user_id: Identifier(required=True, unique=True)
    level: String(required=True, choices=AdminLevel)
    permissions: Text()  # JSON list of Permission values
    department: String(choices=Department)
    activity_log: HasMany(ActivityEntry)
    last_activity_at: DateTime()

    @invariant.post
    def permissions_must_be_known(self):
        known = {p.value for p in Permission}
        unknown = [p for p in self.permission_list if p not in known]
        if unknown:
            raise ValidationError({"permissions": [f"Unknown permissions: {', '.join(unknown)}"]})

    @property
    def permission_list(self) -> list[str]:
        return json.loads(self.permissions) if self.permissions else []

    @classmethod
    def create(cls, user_id, level=AdminLevel.ADMIN.value, permissions=None, department=None):
        if level == AdminLevel.SUPER_ADMIN.value and permissions is None:
            permissions = [p.value for p in Permission]
        return cls(
            user_id=user_id,
            level=level,
            permissions=json.dumps(list(permissions or [])),
            department=department,
        )

    def has_permission(self, permission: str) -> bool:
        return self.level == AdminLevel.SUPER_ADMIN.value or permission in self.permission_list

    def grant_permission(self, permission: str):
        current = self.permission_list
        if permission not in current:
            self.permissions = json.dumps(current + [permission])

    def revoke_permission(self, permission: str):
        self.permissions = json.dumps([p for p in self.permission_list if p != permission])

    def log_activity(self, action, target, target_id=None):
        now = datetime.now()
        self.add_activity_log(ActivityEntry(action=action, target=target, target_id=target_id, logged_at=now))
        self.last_activity_at = now


@bookstore.repository(part_of=Admin)
class AdminRepository:
    def find_by_user(self, user_id) -> Admin | None:
        return self._dao.query.filter(user_id=str(user_id)).all().first
