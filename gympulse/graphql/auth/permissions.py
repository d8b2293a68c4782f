from strawberry.permission import BasePermission
from strawberry.types import Info


class IsAuthenticated(BasePermission):
    message = "Authentication required."

    def has_permission(self, source, info: Info, **kwargs) -> bool:
        return bool(info.context.user)


class IsAdmin(BasePermission):
    message = "Administrator access required."

    def has_permission(self, source, info: Info, **kwargs) -> bool:
        user = info.context.user
        return bool(user) and user.role == "ADMIN"


class IsStaff(BasePermission):
    """Admins and trainers."""
    message = "Staff access required."

    def has_permission(self, source, info: Info, **kwargs) -> bool:
        user = info.context.user
        return bool(user) and user.role in ("ADMIN", "TRAINER")
