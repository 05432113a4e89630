"""
Role based access control for the ward API.
"""
from rest_framework.permissions import BasePermission

CLINICAL_ROLES = {"doctor", "nurse", "administrator"}


def is_active_account(user) -> bool:
    """Signed in and not switched to the inactive ward status."""
    return bool(user and user.is_authenticated and getattr(user, "status", "active") == "active")


def _active_user(request):
    user = getattr(request, "user", None)
    return user if is_active_account(user) else None


class IsClinicalRole(BasePermission):
    """Active doctors, nurses and administrators."""
    message = "clinical account required"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = _active_user(request)
        return bool(user and getattr(user, "role", None) in CLINICAL_ROLES)


class IsAdministrator(BasePermission):
    """Only ward administrators."""
    message = "administrator role required"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = _active_user(request)
        return bool(user and getattr(user, "role", None) == "administrator")
