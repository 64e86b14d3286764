"""Role-based DRF permissions."""

from rest_framework.permissions import BasePermission


class IsStoreAdmin(BasePermission):
    message = "Admin role required."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "is_store_admin", False))


class IsAdminOrDelivery(BasePermission):
    message = "Admin or delivery role required."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return bool(getattr(user, "is_store_admin", False) or getattr(user, "is_delivery_partner", False))
