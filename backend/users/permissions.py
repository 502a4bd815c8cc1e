from rest_framework import permissions


class IsAdmin(permissions.BasePermission):
    """Can decide on registrations and issue credentials."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "can_decide", False))


class IsReviewer(permissions.BasePermission):
    """Can read the registration queue without deciding on it."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "can_review", False))
