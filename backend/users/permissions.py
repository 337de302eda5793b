from rest_framework import permissions

from core_backend.exceptions import Forbidden
from .models import User


def ensure_role(actor, *roles):
    """
    Capability check run at the start of a service operation.

    Raises Forbidden unless the acting user is active and holds one of the
    given roles.
    """
    if actor is None or not getattr(actor, "is_active", False):
        raise Forbidden()
    if actor.role not in roles:
        raise Forbidden()
    return actor


def ensure_admin(actor):
    return ensure_role(actor, User.Role.ADMIN)


def ensure_staff(actor):
    return ensure_role(actor, User.Role.KITCHEN_STAFF, User.Role.ADMIN)


class IsAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == User.Role.ADMIN


class IsKitchenStaffOrAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in [
            User.Role.KITCHEN_STAFF,
            User.Role.ADMIN,
        ]
