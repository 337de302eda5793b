from core_backend.exceptions import NotFound
from .models import User


class UserLookupService:
    """Read-only user lookups used by the order and loyalty services."""

    @staticmethod
    def find_by_id(user_id) -> User:
        try:
            return User.objects.get(pk=user_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFound("User not found")

    @staticmethod
    def find_active_by_id(user_id) -> User:
        user = UserLookupService.find_by_id(user_id)
        if not user.is_active:
            raise NotFound("User not found")
        return user
