"""Identity lookups used by the ride services."""

from django.contrib.auth import get_user_model

from common.exceptions import RiderNotFoundError


def resolve_user_by_id(user_id):
    """
    Return the user with this id.

    Raises:
        RiderNotFoundError: If no such user exists
    """
    User = get_user_model()
    try:
        return User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise RiderNotFoundError(f"User not found with id: {user_id}")


def describe_user(user) -> dict:
    """Minimal identity card: id, name and phone."""
    return {
        "id": user.id,
        "name": user.display_name,
        "phone": user.phone_number,
    }
