"""User provisioning and preferences."""

import dataclasses
from typing import Any, Optional

from pennywise.database.base import Database
from pennywise.domain.entities import User, UserPreferences
from pennywise.domain.errors import NotFoundError, ValidationError
from pennywise.utils.date_parser import to_local_time, utcnow


class UserService:
    """Service for users forwarded by the identity provider."""

    def __init__(self, db: Database):
        self.db = db

    def ensure_user(
        self, user_id: str, email: Optional[str] = None, first_name: str = "", last_name: str = ""
    ) -> User:
        """Return the user, provisioning it on first use.

        Raises:
            ValidationError: If the user ID is blank
        """
        user_id = (user_id or "").strip()
        if not user_id:
            raise ValidationError("User ID is required")
        return self.db.ensure_user(user_id, email=email, first_name=first_name, last_name=last_name)

    def get_preferences(self, user_id: str) -> UserPreferences:
        user = self.db.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user.preferences

    def update_preferences(self, user_id: str, **changes: Any) -> UserPreferences:
        """Update selected preference fields and return the result.

        Raises:
            ValidationError: If a field is unknown or a threshold is out of range
        """
        current = self.get_preferences(user_id)
        known = {f.name for f in dataclasses.fields(UserPreferences)}
        unknown = set(changes) - known
        if unknown:
            raise ValidationError(f"Unknown preferences: {', '.join(sorted(unknown))}")

        updated = dataclasses.replace(current, **changes)
        if not 0 < updated.credit_card_threshold <= 100:
            raise ValidationError("Credit card threshold must be between 1 and 100")
        if updated.low_balance_threshold < 0:
            raise ValidationError("Low balance threshold cannot be negative")
        try:
            to_local_time(utcnow(), updated.timezone)
        except ValueError as e:
            raise ValidationError(str(e))
        self.db.update_user_preferences(user_id, updated)
        return updated
