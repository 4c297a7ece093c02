"""Authentication and user enums."""

from enum import Enum


class Role(str, Enum):
    """User roles used for notification routing."""

    ADMIN = "admin"
    MANAGER = "manager"
    OPERATOR = "operator"
    VIEWER = "viewer"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_
