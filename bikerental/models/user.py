"""
User
---------------------------

Users are registered with the authentication provider. The server only keeps
the profile it needs to decide what a caller is allowed to do.
"""
from enum import Enum

from tortoise import Model, fields

from bikerental.models.fields import EnumField


class UserType(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class User(Model):
    """
    Represents a User in the system.
    """

    id = fields.CharField(max_length=64, pk=True)
    """The identity issued by the authentication provider."""

    name = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255, unique=True)

    type: UserType = EnumField(UserType, default=UserType.CUSTOMER)

    @property
    def is_admin(self) -> bool:
        return self.type is UserType.ADMIN

    def serialize(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "type": self.type,
        }

    def __str__(self):
        return f"[{self.id}] {self.name} ({self.email})"
