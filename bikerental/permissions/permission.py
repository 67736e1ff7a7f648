"""
Permission
----------

Permissions are composed with the usual boolean operators:

>>> requires(UserMatchesToken() | UserIsAdmin())
>>> requires(ValidToken() & ~UserIsRegistered())
"""

from abc import ABC, abstractmethod
from itertools import chain
from typing import List

from aiohttp.web_urldispatcher import View


class RoutePermissionError(Exception):
    """
    Raised when a permission is not met. Composite permissions collect the
    errors of their parts as sub errors.
    """

    def __init__(self, *messages, qualifier=None, sub_errors: List['RoutePermissionError'] = None):
        if messages and (qualifier is not None or sub_errors is not None):
            raise ValueError("RoutePermissionError takes either messages or sub errors, not both.")

        super().__init__(*messages)
        self.messages = messages
        self.sub_errors = sub_errors if sub_errors is not None else []
        self.qualifier = qualifier

    def __str__(self):
        """Joins the reasons into a sentence, such as "a, b or c"."""
        reasons = [m.lower().strip(".") for m in self.messages]
        reasons += [str(error) for error in self.sub_errors]

        if len(reasons) > 1 and self.qualifier is not None:
            return ", ".join(reasons[:-1]) + f" {self.qualifier} {reasons[-1]}"
        return ", ".join(reasons)

    def serialize(self) -> List[str]:
        """Flattens the messages of the error and its sub errors into a list."""
        return list(self.messages) + list(chain.from_iterable(err.serialize() for err in self.sub_errors))


class Permission(ABC):
    """
    The base class for permissions, which implements the boolean logic.
    """

    def __and__(self, other):
        return AndPermission(*self._flatten(AndPermission, self, other))

    def __or__(self, other):
        return OrPermission(*self._flatten(OrPermission, self, other))

    def __invert__(self):
        return NotPermission(self)

    def __repr__(self):
        return f"{type(self).__name__}()"

    @staticmethod
    def _flatten(kind, *permissions):
        """Merges nested permissions of the same kind, so that a & b & c has three parts."""
        flat = []
        for permission in permissions:
            if isinstance(permission, kind):
                flat += permission.permissions
            else:
                flat.append(permission)
        return flat

    @abstractmethod
    async def __call__(self, view: View, **kwargs) -> None:
        """
        Evaluates the permission against a view and the arguments its handler gets.

        :raises RoutePermissionError: If the permission failed.
        """


class AndPermission(Permission):
    """Met when all of its parts are met."""

    def __init__(self, *permissions):
        self.permissions = permissions

    async def __call__(self, view, **kwargs):
        errors = []

        for permission in self.permissions:
            try:
                await permission(view, **kwargs)
            except RoutePermissionError as error:
                errors.append(error)

        if errors:
            raise RoutePermissionError(qualifier="and", sub_errors=errors)

    def __repr__(self):
        return "(" + " & ".join(repr(p) for p in self.permissions) + ")"

    def __len__(self):
        return len(self.permissions)


class OrPermission(Permission):
    """Met as soon as one of its parts is met."""

    def __init__(self, *permissions):
        self.permissions = permissions

    async def __call__(self, view, **kwargs):
        errors = []

        for permission in self.permissions:
            try:
                await permission(view, **kwargs)
            except RoutePermissionError as error:
                errors.append(error)
            else:
                return

        raise RoutePermissionError(qualifier="or", sub_errors=errors)

    def __repr__(self):
        return "(" + " | ".join(repr(p) for p in self.permissions) + ")"

    def __len__(self):
        return len(self.permissions)


class NotPermission(Permission):
    """Met when its part is not."""

    def __init__(self, permission):
        self.permission = permission

    async def __call__(self, view, **kwargs):
        try:
            await self.permission(view, **kwargs)
        except RoutePermissionError:
            return

        raise RoutePermissionError(f"Permission {self.permission!r} passed, but is inverted.")

    def __repr__(self):
        return f"~{self.permission!r}"
