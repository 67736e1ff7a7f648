"""
Errors
------

The failures a rental operation can end in. Each error carries a ``kind`` so
that the transport can map it to a response without knowing the operation.
"""


class RentalError(Exception):
    """The base of all the errors raised by the rental services."""

    kind = "error"

    @property
    def message(self) -> str:
        return str(self)


class NotFoundError(RentalError):
    """The referenced entity does not exist."""

    kind = "not_found"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ForbiddenError(RentalError):
    """The caller may not act on the entity."""

    kind = "forbidden"

    def __init__(self, message="you may not act on this booking"):
        super().__init__(message)


class ConflictError(RentalError):
    """The operation would break one of the booking invariants."""

    kind = "conflict"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ServiceError(RentalError):
    """A collaborator failed unexpectedly."""

    kind = "service_error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AvailabilityError(ServiceError):
    """Writing a bike's availability failed."""
