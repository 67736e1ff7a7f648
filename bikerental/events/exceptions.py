class NoSuchEventError(AttributeError):
    """Raised when an event is not part of any event list on a hub."""


class NoSuchListenerError(ValueError):
    """Raised when removing a handler that was never subscribed."""


class InvalidHandlerError(TypeError):
    """Raised when a handler cannot accept the arguments of its event."""
