class EventError(Exception):
    """Base exception for event bus failures."""


class EventValidationError(EventError):
    """Raised when an event or its payload does not match its kind."""


class EventPublishError(EventError):
    """Raised when an event cannot be handed to the bus."""
