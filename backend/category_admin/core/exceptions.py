"""Domain errors raised by the category services."""


class CategoryAdminError(Exception):
    """Base class for category admin errors."""


class CategoryValidationError(CategoryAdminError):
    """Input rejected before any mutation (blank or duplicate name, bad target)."""


class CategoryDeleteFailed(CategoryAdminError):
    """The store reported no row removed although the category existed."""

    def __init__(self, category_id: str):
        super().__init__(f"Delete failed for category {category_id}")
        self.category_id = category_id


class CacheError(CategoryAdminError):
    """A cache backend read, write or invalidation failed."""

    def __init__(self, operation: str, key: str, cause: Exception):
        super().__init__(f"Cache {operation} failed for {key!r}: {cause}")
        self.operation = operation
        self.key = key
        self.cause = cause


class SubscriberError(CategoryAdminError):
    """A notification subscriber raised while handling an event."""

    def __init__(self, callback, event_type: str, cause: Exception):
        name = getattr(callback, "__qualname__", repr(callback))
        super().__init__(f"Subscriber {name} failed on {event_type!r}: {cause}")
        self.callback = callback
        self.event_type = event_type
        self.cause = cause
