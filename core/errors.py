"""
Error taxonomy for the frame sync engine.

Nothing here is retried; every error surfaces synchronously to the caller
of the method that hit it.
"""


class FrameSyncError(Exception):
    """Base class for all frame sync failures."""


class SourceUnavailableError(FrameSyncError):
    """The bag could not be opened (missing, unreadable or corrupt)."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot open bag {path}: {reason}")
        self.path = path
        self.reason = reason


class SchemaInconsistencyError(FrameSyncError):
    """A topic was declared with two different message types in one bag."""

    def __init__(self, topic: str, first_type: str, new_type: str):
        super().__init__(
            f"Unexpected change in topic type {topic} has {first_type} "
            f"with new type {new_type}"
        )
        self.topic = topic
        self.first_type = first_type
        self.new_type = new_type


class MalformedConfigurationError(FrameSyncError, ValueError):
    """A configuration record carries an origin key that does not parse."""
