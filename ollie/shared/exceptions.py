"""
Exception hierarchy for Ollie.
"""


class OllieError(Exception):
    """Base exception for all Ollie errors."""
    pass


class StorageError(OllieError):
    """Raised when local key-value storage cannot be read or written."""
    pass


class ToolGenerationError(OllieError):
    """Raised when a learning tool (flashcards, quiz, ...) cannot be generated."""
    pass


class ToolTimeoutError(ToolGenerationError):
    """Raised when a learning tool generation does not finish in time."""
    pass
