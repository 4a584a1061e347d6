"""
Exception hierarchy for proposal-copilot.

Gateway errors are never retried inside the package; callers decide on
retry and backoff.
"""


class CopilotError(Exception):
    """Base class for all proposal-copilot errors."""


class EmbeddingError(CopilotError):
    """The embedding gateway was unreachable, timed out or returned a malformed vector."""


class CompletionError(CopilotError):
    """The completion gateway was unreachable, timed out or returned no content."""


class IndexCorruptionError(CopilotError):
    """A persisted vector index blob could not be parsed."""


class ConfigurationError(CopilotError, ValueError):
    """Invalid configuration or a document missing required fields."""
