"""
Error types for drift detection.

Every failure class subclasses ValueError so callers that already guard
against bad input with ``except ValueError`` keep working.
"""


class DriftError(ValueError):
    """Base class for drift detection failures."""


class InvalidInputError(DriftError):
    """Input cannot be analyzed (non-text content, missing brand name, bad setting)."""


class ResourceLimitExceededError(DriftError):
    """Content is longer than the configured ceiling for similarity scoring."""

    def __init__(self, length: int, limit: int, label: str = "content"):
        self.length = length
        self.limit = limit
        self.label = label
        super().__init__(
            f"{label} is {length} characters, exceeding the {limit} character limit. "
            "Raise DRIFT_MAX_CONTENT_LENGTH or truncate the snapshot before comparing."
        )


class SentimentBackendError(DriftError):
    """The configured sentiment backend cannot run (missing NLTK data)."""
