"""Exception types raised by mqa-scoring.

Exception Hierarchy:
    ScoringError (base)
    ├── MalformedGraph - Assessment graph does not have the expected shape
    ├── StorageError - Assessment store failure
    ├── NotFound - No assessment with the requested id
    ├── InvalidIdentifier - Assessment id is not a UUID
    └── ConfigError - Missing or invalid configuration value
"""


class ScoringError(Exception):
    """Base exception for all mqa-scoring errors."""


class MalformedGraph(ScoringError):
    """Raised when an assessment graph violates the DCAT/DQV structure.

    Not retryable: the same graph always fails the same way.

    Attributes:
        reason: Human-readable description of the violation.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"malformed assessment graph: {reason}")


class StorageError(ScoringError):
    """Raised when the assessment store cannot complete an operation."""


class NotFound(ScoringError):
    """Raised when no assessment exists for an identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"assessment '{identifier}' does not exist")


class InvalidIdentifier(ScoringError, ValueError):
    """Raised when an assessment identifier is not a valid UUID."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"invalid assessment id: '{value}'")


class ConfigError(ScoringError):
    """Raised when a required configuration value is missing or invalid."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"{key}: {reason}")
