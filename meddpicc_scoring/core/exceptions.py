"""
Custom Exceptions - MEDDPICC Scoring Engine
meddpicc_scoring/core/exceptions.py

Typed error taxonomy. Callers branch on the class (or error_code / retryable),
never on message text.
"""

from typing import List, Optional


class QualificationError(Exception):
    """Base exception for the qualification engine."""

    error_code = "QUALIFICATION_ERROR"
    retryable = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationValidationError(QualificationError):
    """Configuration rejected before persistence."""

    error_code = "CONFIGURATION_INVALID"

    def __init__(self, errors: List[str], warnings: Optional[List[str]] = None):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__(f"Configuration validation failed: {'; '.join(self.errors)}")


class ConfigurationConflictError(QualificationError):
    """A concurrent write for the same organization committed first."""

    error_code = "CONFIGURATION_CONFLICT"
    retryable = True

    def __init__(self, organization_id: str, message: Optional[str] = None):
        self.organization_id = organization_id
        super().__init__(
            message or f"Configuration for organization {organization_id} was changed concurrently"
        )


class ConfigurationNotFoundError(QualificationError):
    """No configuration matches the request."""

    error_code = "CONFIGURATION_NOT_FOUND"

    def __init__(self, organization_id: str, version: Optional[int] = None):
        self.organization_id = organization_id
        self.version = version
        if version is None:
            message = f"No active configuration for organization {organization_id}"
        else:
            message = f"Configuration version {version} not found for organization {organization_id}"
        super().__init__(message)


class UnknownQuestionReferenceError(QualificationError):
    """
    A response cites a pillar/question absent from the configuration in use.
    Non-fatal: logged and reported, never raised to the caller.
    """

    error_code = "UNKNOWN_QUESTION_REFERENCE"

    def __init__(self, pillar_id: str, question_id: Optional[str], config_version: int):
        self.pillar_id = pillar_id
        self.question_id = question_id
        self.config_version = config_version
        target = f"{pillar_id}.{question_id}" if question_id else pillar_id
        super().__init__(f"Unknown question reference {target} for configuration version {config_version}")


class ParseAmbiguityWarning(UserWarning):
    """
    A simple-format line could not be matched to a question and was assigned
    to the pillar's first question.
    """

    def __init__(self, pillar_id: str, line: str, question_id: Optional[str]):
        self.pillar_id = pillar_id
        self.line = line
        self.question_id = question_id
        super().__init__(
            f"Unmatched text in pillar {pillar_id} assigned to question {question_id}: {line[:80]!r}"
        )


class InfrastructureError(QualificationError):
    """Persistence layer unavailable or failing."""

    error_code = "INFRASTRUCTURE_ERROR"
    retryable = True


class RepositoryException(InfrastructureError):
    """Base exception for repository operations."""

    pass


class DuplicateEntityException(RepositoryException):
    """Duplicate entity violation."""

    def __init__(self, message: str = "Entity already exists"):
        super().__init__(message)


class DatabaseConnectionException(RepositoryException):
    """Database connection failure."""

    def __init__(self, message: str = "Database connection failed"):
        super().__init__(message)
