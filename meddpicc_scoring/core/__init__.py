"""
Core Package - MEDDPICC Scoring Engine
meddpicc_scoring/core/__init__.py

Core infrastructure: exceptions, logging.
"""

from meddpicc_scoring.core.exceptions import (
    ConfigurationConflictError,
    ConfigurationNotFoundError,
    ConfigurationValidationError,
    DatabaseConnectionException,
    DuplicateEntityException,
    InfrastructureError,
    ParseAmbiguityWarning,
    QualificationError,
    RepositoryException,
    UnknownQuestionReferenceError,
)

__all__ = [
    "ConfigurationConflictError",
    "ConfigurationNotFoundError",
    "ConfigurationValidationError",
    "DatabaseConnectionException",
    "DuplicateEntityException",
    "InfrastructureError",
    "ParseAmbiguityWarning",
    "QualificationError",
    "RepositoryException",
    "UnknownQuestionReferenceError",
]
