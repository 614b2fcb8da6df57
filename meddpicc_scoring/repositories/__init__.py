"""
Repositories Package - MEDDPICC Scoring Engine
meddpicc_scoring/repositories/__init__.py

Data access layer for configuration versions and their history.
"""

from meddpicc_scoring.repositories.configuration_repository import (
    ConfigurationRepository,
    InMemoryConfigurationRepository,
)

__all__ = [
    "ConfigurationRepository",
    "InMemoryConfigurationRepository",
]
