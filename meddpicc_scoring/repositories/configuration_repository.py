"""
Configuration Repository - MEDDPICC Scoring Engine
meddpicc_scoring/repositories/configuration_repository.py

Storage contract for versioned configurations and their history, plus the
process-local implementation used by default and in tests.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from meddpicc_scoring.core.exceptions import (
    ConfigurationConflictError,
    ConfigurationNotFoundError,
    DuplicateEntityException,
)
from meddpicc_scoring.models.configuration import Configuration
from meddpicc_scoring.models.history import ConfigHistoryEntry


class ConfigurationRepository(ABC):
    """
    Persistence operations the configuration store depends on.

    insert() and activate() are atomic: the configuration change and its
    history entry are stored together or not at all.
    """

    @abstractmethod
    def get_by_version(self, organization_id: str, version: int) -> Optional[Configuration]:
        ...

    @abstractmethod
    def get_by_id(self, configuration_id: UUID) -> Optional[Configuration]:
        ...

    @abstractmethod
    def get_active(self, organization_id: str) -> Optional[Configuration]:
        ...

    @abstractmethod
    def get_latest(self, organization_id: str) -> Optional[Configuration]:
        ...

    @abstractmethod
    def list_versions(self, organization_id: str) -> List[Configuration]:
        """All versions, oldest first."""

    @abstractmethod
    def insert(self, configuration: Configuration, history: ConfigHistoryEntry) -> Configuration:
        """Persist a new version. Raises DuplicateEntityException if (organization, version) exists."""

    @abstractmethod
    def activate(
        self,
        organization_id: str,
        version: int,
        expected_active_version: Optional[int],
        history: ConfigHistoryEntry,
    ) -> Configuration:
        """
        Make version the only active configuration for the organization.

        Raises ConfigurationConflictError when the active version is no longer
        expected_active_version, ConfigurationNotFoundError when version does
        not exist.
        """

    @abstractmethod
    def list_history(
        self,
        organization_id: str,
        configuration_id: Optional[UUID] = None,
    ) -> List[ConfigHistoryEntry]:
        """History entries, newest first."""


class InMemoryConfigurationRepository(ConfigurationRepository):
    """Thread-safe in-process repository. One lock guards every mutation."""

    def __init__(self):
        self._lock = threading.Lock()
        self._versions: Dict[str, Dict[int, Configuration]] = {}
        self._history: List[ConfigHistoryEntry] = []

    def get_by_version(self, organization_id: str, version: int) -> Optional[Configuration]:
        with self._lock:
            return self._versions.get(organization_id, {}).get(version)

    def get_by_id(self, configuration_id: UUID) -> Optional[Configuration]:
        with self._lock:
            for versions in self._versions.values():
                for configuration in versions.values():
                    if configuration.id == configuration_id:
                        return configuration
        return None

    def get_active(self, organization_id: str) -> Optional[Configuration]:
        with self._lock:
            return self._active(organization_id)

    def get_latest(self, organization_id: str) -> Optional[Configuration]:
        with self._lock:
            versions = self._versions.get(organization_id)
            if not versions:
                return None
            return versions[max(versions)]

    def list_versions(self, organization_id: str) -> List[Configuration]:
        with self._lock:
            versions = self._versions.get(organization_id, {})
            return [versions[v] for v in sorted(versions)]

    def insert(self, configuration: Configuration, history: ConfigHistoryEntry) -> Configuration:
        stored = configuration.model_copy(deep=True)
        with self._lock:
            versions = self._versions.setdefault(configuration.organization_id, {})
            if configuration.version in versions:
                raise DuplicateEntityException(
                    f"Configuration version {configuration.version} already exists "
                    f"for organization {configuration.organization_id}"
                )
            versions[configuration.version] = stored
            self._history.append(history)
        return stored

    def activate(
        self,
        organization_id: str,
        version: int,
        expected_active_version: Optional[int],
        history: ConfigHistoryEntry,
    ) -> Configuration:
        with self._lock:
            versions = self._versions.get(organization_id, {})
            target = versions.get(version)
            if target is None:
                raise ConfigurationNotFoundError(organization_id, version)

            current = self._active(organization_id)
            current_version = current.version if current else None
            if current_version != expected_active_version:
                raise ConfigurationConflictError(
                    organization_id,
                    f"Active configuration for organization {organization_id} is version "
                    f"{current_version}, expected {expected_active_version}",
                )

            # Stored objects are replaced, never mutated, so earlier reads stay consistent
            if current is not None:
                versions[current.version] = current.model_copy(update={"is_active": False})
            activated = target.model_copy(
                update={"is_active": True, "activated_at": datetime.now(timezone.utc)}
            )
            versions[version] = activated
            self._history.append(history)
            return activated

    def list_history(
        self,
        organization_id: str,
        configuration_id: Optional[UUID] = None,
    ) -> List[ConfigHistoryEntry]:
        with self._lock:
            entries = [
                entry for entry in self._history
                if entry.organization_id == organization_id
                and (configuration_id is None or entry.configuration_id == configuration_id)
            ]
        return list(reversed(entries))

    def _active(self, organization_id: str) -> Optional[Configuration]:
        for configuration in self._versions.get(organization_id, {}).values():
            if configuration.is_active:
                return configuration
        return None
