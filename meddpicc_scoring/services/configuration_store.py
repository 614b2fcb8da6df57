"""
Configuration Store - MEDDPICC Scoring Engine
meddpicc_scoring/services/configuration_store.py

Versioned rubric management for organizations:
  - save: validate, then persist as version latest + 1 (old versions untouched)
  - activate: compare-and-set swap of the single active version
  - restore / import / clone: new versions seeded from existing documents
Every mutation appends a ConfigHistoryEntry in the same repository call.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from meddpicc_scoring.core.exceptions import (
    ConfigurationConflictError,
    ConfigurationNotFoundError,
    ConfigurationValidationError,
    DuplicateEntityException,
)
from meddpicc_scoring.models.configuration import (
    Configuration,
    LitmusTest,
    Pillar,
    RubricDefinition,
    SavedConfiguration,
    StageGate,
    TextScoringSettings,
    Thresholds,
)
from meddpicc_scoring.models.enumerations import ChangeType
from meddpicc_scoring.models.history import ConfigHistoryEntry
from meddpicc_scoring.repositories.configuration_repository import ConfigurationRepository
from meddpicc_scoring.scoring.defaults import default_rubric
from meddpicc_scoring.services.audit import build_history_entry
from meddpicc_scoring.services.validation import ConfigurationValidator

logger = structlog.get_logger(__name__)

EXPORT_FORMAT_VERSION = 1


class ConfigurationStore:
    """Persist, activate and audit per-organization rubric versions."""

    def __init__(
        self,
        repository: ConfigurationRepository,
        validator: Optional[ConfigurationValidator] = None,
    ):
        self.repository = repository
        self.validator = validator or ConfigurationValidator()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_configuration(
        self,
        organization_id: str,
        pillars: List[Pillar],
        thresholds: Thresholds,
        actor_id: Optional[str],
        reason: Optional[str] = None,
        text_scoring: Optional[TextScoringSettings] = None,
        litmus_test: Optional[LitmusTest] = None,
        stage_gates: Optional[List[StageGate]] = None,
    ) -> SavedConfiguration:
        """
        Validate and persist a new configuration version.

        Raises:
            ConfigurationValidationError: structure, thresholds or weights are invalid
            ConfigurationConflictError: another save took the same version number
        """
        definition = RubricDefinition(
            pillars=pillars,
            thresholds=thresholds,
            text_scoring=text_scoring or TextScoringSettings(),
            litmus_test=litmus_test,
            stage_gates=stage_gates or [],
        )
        return self._save_definition(
            organization_id,
            definition,
            actor_id,
            reason=reason,
            change_type=ChangeType.CREATED,
        )

    def activate_configuration(
        self,
        organization_id: str,
        version: int,
        actor_id: Optional[str],
        reason: Optional[str] = None,
    ) -> Configuration:
        """
        Make version the organization's only active configuration.

        Activating the version that is already active is a no-op.

        Raises:
            ConfigurationNotFoundError: version does not exist
            ConfigurationConflictError: a concurrent activation committed first
        """
        target = self.get_configuration(organization_id, version)
        current = self.repository.get_active(organization_id)
        if current is not None and current.version == version:
            logger.info("configuration_already_active", organization_id=organization_id, version=version)
            return current

        entry = build_history_entry(
            configuration_id=target.id,
            organization_id=organization_id,
            change_type=ChangeType.ACTIVATED,
            previous_version=current.version if current else None,
            new_version=version,
            before=current.definition() if current else None,
            after=target.definition(),
            actor_id=actor_id,
            reason=reason,
        )

        try:
            activated = self.repository.activate(
                organization_id,
                version,
                expected_active_version=current.version if current else None,
                history=entry,
            )
        except ConfigurationConflictError:
            logger.warning("configuration_activation_conflict", organization_id=organization_id, version=version)
            raise

        logger.info(
            "configuration_activated",
            organization_id=organization_id,
            version=version,
            previous_version=entry.previous_version,
            actor_id=actor_id,
        )
        return activated

    def restore_configuration(
        self,
        organization_id: str,
        version: int,
        actor_id: Optional[str],
        reason: Optional[str] = None,
        activate: bool = False,
    ) -> SavedConfiguration:
        """Copy a past version's snapshot into a brand-new version."""
        source = self.get_configuration(organization_id, version)
        saved = self._save_definition(
            organization_id,
            source.definition(),
            actor_id,
            reason=reason or f"Restored from version {version}",
            change_type=ChangeType.ROLLED_BACK,
            restored_from_version=version,
        )
        if activate:
            self.activate_configuration(organization_id, saved.version, actor_id, reason=reason)
        return saved

    def import_configuration(
        self,
        organization_id: str,
        payload: Dict[str, Any],
        actor_id: Optional[str],
        reason: Optional[str] = None,
    ) -> SavedConfiguration:
        """Save an exported document as a new version."""
        document = payload.get("configuration") if isinstance(payload, dict) else None
        if not isinstance(document, dict):
            raise ConfigurationValidationError(["Import payload must contain a 'configuration' object"])

        try:
            definition = RubricDefinition.model_validate(document)
        except ValidationError as e:
            raise ConfigurationValidationError(
                [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            )

        metadata = payload.get("metadata") or {}
        if reason is None and metadata.get("organization_id"):
            reason = (
                f"Imported from organization {metadata['organization_id']} "
                f"version {metadata.get('version')}"
            )
        return self._save_definition(
            organization_id,
            definition,
            actor_id,
            reason=reason or "Imported configuration",
            change_type=ChangeType.CREATED,
        )

    def clone_configuration(
        self,
        source_organization_id: str,
        target_organization_id: str,
        actor_id: Optional[str],
        reason: Optional[str] = None,
    ) -> SavedConfiguration:
        """Save the source organization's active rubric as a new version of the target."""
        source = self.get_active_configuration(source_organization_id)
        return self._save_definition(
            target_organization_id,
            source.definition(),
            actor_id,
            reason=reason or (
                f"Cloned from organization {source_organization_id} version {source.version}"
            ),
            change_type=ChangeType.CREATED,
        )

    def bootstrap_default_configuration(
        self,
        organization_id: str,
        actor_id: Optional[str],
    ) -> Configuration:
        """Save and activate the default rubric unless the organization already has an active one."""
        current = self.repository.get_active(organization_id)
        if current is not None:
            return current

        saved = self._save_definition(
            organization_id,
            default_rubric(),
            actor_id,
            reason="Default MEDDPICC configuration",
            change_type=ChangeType.CREATED,
        )
        return self.activate_configuration(organization_id, saved.version, actor_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_active_configuration(self, organization_id: str) -> Configuration:
        configuration = self.repository.get_active(organization_id)
        if configuration is None:
            raise ConfigurationNotFoundError(organization_id)
        return configuration

    def get_configuration(self, organization_id: str, version: int) -> Configuration:
        configuration = self.repository.get_by_version(organization_id, version)
        if configuration is None:
            raise ConfigurationNotFoundError(organization_id, version)
        return configuration

    def list_configurations(self, organization_id: str) -> List[Configuration]:
        return self.repository.list_versions(organization_id)

    def get_history(
        self,
        organization_id: str,
        configuration_id: Optional[UUID] = None,
    ) -> List[ConfigHistoryEntry]:
        """History for the organization, newest first."""
        return self.repository.list_history(organization_id, configuration_id)

    def export_configuration(self, organization_id: str, version: Optional[int] = None) -> Dict[str, Any]:
        """
        Export a version (the active one by default) as a self-describing document.

        The "configuration" section round-trips through import_configuration.
        """
        if version is None:
            configuration = self.get_active_configuration(organization_id)
        else:
            configuration = self.get_configuration(organization_id, version)

        return {
            "metadata": {
                "format_version": EXPORT_FORMAT_VERSION,
                "organization_id": organization_id,
                "version": configuration.version,
                "configuration_id": str(configuration.id),
                "total_weight": configuration.total_weight,
                "exported_at": datetime.now(timezone.utc).isoformat(),
            },
            "configuration": configuration.definition().model_dump(mode="json"),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _save_definition(
        self,
        organization_id: str,
        definition: RubricDefinition,
        actor_id: Optional[str],
        reason: Optional[str],
        change_type: ChangeType,
        restored_from_version: Optional[int] = None,
    ) -> SavedConfiguration:
        report = self.validator.validate(definition)
        if not report.is_valid:
            logger.warning(
                "configuration_validation_failed",
                organization_id=organization_id,
                errors=report.errors,
            )
            raise ConfigurationValidationError(report.errors, report.warnings)

        latest = self.repository.get_latest(organization_id)
        version = latest.version + 1 if latest else 1
        configuration = Configuration.from_definition(
            definition,
            organization_id=organization_id,
            version=version,
            created_by=actor_id,
        )
        entry = build_history_entry(
            configuration_id=configuration.id,
            organization_id=organization_id,
            change_type=change_type,
            previous_version=latest.version if latest else None,
            new_version=version,
            before=latest.definition() if latest else None,
            after=configuration.definition(),
            actor_id=actor_id,
            reason=reason,
            restored_from_version=restored_from_version,
        )

        try:
            self.repository.insert(configuration, entry)
        except DuplicateEntityException:
            raise ConfigurationConflictError(
                organization_id,
                f"Version {version} for organization {organization_id} was saved concurrently",
            )

        logger.info(
            "configuration_saved",
            organization_id=organization_id,
            version=version,
            change_type=change_type.value,
            total_weight=report.total_weight,
            warnings=len(report.warnings),
            actor_id=actor_id,
        )
        return SavedConfiguration(
            configuration_id=configuration.id,
            version=version,
            warnings=report.warnings,
        )
