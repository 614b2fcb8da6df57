"""
Snowflake Configuration Repository - MEDDPICC Scoring Engine
meddpicc_scoring/repositories/snowflake_configuration_repository.py

Relational storage for configuration versions and their audit history.
Rubric documents are stored as JSON text and validated back into pydantic
models on read.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog

from meddpicc_scoring.core.exceptions import (
    ConfigurationConflictError,
    ConfigurationNotFoundError,
    DuplicateEntityException,
)
from meddpicc_scoring.models.configuration import Configuration, RubricDefinition
from meddpicc_scoring.models.history import ConfigHistoryEntry
from meddpicc_scoring.repositories.base import BaseRepository
from meddpicc_scoring.repositories.configuration_repository import ConfigurationRepository

logger = structlog.get_logger(__name__)


CREATE_CONFIGURATIONS_TABLE = """
    CREATE TABLE IF NOT EXISTS QUALIFICATION_CONFIGURATIONS (
        ID VARCHAR(36) PRIMARY KEY,
        ORGANIZATION_ID VARCHAR(255) NOT NULL,
        VERSION INTEGER NOT NULL,
        IS_ACTIVE BOOLEAN NOT NULL DEFAULT FALSE,
        DEFINITION VARCHAR NOT NULL,
        CREATED_AT TIMESTAMP_TZ NOT NULL,
        CREATED_BY VARCHAR(255),
        ACTIVATED_AT TIMESTAMP_TZ,
        UNIQUE (ORGANIZATION_ID, VERSION)
    )
"""

CREATE_HISTORY_TABLE = """
    CREATE TABLE IF NOT EXISTS QUALIFICATION_CONFIGURATION_HISTORY (
        ID VARCHAR(36) PRIMARY KEY,
        CONFIGURATION_ID VARCHAR(36) NOT NULL,
        ORGANIZATION_ID VARCHAR(255) NOT NULL,
        CHANGE_TYPE VARCHAR(20) NOT NULL,
        PREVIOUS_VERSION INTEGER,
        NEW_VERSION INTEGER NOT NULL,
        ENTRY VARCHAR NOT NULL,
        ACTOR_ID VARCHAR(255),
        CREATED_AT TIMESTAMP_TZ NOT NULL
    )
"""

SELECT_COLUMNS = """
    SELECT ID, ORGANIZATION_ID, VERSION, IS_ACTIVE, DEFINITION,
           CREATED_AT, CREATED_BY, ACTIVATED_AT
    FROM QUALIFICATION_CONFIGURATIONS
"""


class SnowflakeConfigurationRepository(BaseRepository, ConfigurationRepository):
    """Repository for QUALIFICATION_CONFIGURATIONS and its history table."""

    TABLE_NAME = "QUALIFICATION_CONFIGURATIONS"
    HISTORY_TABLE_NAME = "QUALIFICATION_CONFIGURATION_HISTORY"

    def ensure_schema(self) -> None:
        """Create both tables if they do not exist."""
        self.execute_query(CREATE_CONFIGURATIONS_TABLE, commit=True)
        self.execute_query(CREATE_HISTORY_TABLE, commit=True)

    def get_by_version(self, organization_id: str, version: int) -> Optional[Configuration]:
        sql = SELECT_COLUMNS + " WHERE ORGANIZATION_ID = %s AND VERSION = %s"
        row = self.execute_query(sql, (organization_id, version), fetch_one=True)
        return self._row_to_configuration(row) if row else None

    def get_by_id(self, configuration_id: UUID) -> Optional[Configuration]:
        sql = SELECT_COLUMNS + " WHERE ID = %s"
        row = self.execute_query(sql, (str(configuration_id),), fetch_one=True)
        return self._row_to_configuration(row) if row else None

    def get_active(self, organization_id: str) -> Optional[Configuration]:
        sql = SELECT_COLUMNS + " WHERE ORGANIZATION_ID = %s AND IS_ACTIVE = TRUE"
        row = self.execute_query(sql, (organization_id,), fetch_one=True)
        return self._row_to_configuration(row) if row else None

    def get_latest(self, organization_id: str) -> Optional[Configuration]:
        sql = SELECT_COLUMNS + " WHERE ORGANIZATION_ID = %s ORDER BY VERSION DESC LIMIT 1"
        row = self.execute_query(sql, (organization_id,), fetch_one=True)
        return self._row_to_configuration(row) if row else None

    def list_versions(self, organization_id: str) -> List[Configuration]:
        sql = SELECT_COLUMNS + " WHERE ORGANIZATION_ID = %s ORDER BY VERSION ASC"
        rows = self.execute_query(sql, (organization_id,), fetch_all=True)
        return [self._row_to_configuration(row) for row in rows or []]

    def insert(self, configuration: Configuration, history: ConfigHistoryEntry) -> Configuration:
        with self.transaction() as cursor:
            # Snowflake does not enforce UNIQUE; check inside the transaction
            self._execute(
                cursor,
                f"SELECT COUNT(*) AS N FROM {self.TABLE_NAME} WHERE ORGANIZATION_ID = %s AND VERSION = %s",
                (configuration.organization_id, configuration.version),
            )
            if self._count(cursor.fetchone()) > 0:
                raise DuplicateEntityException(
                    f"Configuration version {configuration.version} already exists "
                    f"for organization {configuration.organization_id}"
                )

            self._execute(
                cursor,
                f"""
                INSERT INTO {self.TABLE_NAME} (ID, ORGANIZATION_ID, VERSION, IS_ACTIVE, DEFINITION,
                                               CREATED_AT, CREATED_BY, ACTIVATED_AT)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    str(configuration.id),
                    configuration.organization_id,
                    configuration.version,
                    configuration.is_active,
                    configuration.definition().model_dump_json(),
                    configuration.created_at,
                    configuration.created_by,
                    configuration.activated_at,
                ),
            )
            self._insert_history(cursor, history)

        logger.info(
            "configuration_row_inserted",
            organization_id=configuration.organization_id,
            version=configuration.version,
        )
        return configuration

    def activate(
        self,
        organization_id: str,
        version: int,
        expected_active_version: Optional[int],
        history: ConfigHistoryEntry,
    ) -> Configuration:
        now = datetime.now(timezone.utc)
        with self.transaction() as cursor:
            self._execute(
                cursor,
                f"SELECT VERSION FROM {self.TABLE_NAME} WHERE ORGANIZATION_ID = %s AND IS_ACTIVE = TRUE",
                (organization_id,),
            )
            active_rows = cursor.fetchall() or []
            active_versions = [self.row_to_dict(r)["version"] for r in active_rows]
            current_version = active_versions[0] if len(active_versions) == 1 else None
            if len(active_versions) > 1 or current_version != expected_active_version:
                raise ConfigurationConflictError(
                    organization_id,
                    f"Active configuration for organization {organization_id} is "
                    f"{active_versions or 'unset'}, expected {expected_active_version}",
                )

            self._execute(
                cursor,
                f"""
                UPDATE {self.TABLE_NAME}
                SET IS_ACTIVE = FALSE
                WHERE ORGANIZATION_ID = %s AND IS_ACTIVE = TRUE AND VERSION <> %s
                """,
                (organization_id, version),
            )
            self._execute(
                cursor,
                f"""
                UPDATE {self.TABLE_NAME}
                SET IS_ACTIVE = TRUE, ACTIVATED_AT = %s
                WHERE ORGANIZATION_ID = %s AND VERSION = %s
                """,
                (now, organization_id, version),
            )
            if cursor.rowcount != 1:
                raise ConfigurationNotFoundError(organization_id, version)

            self._execute(
                cursor,
                f"SELECT COUNT(*) AS N FROM {self.TABLE_NAME} WHERE ORGANIZATION_ID = %s AND IS_ACTIVE = TRUE",
                (organization_id,),
            )
            if self._count(cursor.fetchone()) != 1:
                raise ConfigurationConflictError(organization_id)

            self._insert_history(cursor, history)

        logger.info("configuration_row_activated", organization_id=organization_id, version=version)
        return self.get_by_version(organization_id, version)

    def list_history(
        self,
        organization_id: str,
        configuration_id: Optional[UUID] = None,
    ) -> List[ConfigHistoryEntry]:
        sql = f"SELECT ENTRY FROM {self.HISTORY_TABLE_NAME} WHERE ORGANIZATION_ID = %s"
        params: tuple = (organization_id,)
        if configuration_id is not None:
            sql += " AND CONFIGURATION_ID = %s"
            params = params + (str(configuration_id),)
        sql += " ORDER BY CREATED_AT DESC"

        rows = self.execute_query(sql, params, fetch_all=True)
        return [
            ConfigHistoryEntry.model_validate_json(self.row_to_dict(row)["entry"])
            for row in rows or []
        ]

    def _insert_history(self, cursor: Any, entry: ConfigHistoryEntry) -> None:
        self._execute(
            cursor,
            f"""
            INSERT INTO {self.HISTORY_TABLE_NAME} (ID, CONFIGURATION_ID, ORGANIZATION_ID, CHANGE_TYPE,
                                                   PREVIOUS_VERSION, NEW_VERSION, ENTRY, ACTOR_ID, CREATED_AT)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                str(entry.id),
                str(entry.configuration_id),
                entry.organization_id,
                entry.change_type.value,
                entry.previous_version,
                entry.new_version,
                entry.model_dump_json(),
                entry.actor_id,
                entry.timestamp,
            ),
        )

    def _row_to_configuration(self, row: Dict[str, Any]) -> Configuration:
        data = self.row_to_dict(row)
        definition = RubricDefinition.model_validate_json(data["definition"])
        return Configuration.from_definition(
            definition,
            id=self.str_to_uuid(data["id"]),
            organization_id=data["organization_id"],
            version=data["version"],
            is_active=bool(data["is_active"]),
            created_at=self.normalize_timestamp(data["created_at"]),
            created_by=data.get("created_by"),
            activated_at=self.normalize_timestamp(data.get("activated_at")),
        )

    def _count(self, row: Optional[Dict[str, Any]]) -> int:
        if not row:
            return 0
        return int(self.row_to_dict(row).get("n", 0))
