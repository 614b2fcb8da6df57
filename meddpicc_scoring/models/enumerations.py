from enum import Enum

class QuestionType(str, Enum):
    TEXT = "text"                        # Free-text answer, scored by text quality
    SCALE = "scale"                      # Pick one of the configured answer options
    MULTIPLE_CHOICE = "multiple_choice"
    YES_NO = "yes_no"

class RiskLevel(str, Enum):
    LOW = "low risk"
    MEDIUM = "medium risk"
    HIGH = "high risk"
    CRITICAL = "critical/unqualified"

class ChangeType(str, Enum):
    CREATED = "created"
    ACTIVATED = "activated"
    ROLLED_BACK = "rolled_back"

class ConfigurationStatus(str, Enum):
    DRAFT = "draft"            # Persisted, never activated
    ACTIVE = "active"
    SUPERSEDED = "superseded"  # Was active, replaced by a newer activation

class ValidationPolicy(str, Enum):
    STRICT = "strict"  # Pillar weights must hit the configured total on save
    DRAFT = "draft"    # Weight mismatch is only a warning

class StorageBackend(str, Enum):
    MEMORY = "memory"
    SNOWFLAKE = "snowflake"
