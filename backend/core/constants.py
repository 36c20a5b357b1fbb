"""Constants and enums for the workflow automation engine."""

from enum import Enum


class RunStatus(str, Enum):
    """Workflow run status."""

    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class TriggerType(str, Enum):
    """How a workflow run was started."""

    MANUAL = "manual"
    CRON = "cron"
    WEBHOOK = "webhook"
    TELEGRAM = "telegram"
    DISCORD = "discord"
    CHAT = "chat"
    TEST = "test"


class WorkflowStatus(str, Enum):
    """Workflow status."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"


class OrganizationStatus(str, Enum):
    """Client organization status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class CredentialType(str, Enum):
    """Type of stored user credential."""

    OAUTH = "oauth"
    API_KEY = "api_key"


# Workflow id used in the execution context of inline (config-only) runs
INLINE_WORKFLOW_ID = "inline"
