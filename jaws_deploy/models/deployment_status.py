from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from jaws_deploy.constants import TERMINAL_STATUSES


class DeploymentState(Enum):
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


class LogEntry(BaseModel):
    """One deployment log line as sent by the server."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(validation_alias=AliasChoices("timestampUtc", "TimestampUtc", "timestamp"))
    level: str = Field(default="Information", validation_alias=AliasChoices("level", "Level"))
    message: str = Field(default="", validation_alias=AliasChoices("message", "Message"))

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class DeploymentStatus(BaseModel):
    """Response of GET deployment. Fields the client does not know about are kept as extras."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    status: Optional[str] = Field(default=None, validation_alias=AliasChoices("status", "Status"))
    error_count: int = Field(default=0, ge=0, validation_alias=AliasChoices("errorCount", "ErrorCount"))
    logs: List[LogEntry] = Field(default_factory=list, validation_alias=AliasChoices("logs", "Logs"))
    # Opaque cursor, sent back exactly as received
    last_log_date_tick: Optional[Union[int, str]] = Field(
        default=None, validation_alias=AliasChoices("lastLogDateTick", "LastLogDateTick"))

    @field_validator("error_count", mode="before")
    @classmethod
    def _none_is_zero(cls, value):
        return 0 if value is None else value

    @field_validator("logs", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return [] if value is None else value

    @property
    def is_terminal(self) -> bool:
        # Exact, case-sensitive match; anything else is still running.
        return self.status in TERMINAL_STATUSES

    @property
    def state(self) -> Optional[DeploymentState]:
        return DeploymentState(self.status) if self.is_terminal else None


class PollRequest(BaseModel):
    deployment_id: str = Field(min_length=1)
    skip_logs: bool = False
    get_logs_after: Optional[Union[int, str]] = None

    def to_query_params(self) -> Dict[str, str]:
        params = {
            "deploymentId": self.deployment_id,
            "skipLogs": "true" if self.skip_logs else "false",
        }
        if self.get_logs_after is not None:
            params["getLogsAfter"] = str(self.get_logs_after)
        return params
