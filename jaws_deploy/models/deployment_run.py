import json
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum


class RunStatus(Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    SUCCESS = "Success"
    FAILED = "Failed"


@dataclass
class DeploymentRun:
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    action: str = ""                       # deploy | promote | release-and-deploy | watch
    project_id: str = ""
    release_id: str = ""
    version: str = ""
    environments: list[str] = field(default_factory=list)
    requested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: RunStatus = RunStatus.PENDING

    def to_dict(self):
        """Flatten for CSV: list as JSON string, enum as its value."""
        d = asdict(self)
        d["environments"] = json.dumps(self.environments)
        d["requested_at"] = self.requested_at.isoformat()
        d["status"] = self.status.value
        return d


@dataclass
class DeploymentRunOutcome:
    run_id: str = ""                       # link back to DeploymentRun
    deployment_id: str = ""
    status: str = ""
    error_count: int = 0
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = 0.0

    def to_dict(self):
        d = asdict(self)
        d["completed_at"] = self.completed_at.isoformat()
        return d


@dataclass
class DeploymentRunError:
    run_id: str = ""
    error_type: str = ""
    error_message: str = ""
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        d = asdict(self)
        d["occurred_at"] = self.occurred_at.isoformat()
        return d
