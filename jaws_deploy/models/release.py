from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CreateReleaseRequest(BaseModel):
    project_id: str = Field(min_length=1)
    version: str = Field(min_length=1)
    notes: Optional[str] = None
    package_versions: Dict[str, str] = Field(default_factory=dict)

    def to_payload(self):
        payload = {"projectId": self.project_id, "version": self.version}
        if self.notes:
            payload["notes"] = self.notes
        if self.package_versions:
            payload["packageVersions"] = self.package_versions
        return payload


class Release(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    release_id: str = Field(validation_alias=AliasChoices("releaseId", "ReleaseId", "id"))
    version: Optional[str] = Field(default=None, validation_alias=AliasChoices("version", "Version"))
    project_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("projectId", "ProjectId"))


class DeployReleaseRequest(BaseModel):
    release_id: str = Field(min_length=1)
    environments: List[str] = Field(min_length=1)

    def to_payload(self):
        return {"releaseId": self.release_id, "environments": self.environments}


class PromoteReleaseRequest(BaseModel):
    project_id: str = Field(min_length=1)
    source_environment: str = Field(min_length=1)
    target_environments: List[str] = Field(min_length=1)

    def to_payload(self):
        return {
            "projectId": self.project_id,
            "sourceEnvironment": self.source_environment,
            "targetEnvironments": self.target_environments,
        }


class DeploymentLaunch(BaseModel):
    """Response of deploy/promote: the deployments the server started."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    deployment_ids: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("deploymentIds", "DeploymentIds"))
