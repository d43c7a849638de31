import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from jaws_deploy.exceptions import ApiError
from jaws_deploy.models.deployment_run import DeploymentRun, DeploymentRunError, DeploymentRunOutcome, RunStatus
from jaws_deploy.models.deployment_status import DeploymentState, DeploymentStatus
from jaws_deploy.models.release import (CreateReleaseRequest, DeploymentLaunch, DeployReleaseRequest,
                                        PromoteReleaseRequest, Release)
from jaws_deploy.services.deployment_poller import DeploymentPoller
from jaws_deploy.services.deployment_tracker import DeploymentTracker

logger = logging.getLogger(__name__)


class DeploymentOutcome(BaseModel):
    release: Optional[Release] = None
    run_id: Optional[str] = None
    results: Dict[str, DeploymentStatus] = Field(default_factory=dict)

    @property
    def deployment_ids(self) -> List[str]:
        return list(self.results)


class ReleaseOrchestrator:
    """create release -> deploy or promote -> poll every deployment that was started."""

    def __init__(self, api_client, poller: DeploymentPoller, tracker: DeploymentTracker = None):
        self.api_client = api_client
        self.poller = poller
        self.tracker = tracker

    def create_and_deploy(self, create_request: CreateReleaseRequest, environments: List[str],
                          emit_logs: bool = True) -> DeploymentOutcome:
        run = DeploymentRun(action="release-and-deploy", project_id=create_request.project_id,
                            version=create_request.version, environments=list(environments))

        def steps():
            release = self.api_client.create_release(create_request)
            run.release_id = release.release_id
            launch = self.api_client.deploy_release(
                DeployReleaseRequest(release_id=release.release_id, environments=list(environments)))
            return release, launch

        return self._run(run, steps, emit_logs)

    def deploy(self, deploy_request: DeployReleaseRequest, emit_logs: bool = True) -> DeploymentOutcome:
        run = DeploymentRun(action="deploy", release_id=deploy_request.release_id,
                            environments=list(deploy_request.environments))
        return self._run(run, lambda: (None, self.api_client.deploy_release(deploy_request)), emit_logs)

    def promote(self, promote_request: PromoteReleaseRequest, emit_logs: bool = True) -> DeploymentOutcome:
        run = DeploymentRun(action="promote", project_id=promote_request.project_id,
                            environments=list(promote_request.target_environments))
        return self._run(run, lambda: (None, self.api_client.promote_release(promote_request)), emit_logs)

    def watch(self, deployment_ids: List[str], emit_logs: bool = True) -> DeploymentOutcome:
        run = DeploymentRun(action="watch")
        return self._run(run, lambda: (None, DeploymentLaunch(deployment_ids=list(deployment_ids))), emit_logs)

    def _run(self, run: DeploymentRun, launch_steps, emit_logs) -> DeploymentOutcome:
        start_time = datetime.now(timezone.utc)
        run.status = RunStatus.IN_PROGRESS
        self._track("save_run", run)
        try:
            release, launch = launch_steps()
            if not launch.deployment_ids:
                raise ApiError("Server did not start any deployment")
            logger.info(f"Deployments started: {', '.join(launch.deployment_ids)}")

            results = self.poller.poll_all(launch.deployment_ids, emit_logs=emit_logs)
        except Exception as e:
            run.status = RunStatus.FAILED
            self._track("save_error", DeploymentRunError(run_id=run.run_id, error_type=type(e).__name__,
                                                         error_message=str(e)))
            self._track("save_run", run)
            raise

        completed_at = datetime.now(timezone.utc)
        run.status = RunStatus.SUCCESS if all(
            r.status == DeploymentState.COMPLETED.value and r.error_count == 0 for r in results.values()) else RunStatus.FAILED
        for deployment_id, result in results.items():
            self._track("save_outcome", DeploymentRunOutcome(
                run_id=run.run_id, deployment_id=deployment_id, status=result.status,
                error_count=result.error_count, completed_at=completed_at,
                duration_seconds=(completed_at - start_time).total_seconds()))
        self._track("save_run", run)
        logger.info(f"Run {run.run_id} finished: {run.status.value}")
        return DeploymentOutcome(release=release, run_id=run.run_id, results=results)

    def _track(self, method, record):
        """Write one history record; a failed write is logged and skipped."""
        if not self.tracker:
            return
        try:
            getattr(self.tracker, method)(record)
        except Exception as e:
            logger.warning(f"Could not record deployment history ({method}) for run {record.run_id}: {e}")
