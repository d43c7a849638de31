import logging
import time
from typing import Dict, Iterable, Optional

from jaws_deploy.config_loader import PollSettings
from jaws_deploy.exceptions import ApiError, PollCancelledError, PollDeadlineExceededError
from jaws_deploy.models.deployment_status import DeploymentStatus, PollRequest
from jaws_deploy.services.log_sink import LogSink

logger = logging.getLogger(__name__)


class DeploymentPoller:
    """Polls GET deployment until each deployment is Completed, Failed or Cancelled.

    Unknown statuses count as in progress, so polling carries on rather than failing.
    Without a timeout the loop is unbounded; cancel_token (anything with is_set(),
    e.g. threading.Event) is checked at the top of every iteration.
    """

    def __init__(self, api_client, log_sink: LogSink = None, settings: PollSettings = None, cancel_token=None):
        self.api_client = api_client
        self.log_sink = log_sink or LogSink()
        self.settings = settings or PollSettings()
        self.cancel_token = cancel_token

    def poll_until_terminal(self, deployment_id: str, emit_logs: bool = True) -> DeploymentStatus:
        return self.poll_all([deployment_id], emit_logs=emit_logs)[deployment_id]

    def poll_all(self, deployment_ids: Iterable[str], emit_logs: bool = True) -> Dict[str, DeploymentStatus]:
        """Round-robin over every id, one request each per cycle, one sleep per cycle."""
        ordered_ids = list(dict.fromkeys(deployment_ids))
        if not ordered_ids:
            raise ValueError("At least one deployment id is required")

        pending = {deployment_id: PollRequest(deployment_id=deployment_id, skip_logs=not emit_logs)
                   for deployment_id in ordered_ids}
        results = {}
        deadline = time.monotonic() + self.settings.timeout if self.settings.timeout else None
        logger.info(f"Polling deployments: {', '.join(ordered_ids)}")

        while True:
            self._check_cancelled()
            self._check_deadline(deadline, pending)

            latest = {}
            for deployment_id, request in pending.items():
                response = self.api_client.get_deployment(request)
                if response.status is None:
                    raise ApiError(f"Deployment {deployment_id} status response has no status")
                if emit_logs:
                    for entry in response.logs:
                        self.log_sink.emit(entry, deployment_id if len(ordered_ids) > 1 else None)
                logger.debug(f"Deployment {deployment_id} status: {response.status}")
                latest[deployment_id] = response

            for deployment_id, response in latest.items():
                if response.is_terminal:
                    logger.info(f"Deployment {deployment_id} finished with status {response.status}")
                    results[deployment_id] = response
                    del pending[deployment_id]

            if not pending:
                return {deployment_id: results[deployment_id] for deployment_id in ordered_ids}

            time.sleep(self.settings.interval)

            if emit_logs:
                for deployment_id, request in pending.items():
                    request.get_logs_after = latest[deployment_id].last_log_date_tick

    def _check_cancelled(self):
        if self.cancel_token is not None and self.cancel_token.is_set():
            raise PollCancelledError("Deployment polling cancelled by caller")

    def _check_deadline(self, deadline: Optional[float], pending):
        if deadline is not None and time.monotonic() >= deadline:
            raise PollDeadlineExceededError(
                f"Deployments still running after {self.settings.timeout} seconds: {', '.join(pending)}")
