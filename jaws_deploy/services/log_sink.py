import logging

from jaws_deploy import constants
from jaws_deploy.models.deployment_status import LogEntry

logger = logging.getLogger(__name__)


class LogSink:
    """Routes server-side deployment log entries onto the deployment logger by severity."""

    def __init__(self, target=None):
        self.target = target or logging.getLogger(constants.DEPLOYMENT_LOGGER)

    def channel_for(self, level):
        if level in constants.ERROR_LOG_LEVELS:
            return self.target.error
        if level in constants.WARNING_LOG_LEVELS:
            return self.target.warning
        return self.target.info

    @staticmethod
    def format_entry(entry: LogEntry, deployment_id=None):
        line = f"{entry.timestamp.isoformat()} [{entry.level}] {entry.message}"
        if deployment_id:
            return f"({deployment_id}) {line}"
        return line

    def emit(self, entry: LogEntry, deployment_id=None):
        # Must never interrupt the poll loop.
        try:
            self.channel_for(entry.level)("%s", self.format_entry(entry, deployment_id))
        except Exception:
            logger.debug(f"Could not emit deployment log entry: {entry!r}", exc_info=True)
