class JawsDeployError(Exception):
    """Base class for every error raised by jaws_deploy."""


class ConfigurationError(JawsDeployError):
    """Missing or invalid configuration, e.g. credentials that could not be resolved."""


class TransportError(JawsDeployError):
    """The request never produced an HTTP response (connection, TLS, timeout)."""


class ApiError(JawsDeployError):
    """The API answered with a non-2xx status or a body that could not be understood."""

    def __init__(self, message, status_code=None, response_text=None):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class ValidationError(JawsDeployError):
    """A deployment reached a terminal state with an unacceptable outcome."""

    def __init__(self, message, reason=None, deployment_id=None):
        super().__init__(message)
        self.reason = reason
        self.deployment_id = deployment_id


class PollCancelledError(JawsDeployError):
    """Polling was cancelled by the caller before a terminal state was reached."""


class PollDeadlineExceededError(JawsDeployError):
    """Polling ran past its deadline before a terminal state was reached."""
