import logging
from enum import Enum
from typing import Mapping, Optional, Union

from pydantic import BaseModel

from jaws_deploy.constants import TERMINAL_STATUSES
from jaws_deploy.exceptions import ValidationError
from jaws_deploy.models.deployment_status import DeploymentState, DeploymentStatus

logger = logging.getLogger(__name__)


class ValidationFailure(Enum):
    MISSING_RESULT = "missing_result"
    MISSING_STATUS = "missing_status"
    WRONG_STATUS = "wrong_status"
    ERROR_COUNT = "error_count"


class ValidationResult(BaseModel):
    deployment_id: Optional[str] = None
    failure: Optional[ValidationFailure] = None
    message: str = ""

    @property
    def is_valid(self) -> bool:
        return self.failure is None

    def raise_for_failure(self):
        if not self.is_valid:
            raise ValidationError(self.message, reason=self.failure, deployment_id=self.deployment_id)


def _failed(failure, message, deployment_id):
    prefix = f"Deployment {deployment_id}: " if deployment_id else ""
    return ValidationResult(deployment_id=deployment_id, failure=failure, message=prefix + message)


def validate(result: Union[DeploymentStatus, Mapping, None], deployment_id: str = None) -> ValidationResult:
    """Check a final deployment status; the first violated rule decides the message."""
    if result is None:
        return _failed(ValidationFailure.MISSING_RESULT, "No deployment result was returned.", deployment_id)

    if not isinstance(result, DeploymentStatus):
        if not isinstance(result, Mapping) or not any(k in result for k in ("status", "Status")):
            return _failed(ValidationFailure.MISSING_STATUS, "Deployment result has no status.", deployment_id)
        result = DeploymentStatus.model_validate(dict(result))

    if result.status is None:
        return _failed(ValidationFailure.MISSING_STATUS, "Deployment result has no status.", deployment_id)

    if result.status != DeploymentState.COMPLETED.value:
        kind = "terminal" if result.status in TERMINAL_STATUSES else "non-terminal"
        return _failed(ValidationFailure.WRONG_STATUS,
                       f"Deployment finished with {kind} status '{result.status}', expected "
                       f"'{DeploymentState.COMPLETED.value}'.", deployment_id)

    if result.error_count != 0:
        return _failed(ValidationFailure.ERROR_COUNT,
                       f"Deployment completed with {result.error_count} error(s).", deployment_id)

    return ValidationResult(deployment_id=deployment_id)


def validate_all(results: Mapping[str, Union[DeploymentStatus, Mapping, None]]) -> ValidationResult:
    if not results:
        return _failed(ValidationFailure.MISSING_RESULT, "No deployment result was returned.", None)
    for deployment_id, result in results.items():
        outcome = validate(result, deployment_id)
        if not outcome.is_valid:
            logger.debug(f"Validation failed: {outcome.message}")
            return outcome
    return ValidationResult()
