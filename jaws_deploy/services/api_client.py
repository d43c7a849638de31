import logging

import requests
import urllib3
from pydantic import ValidationError as PayloadValidationError
from requests.auth import HTTPBasicAuth

from jaws_deploy import constants
from jaws_deploy.config_loader import JawsApiConfig
from jaws_deploy.exceptions import ApiError, TransportError
from jaws_deploy.models.deployment_status import DeploymentStatus, PollRequest
from jaws_deploy.models.release import (CreateReleaseRequest, DeploymentLaunch, DeployReleaseRequest,
                                        PromoteReleaseRequest, Release)

logger = logging.getLogger(__name__)


class JawsApiClient:
    """Basic-auth JSON client for the Jaws Deploy REST API."""

    def __init__(self, config: JawsApiConfig, session: requests.Session = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.auth = HTTPBasicAuth(config.login, config.password)
        self.session.headers.update({
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        })
        if not config.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self.session.close()

    def __send_request(self, method, endpoint, payload=None, params=None):
        url = self.config.endpoint_url(endpoint)
        logger.debug(f"{method} {url} params={params} payload={payload}")

        try:
            response = self.session.request(method, url, json=payload, params=params,
                                            timeout=self.config.request_timeout,
                                            verify=self.config.verify_ssl)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            text = e.response.text if e.response is not None else None
            logger.error(f"HTTPError during {method} {endpoint} : {str(e)}")
            raise ApiError(f"{method} {endpoint} failed with HTTP {status_code}: {text}",
                           status_code=status_code, response_text=text) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request exception during {method} {endpoint} : {str(e)}")
            raise TransportError(f"Request exception during {method} {endpoint} : {str(e)}") from e

        try:
            res = response.json()
        except ValueError as e:
            raise ApiError(f"{method} {endpoint} returned a non-JSON body",
                           status_code=response.status_code, response_text=response.text) from e

        logger.debug(f"{method} {endpoint} Finished!!")
        return res

    @staticmethod
    def _parse(model, data, endpoint):
        if not isinstance(data, dict):
            raise ApiError(f"Unexpected response from {endpoint}: expected a JSON object, got {type(data).__name__}")
        try:
            return model.model_validate(data)
        except PayloadValidationError as e:
            raise ApiError(f"Malformed response from {endpoint}: {e}") from e

    def create_release(self, request: CreateReleaseRequest) -> Release:
        logger.info(f"Creating release {request.version} for project {request.project_id}")
        res = self.__send_request("POST", constants.RELEASE_ENDPOINT, payload=request.to_payload())
        release = self._parse(Release, res, constants.RELEASE_ENDPOINT)
        logger.info(f"Release created: {release.release_id}")
        return release

    def deploy_release(self, request: DeployReleaseRequest) -> DeploymentLaunch:
        logger.info(f"Deploying release {request.release_id} to {', '.join(request.environments)}")
        res = self.__send_request("POST", constants.DEPLOY_ENDPOINT, payload=request.to_payload())
        return self._parse(DeploymentLaunch, res, constants.DEPLOY_ENDPOINT)

    def promote_release(self, request: PromoteReleaseRequest) -> DeploymentLaunch:
        logger.info(f"Promoting project {request.project_id} from {request.source_environment} "
                    f"to {', '.join(request.target_environments)}")
        res = self.__send_request("POST", constants.PROMOTE_ENDPOINT, payload=request.to_payload())
        return self._parse(DeploymentLaunch, res, constants.PROMOTE_ENDPOINT)

    def get_deployment(self, request: PollRequest) -> DeploymentStatus:
        res = self.__send_request("GET", constants.DEPLOYMENT_ENDPOINT, params=request.to_query_params())
        return self._parse(DeploymentStatus, res, constants.DEPLOYMENT_ENDPOINT)
