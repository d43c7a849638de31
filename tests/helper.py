import os
import json
import logging
from unittest.mock import MagicMock

import requests

from tests.constants import *
from jaws_deploy.config_loader import JawsApiConfig
from jaws_deploy.models.deployment_status import DeploymentStatus
from jaws_deploy.models.release import DeploymentLaunch, Release


def read_test_data(data_type=None):
    if data_type:
        with open(os.path.join(os.path.dirname(__file__)+TEST_DATA_PATH, data_type+".json")) as f:
            data_list = f.read()
    else:
        data_list = "{}"
    return json.loads(data_list)


def api_config(**overrides):
    values = {"base_url": BASE_URL, "login": LOGIN, "password": PASSWORD}
    values.update(overrides)
    return JawsApiConfig(**values)


def mock_request(*args, **kwargs):
    # Build a fake response whose raise_for_status() is a no-op
    data = kwargs.get("data", {})
    fake_resp = MagicMock()
    fake_resp.status_code = kwargs.get("status_code", 200)
    fake_resp.json.return_value = data
    fake_resp.text = json.dumps(data)
    fake_resp.raise_for_status = MagicMock()  # <-- no exception
    return fake_resp


def mock_excep_request(*args, **kwargs):
    param = kwargs.get("param")
    if param == "ConnectionError":
        raise requests.exceptions.ConnectionError("Failed to establish a new connection")
    if param == "Timeout":
        raise requests.exceptions.ReadTimeout("Read timed out")

    fake_resp = MagicMock()
    if param == "HTTPError":
        resp = requests.Response()
        resp.status_code = kwargs.get("status_code", 401)
        resp._content = b'{"errorMessage":"Invalid credentials"}'
        fake_resp.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{resp.status_code} Client Error", response=resp)
    elif param == "NotJson":
        fake_resp.status_code = 200
        fake_resp.text = "<html>Maintenance</html>"
        fake_resp.raise_for_status = MagicMock()
        fake_resp.json.side_effect = ValueError("Expecting value")
    return fake_resp


class FakeApiClient:
    """Stands in for JawsApiClient; serves scripted status responses per deployment id.

    Each scripted item is a fixture name, a payload dict or an exception to raise.
    Requests are copied when received because the poller mutates them between polls.
    """

    def __init__(self, scripts=None, launch_ids=None):
        self.scripts = {deployment_id: list(items) for deployment_id, items in (scripts or {}).items()}
        self.launch_ids = launch_ids if launch_ids is not None else list(self.scripts)
        self.requests = []
        self.created = []
        self.deployed = []
        self.promoted = []

    def get_deployment(self, request):
        self.requests.append(request.model_copy())
        item = self.scripts[request.deployment_id].pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            item = read_test_data(item)
        return DeploymentStatus.model_validate(item)

    def requests_for(self, deployment_id):
        return [r for r in self.requests if r.deployment_id == deployment_id]

    def create_release(self, request):
        self.created.append(request)
        return Release.model_validate(read_test_data("RELEASE_CREATED"))

    def deploy_release(self, request):
        self.deployed.append(request)
        return DeploymentLaunch(deployment_ids=self.launch_ids)

    def promote_release(self, request):
        self.promoted.append(request)
        return DeploymentLaunch(deployment_ids=self.launch_ids)


def reset_logging():
    """Undo setup_logging so later tests see the default logger tree again."""
    for name in ("jaws_deploy", None):
        log = logging.getLogger(name)
        for handler in list(log.handlers):
            handler.close()
            log.removeHandler(handler)
    package_logger = logging.getLogger("jaws_deploy")
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
    logging.getLogger().setLevel(logging.WARNING)
