import logging
import os
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, Field

from jaws_deploy import constants
from jaws_deploy.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class AppConfig:
    _instance = None  # Singleton instance

    def __new__(cls, config_path=constants.CONFIG_FILENAME):
        if cls._instance is None:
            cls._instance = super(AppConfig, cls).__new__(cls)
            cls._instance._load_config(config_path)
        return cls._instance

    @classmethod
    def reset(cls):
        """Drop the loaded configuration so the next AppConfig() reads the file again."""
        cls._instance = None

    def _load_config(self, config_path):
        logger.info(f"Loading configuration from {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found: {config_path}")
            raise ConfigurationError(f"Config file not found: {config_path}")

        with open(config_path, "r") as file:
            self.config = yaml.safe_load(file) or {}

    def get(self, key_path, default=None):
        """Fetch nested keys using dot notation, e.g. get('app.base_url')"""
        keys = key_path.split(".")
        value = self.config
        for key in keys:
            if not isinstance(value, dict):
                return default
            value = value.get(key, None)
            if value is None:
                return default
        return value


class JawsApiConfig(BaseModel):
    """Everything the API client needs; built once at the entry point and passed in."""
    base_url: str = constants.DEFAULT_BASE_URL
    login: str
    password: str
    request_timeout: float = Field(default=constants.DEFAULT_REQUEST_TIMEOUT, gt=0)
    verify_ssl: bool = True

    def endpoint_url(self, endpoint: str) -> str:
        return f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"


class PollSettings(BaseModel):
    interval: float = Field(default=constants.DEFAULT_POLL_INTERVAL, ge=0)
    timeout: Optional[float] = Field(default=None, gt=0)


def resolve_credential(explicit: Optional[str], env_var: str, environ: Mapping[str, str]) -> str:
    """Explicit value first, then the environment variable, otherwise fail naming the variable."""
    if explicit:
        return explicit
    value = environ.get(env_var)
    if value:
        logger.debug(f"Using {env_var} from environment")
        return value
    raise ConfigurationError(
        f"Missing credential: pass it explicitly or set the {env_var} environment variable."
    )


def build_api_config(app_config: Optional[AppConfig] = None, login: Optional[str] = None,
                     password: Optional[str] = None, base_url: Optional[str] = None,
                     environ: Optional[Mapping[str, str]] = None) -> JawsApiConfig:
    environ = os.environ if environ is None else environ
    resolved_login = resolve_credential(login, constants.ENV_API_LOGIN, environ)
    resolved_password = resolve_credential(password, constants.ENV_API_PASSWORD, environ)

    def setting(key, default):
        return app_config.get(key, default) if app_config is not None else default

    return JawsApiConfig(
        base_url=base_url or setting(constants.BASE_URL, constants.DEFAULT_BASE_URL),
        login=resolved_login,
        password=resolved_password,
        request_timeout=setting(constants.REQUEST_TIMEOUT, constants.DEFAULT_REQUEST_TIMEOUT),
        verify_ssl=setting(constants.VERIFY_SSL, True),
    )


def build_poll_settings(app_config: Optional[AppConfig] = None, timeout: Optional[float] = None) -> PollSettings:
    if app_config is None:
        return PollSettings(timeout=timeout)
    return PollSettings(
        interval=app_config.get(constants.POLL_INTERVAL, constants.DEFAULT_POLL_INTERVAL),
        timeout=timeout if timeout is not None else app_config.get(constants.POLL_TIMEOUT),
    )
