CONFIG_FILENAME = "config.yaml"
LOGGING_CONFIG_FILENAME = "logging.yaml"

DEFAULT_BASE_URL = "https://app.jawsdeploy.net/api"
ENV_API_LOGIN = "JAWS_API_LOGIN"
ENV_API_PASSWORD = "JAWS_API_PASSWORD"

# Dot paths into config.yaml
BASE_URL = "app.base_url"
REQUEST_TIMEOUT = "app.request_timeout_seconds"
VERIFY_SSL = "app.verify_ssl"
POLL_INTERVAL = "app.poll_interval_seconds"
POLL_TIMEOUT = "app.poll_timeout_seconds"
DEPLOYMENT_HISTORY_DATA_DIR = "app.deployment_history_data_dir"

DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_POLL_INTERVAL = 3

# Endpoints, relative to the base url
RELEASE_ENDPOINT = "release"
DEPLOY_ENDPOINT = "release/deploy"
PROMOTE_ENDPOINT = "release/promote"
DEPLOYMENT_ENDPOINT = "deployment"

TERMINAL_STATUSES = ("Completed", "Failed", "Cancelled")
ERROR_LOG_LEVELS = {"Error", "Critical"}
WARNING_LOG_LEVELS = {"Warning"}
DEPLOYMENT_LOGGER = "jaws_deploy.deployment"
CLI_LOGGER = "jaws_deploy.cli"

DEPLOYMENT_RUNS_FILE = "deployment_runs.csv"
DEPLOYMENT_OUTCOMES_FILE = "deployment_outcomes.csv"
DEPLOYMENT_ERRORS_FILE = "deployment_errors.csv"

SUMMARY_COL = ["Sr.No.", "Deployment Id", "Status", "Errors"]
SUMMARY_TITLE = "Deployment Summary"

EXIT_OK = 0
EXIT_VALIDATION_FAILED = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_API_ERROR = 3
EXIT_POLL_ABORTED = 4
EXIT_UNEXPECTED_ERROR = 5
