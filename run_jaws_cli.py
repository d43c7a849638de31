# Main Entry Point
import argparse
import logging
import os
import signal
import sys
import threading

from dotenv import load_dotenv

from jaws_deploy import constants
from jaws_deploy.config_loader import AppConfig, build_api_config, build_poll_settings
from jaws_deploy.exceptions import (ApiError, ConfigurationError, PollCancelledError, PollDeadlineExceededError,
                                    TransportError)
from jaws_deploy.logger import setup_logging
from jaws_deploy.models.release import CreateReleaseRequest, DeployReleaseRequest, PromoteReleaseRequest
from jaws_deploy.services.api_client import JawsApiClient
from jaws_deploy.services.deployment_poller import DeploymentPoller
from jaws_deploy.services.deployment_tracker import DeploymentTracker
from jaws_deploy.services.log_sink import LogSink
from jaws_deploy.services.release_orchestrator import ReleaseOrchestrator
from jaws_deploy.services.result_validator import validate_all
from jaws_deploy.util.common_util import parse_key_value_pairs
from jaws_deploy.util.formatted_report import render_table

logger = logging.getLogger(constants.CLI_LOGGER)


def input_parser(argv=None):
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=constants.CONFIG_FILENAME,
                        help="Path to config.yaml (optional when using the default name).")
    common.add_argument("--login", help=f"API login, defaults to ${constants.ENV_API_LOGIN}.")
    common.add_argument("--password", help=f"API password, defaults to ${constants.ENV_API_PASSWORD}.")
    common.add_argument("--base-url", help=f"API base url (default {constants.DEFAULT_BASE_URL}).")
    common.add_argument("--skip-logs", action="store_true",
                        help="Do not fetch or print deployment logs while polling.")
    common.add_argument("--timeout", type=float,
                        help="Give up polling after this many seconds (default: wait indefinitely).")
    common.add_argument("--log-dir", help="Directory for the run log file (default: <PROJECT_ROOT>/logs).")
    common.add_argument("--verbose", action="store_true", help="Show debug output on the console.")

    parser = argparse.ArgumentParser(description="Create, deploy and promote Jaws Deploy releases")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-release", parents=[common], help="Create a release and print its id.")
    _add_release_arguments(create)

    deploy = commands.add_parser("deploy", parents=[common], help="Deploy an existing release and wait.")
    deploy.add_argument("--release-id", required=True)
    deploy.add_argument("--environment", action="append", required=True, help="Target environment (repeatable).")

    promote = commands.add_parser("promote", parents=[common], help="Promote a project's release and wait.")
    promote.add_argument("--project-id", required=True)
    promote.add_argument("--source-environment", required=True)
    promote.add_argument("--target-environment", action="append", required=True,
                         help="Target environment (repeatable).")

    release = commands.add_parser("release-and-deploy", parents=[common],
                                  help="Create a release, deploy it and wait.")
    _add_release_arguments(release)
    release.add_argument("--environment", action="append", required=True, help="Target environment (repeatable).")

    watch = commands.add_parser("watch", parents=[common], help="Wait for running deployments.")
    watch.add_argument("--deployment-id", action="append", required=True, help="Deployment id (repeatable).")

    return parser.parse_args(argv)


def _add_release_arguments(parser):
    parser.add_argument("--project-id", required=True)
    parser.add_argument("--version", required=True)
    parser.add_argument("--notes")
    parser.add_argument("--package-version", action="append", default=[],
                        help="Package version as NAME=VERSION (repeatable).")


def load_app_config(config_path):
    """The default config.yaml is optional; an explicitly named one must exist."""
    if config_path == constants.CONFIG_FILENAME and not os.path.exists(config_path):
        logger.debug(f"No {config_path} found, using built-in defaults")
        return None
    AppConfig.reset()
    return AppConfig(config_path)


def print_summary(outcome):
    rows = [[i, deployment_id, result.status, result.error_count]
            for i, (deployment_id, result) in enumerate(outcome.results.items(), start=1)]
    logger.info("\n" + render_table(constants.SUMMARY_COL, rows, title=constants.SUMMARY_TITLE))


def run_command(args, environ=None, cancel_token=None):
    """Run one CLI command and translate its outcome into a process exit code."""
    try:
        app_config = load_app_config(args.config)
        api_config = build_api_config(app_config, args.login, args.password, args.base_url, environ)
        poll_settings = build_poll_settings(app_config, args.timeout)
        history_dir = app_config.get(constants.DEPLOYMENT_HISTORY_DATA_DIR) if app_config else None
        tracker = DeploymentTracker(history_dir) if history_dir else None
        emit_logs = not args.skip_logs

        with JawsApiClient(api_config) as client:
            poller = DeploymentPoller(client, LogSink(), poll_settings, cancel_token)
            orchestrator = ReleaseOrchestrator(client, poller, tracker)

            if args.command == "create-release":
                release = client.create_release(_create_request(args))
                print(release.release_id)
                return constants.EXIT_OK
            if args.command == "deploy":
                outcome = orchestrator.deploy(
                    DeployReleaseRequest(release_id=args.release_id, environments=args.environment), emit_logs)
            elif args.command == "promote":
                outcome = orchestrator.promote(
                    PromoteReleaseRequest(project_id=args.project_id, source_environment=args.source_environment,
                                          target_environments=args.target_environment), emit_logs)
            elif args.command == "release-and-deploy":
                outcome = orchestrator.create_and_deploy(_create_request(args), args.environment, emit_logs)
            else:
                outcome = orchestrator.watch(args.deployment_id, emit_logs)

        print_summary(outcome)
        result = validate_all(outcome.results)
        if not result.is_valid:
            logger.error(result.message)
            return constants.EXIT_VALIDATION_FAILED
        return constants.EXIT_OK

    except (ConfigurationError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return constants.EXIT_CONFIGURATION_ERROR
    except (TransportError, ApiError) as e:
        logger.error(f"Jaws Deploy API call failed: {e}")
        return constants.EXIT_API_ERROR
    except (PollCancelledError, PollDeadlineExceededError) as e:
        logger.error(str(e))
        return constants.EXIT_POLL_ABORTED
    except Exception as e:
        logger.exception(f"Unexpected failure during {args.command}: {e}")
        return constants.EXIT_UNEXPECTED_ERROR


def _create_request(args):
    return CreateReleaseRequest(project_id=args.project_id, version=args.version, notes=args.notes,
                                package_versions=parse_key_value_pairs(args.package_version))


def main(argv=None):
    args = input_parser(argv)
    log_file = setup_logging(log_dir=args.log_dir, verbose=args.verbose)
    load_dotenv()

    cancel_token = threading.Event()

    def cancel(signum, frame):
        logger.warning("Interrupt received, stopping after the current poll")
        cancel_token.set()

    signal.signal(signal.SIGINT, cancel)
    logger.info(f"======================= {args.command} started ==========================")
    logger.debug(f"Writing log to {log_file}")
    return_code = run_command(args, cancel_token=cancel_token)
    logger.info(f"Exit code = {return_code}")
    sys.exit(return_code)


if __name__ == "__main__":
    main()
