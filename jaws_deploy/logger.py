import logging.config
from datetime import datetime
from pathlib import Path

import yaml

from jaws_deploy import constants
from jaws_deploy.util.common_util import get_root_path


def setup_logging(config_path=None, log_dir=None, verbose=False):
    """Apply logging.yaml and point its file handler at a fresh timestamped log; returns that path."""
    if config_path is None:
        config_path = Path(__file__).resolve().parent / constants.LOGGING_CONFIG_FILENAME
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f.read())

    logs_dir = Path(log_dir).resolve() if log_dir else get_root_path() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = logs_dir / f"jaws_deploy_{timestamp}.log"

    config["handlers"]["file"]["filename"] = str(log_filename)
    config["handlers"]["file"]["mode"] = "w"  # overwrite, not append
    if verbose:
        config["handlers"]["console"]["level"] = "DEBUG"

    logging.config.dictConfig(config)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.CRITICAL)
    return log_filename
