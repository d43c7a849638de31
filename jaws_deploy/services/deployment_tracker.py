import json
import logging
import os

import pandas as pd

from jaws_deploy import constants
from jaws_deploy.models.deployment_run import DeploymentRun, DeploymentRunError, DeploymentRunOutcome

logger = logging.getLogger(__name__)


class DeploymentTracker:
    """Append-only CSV history of deployment runs, their per-deployment outcomes and errors."""

    def __init__(self, base_dir):
        self.base_dir = base_dir
        os.makedirs(self.base_dir, exist_ok=True)
        self.runs_file = os.path.join(self.base_dir, constants.DEPLOYMENT_RUNS_FILE)
        self.outcomes_file = os.path.join(self.base_dir, constants.DEPLOYMENT_OUTCOMES_FILE)
        self.errors_file = os.path.join(self.base_dir, constants.DEPLOYMENT_ERRORS_FILE)

    @staticmethod
    def _append(path, record):
        df = pd.DataFrame([record])
        df.to_csv(path, mode="a", index=False, header=not os.path.exists(path))

    def save_run(self, run: DeploymentRun):
        logger.debug(f"Recording run {run.run_id} with status {run.status.value}")
        self._append(self.runs_file, run.to_dict())

    def save_outcome(self, outcome: DeploymentRunOutcome):
        self._append(self.outcomes_file, outcome.to_dict())

    def save_error(self, err: DeploymentRunError):
        self._append(self.errors_file, err.to_dict())

    def get_all_runs(self):
        if not os.path.exists(self.runs_file):
            return pd.DataFrame()
        df = pd.read_csv(self.runs_file, dtype={"release_id": str, "version": str, "project_id": str})
        df["environments"] = df["environments"].apply(lambda x: json.loads(x) if pd.notna(x) else [])
        return df

    def get_all_outcomes(self):
        if not os.path.exists(self.outcomes_file):
            return pd.DataFrame()
        return pd.read_csv(self.outcomes_file, dtype={"deployment_id": str})

    def get_all_errors(self):
        return pd.read_csv(self.errors_file) if os.path.exists(self.errors_file) else pd.DataFrame()

    def get_runs_by_id(self, run_id: str):
        """Every recorded state of one run, oldest first."""
        df = self.get_all_runs()
        if df.empty:
            return pd.DataFrame()
        return df[df["run_id"] == run_id]

    def get_outcomes_by_run_id(self, run_id: str):
        df = self.get_all_outcomes()
        if df.empty:
            return pd.DataFrame()
        return df[df["run_id"] == run_id]

    def get_errors_by_run_id(self, run_id: str):
        df = self.get_all_errors()
        if df.empty:
            return pd.DataFrame()
        return df[df["run_id"] == run_id]
