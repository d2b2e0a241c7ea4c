"""Create, recreate and export credentials of kind clusters."""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

import yaml

from nse_connectivity.errors import ClusterError
from nse_connectivity.models import ClusterHandle, Stage
from nse_connectivity.process import run_command

logger = logging.getLogger(__name__)


class KindCluster:
    """A named ephemeral cluster managed through the ``kind`` CLI."""

    def __init__(self, name: str, tool: str = "kind", workdir: Optional[Path] = None):
        self.handle = ClusterHandle(name=name)
        self.tool = tool
        self.workdir = workdir

    @property
    def name(self) -> str:
        return self.handle.name

    def _output(self, args: List[str], stage: Stage = Stage.CLUSTER) -> str:
        cmd = [self.tool, *args]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise ClusterError(f"{self.tool} not found: {e}", stage) from e
        except subprocess.CalledProcessError as e:
            raise ClusterError(
                f"'{' '.join(cmd)}' exited {e.returncode}: {(e.stderr or '').strip()}", stage
            ) from e
        return result.stdout

    def _exec(self, action: str) -> None:
        if not run_command([self.tool, action, "cluster", f"--name={self.name}"]):
            raise ClusterError(f"Failed to {action} cluster '{self.name}'")

    def list_clusters(self) -> List[str]:
        return self._output(["get", "clusters"]).split()

    def exists(self) -> bool:
        return self.name in self.list_clusters()

    def remove_existing(self) -> None:
        """Delete a cluster with the same name, if there is one."""
        if self.exists():
            logger.info("Removing existing cluster `%s`", self.name)
            self._exec("delete")

    def ensure(self) -> ClusterHandle:
        """Make sure a fresh cluster named ``name`` exists.

        Any cluster already using the name is deleted first, so calling this
        twice still leaves exactly one cluster behind.
        """
        self.remove_existing()
        logger.info("Creating cluster `%s`...", self.name)
        self._exec("create")
        return self.handle

    def fetch_credentials(self) -> Path:
        """Write the admin kubeconfig to ``<name>.kubeconfig`` in the working directory.

        An existing file of that name is overwritten.
        """
        content = self._output(["get", "kubeconfig", f"--name={self.name}"], Stage.CREDENTIALS)

        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ClusterError(f"Malformed kubeconfig for '{self.name}': {e}", Stage.CREDENTIALS) from e
        if not isinstance(parsed, dict) or not parsed.get("clusters"):
            raise ClusterError(f"Empty kubeconfig for cluster '{self.name}'", Stage.CREDENTIALS)

        workdir = self.workdir if self.workdir is not None else Path.cwd()
        kubeconfig = workdir / Path(f"{self.name}.kubeconfig").name
        kubeconfig.write_text(content)

        logger.info("Wrote kubeconfig for cluster `%s` to %s", self.name, kubeconfig)
        self.handle = ClusterHandle(name=self.name, kubeconfig=kubeconfig)
        return kubeconfig
