"""Error taxonomy for the harness.

Every error names the pipeline stage it belongs to so the terminal message
can say where the run stopped.
"""

from typing import List, Sequence

from nse_connectivity.models import ProbeResult, Stage


class HarnessError(Exception):
    """Base error carrying the failing stage."""

    stage: Stage = Stage.CLUSTER

    def __init__(self, message: str, stage: Stage | None = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    @property
    def message(self) -> str:
        return self.args[0] if self.args else ""

    def __str__(self) -> str:
        return f"{self.stage.value} stage failed: {self.message}"


class ClusterError(HarnessError):
    """The cluster tool failed to list, create, delete or export a cluster."""

    stage = Stage.CLUSTER


class ClientConfigError(HarnessError):
    """Credentials are missing, malformed, or the control plane is unreachable."""

    stage = Stage.CLIENT


class ScriptError(HarnessError):
    """An install script exited non-zero."""

    stage = Stage.INSTALL


class DeploymentError(HarnessError):
    """Client workloads or their service could not be created."""

    stage = Stage.DEPLOY


class AvailabilityError(HarnessError):
    """Workloads are not all running yet."""

    stage = Stage.AVAILABILITY


class ExecError(HarnessError):
    """The remote exec channel failed."""

    stage = Stage.DISCOVERY


class ProbeError(HarnessError):
    """One or more pair probes failed."""

    stage = Stage.PROBE

    def __init__(self, results: Sequence[ProbeResult]):
        self.results: List[ProbeResult] = list(results)
        self.failed: List[ProbeResult] = [r for r in self.results if not r.passed]
        pairs = ", ".join(f"{r.pair[0]} -> {r.pair[1]} ({r.error})" for r in self.failed)
        super().__init__(f"{len(self.failed)} of {len(self.results)} pairs unreachable: {pairs}")
