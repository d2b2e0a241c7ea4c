"""Pydantic models for the harness data model."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class Stage(str, Enum):
    """Pipeline stages, used to attribute failures."""

    CLUSTER = "cluster"
    CREDENTIALS = "credentials"
    CLIENT = "client"
    INSTALL = "install"
    DEPLOY = "deploy"
    AVAILABILITY = "availability"
    DISCOVERY = "discovery"
    PROBE = "probe"


class ClusterHandle(BaseModel):
    """An ephemeral cluster and, once fetched, its credentials file."""

    name: str = Field(description="Cluster name")
    kubeconfig: Optional[Path] = Field(default=None, description="Materialized credentials file")


class WorkloadRef(BaseModel):
    """A running container instance."""

    namespace: str = Field(description="Pod namespace")
    name: str = Field(description="Pod name")
    container: str = Field(description="Container name")

    class Config:
        """Pydantic configuration."""

        frozen = True

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class ProbeTarget(BaseModel):
    """A workload paired with its discovered mesh address (empty if not found)."""

    workload: WorkloadRef = Field(description="Workload the address belongs to")
    address: str = Field(default="", description="Mesh-assigned IPv4 address")

    class Config:
        """Pydantic configuration."""

        frozen = True

    @property
    def discovered(self) -> bool:
        return bool(self.address)


class ProbeResult(BaseModel):
    """Outcome of probing one unordered pair."""

    source: ProbeTarget = Field(description="Workload the probe runs in")
    target: ProbeTarget = Field(description="Workload being probed")
    url: str = Field(description="URL fetched from inside the source")
    passed: bool = Field(description="Whether the probe succeeded")
    attempts: int = Field(ge=0, description="Number of attempts made")
    output: str = Field(default="", description="Captured output of the last attempt")
    error: Optional[str] = Field(default=None, description="Last failure, if any")

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.source.workload.name, self.target.workload.name)


class RunReport(BaseModel):
    """Summary of one harness run."""

    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Run start")
    cluster: ClusterHandle = Field(description="Cluster the run used")
    targets: List[ProbeTarget] = Field(default_factory=list, description="Discovered workloads")
    results: List[ProbeResult] = Field(default_factory=list, description="Pair probe results")

    @property
    def failed(self) -> List[ProbeResult]:
        return [r for r in self.results if not r.passed]

    @property
    def passed(self) -> bool:
        """A run passes only if every probed pair passed."""
        return not self.failed
