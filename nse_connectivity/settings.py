"""Harness settings and configuration management."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from nse_connectivity.common.paths import ProjectPaths, gopath_root


class Settings(BaseSettings):
    """Harness settings loaded from environment variables."""

    # Cluster configuration
    cluster_name: str = Field(
        default="test-1",
        description="Name of the kind cluster for this run",
    )

    cluster_tool: str = Field(
        default="kind",
        description="Executable managing ephemeral clusters",
    )

    remote_ip: str = Field(
        default="127.0.0.1",
        description="Value exported as REMOTE_IP to the install scripts",
    )

    # Install scripts
    base_dir: Path = Field(
        default_factory=gopath_root,
        description="Root of the nsm-nse source checkout",
    )

    nsm_path: Optional[str] = Field(
        default=None,
        description="Command installing NSM (defaults to the checkout convention)",
    )

    nse_path: Optional[str] = Field(
        default=None,
        description="Command installing the NSEs (defaults to the checkout convention)",
    )

    # Client workloads
    namespace: str = Field(default="default", description="Namespace of the client workloads")
    service_name: str = Field(default="vl3-service", description="Network service name")
    replicas: int = Field(default=2, ge=0, description="Number of client replicas")
    image: str = Field(
        default="docker.io/istio/examples-helloworld-v1",
        description="Client container image",
    )
    container_name: str = Field(default="helloworld", description="Client container name")
    container_port: int = Field(default=5000, gt=0, description="Port served by the client")
    cpu_request: str = Field(default="100m", description="CPU request per client container")

    # Discovery and probing
    interface_name: str = Field(
        default="nsm0",
        description="Interface carrying the mesh-assigned address",
    )
    probe_path: str = Field(default="/hello", description="HTTP path fetched by probes")
    probe_remote_cluster: Optional[str] = Field(
        default=None,
        description="Probe a DNS name scoped to this cluster instead of peer addresses",
    )
    probe_dns_host: str = Field(default="helloworld", description="Host label for DNS probes")
    probe_dns_domain: str = Field(default="wcm-cisco.com", description="Domain for DNS probes")
    probe_expect: Optional[str] = Field(
        default=None,
        description="Substring a probe's output must contain to pass",
    )
    probe_workers: int = Field(default=1, ge=1, description="Concurrent pair probes")

    # Retry and client behaviour
    max_tries: int = Field(default=10, ge=1, description="Attempts for each retried step")
    verify_client: bool = Field(
        default=True,
        description="Contact the control plane when building the client",
    )

    class Config:
        """Pydantic settings configuration."""

        env_prefix = "NSE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def project_paths(self) -> ProjectPaths:
        return ProjectPaths(self.base_dir)

    @property
    def nsm_command(self) -> str:
        return self.nsm_path or self.project_paths.nsm_install_command()

    @property
    def nse_command(self) -> str:
        return self.nse_path or self.project_paths.nse_install_command()

    @property
    def workload_name(self) -> str:
        return f"helloworld-{self.service_name}"
