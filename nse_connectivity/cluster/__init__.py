"""Ephemeral cluster lifecycle and API client construction."""

from nse_connectivity.cluster.client import ClientContext, build_client, build_exec_transport
from nse_connectivity.cluster.kind import KindCluster

__all__ = [
    "ClientContext",
    "KindCluster",
    "build_client",
    "build_exec_transport",
]
