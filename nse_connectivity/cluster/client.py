"""Authenticated Kubernetes API clients built from a kubeconfig file."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import urllib3
import yaml
from kubernetes import client, config as k8s_config
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException

from nse_connectivity.errors import ClientConfigError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# kubernetes.config raises TypeError/AttributeError on YAML that is not a kubeconfig mapping
LOAD_ERRORS = (ConfigException, yaml.YAMLError, TypeError, AttributeError)


@dataclass(frozen=True)
class ClientContext:
    """API handles for one run, shared read-only by every remote operation."""

    kubeconfig: Path
    api_client: client.ApiClient
    core: client.CoreV1Api
    apps: client.AppsV1Api
    exec_transport: client.Configuration


def _usable_file(path: Path) -> bool:
    try:
        return path.stat().st_size > 0
    except OSError:
        return False


def _check_mapping(path: Path) -> None:
    """Raise unless ``path`` holds a YAML mapping with a ``clusters`` entry."""
    try:
        parsed = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ClientConfigError(f"Invalid kubeconfig {path}: {e}") from e
    if not isinstance(parsed, dict) or not parsed.get("clusters"):
        raise ClientConfigError(f"Invalid kubeconfig {path}: not a kubeconfig mapping")


def build_exec_transport(kubeconfig: Optional[PathLike]) -> client.Configuration:
    """Transport configuration for the streaming exec channel.

    A path that is missing or empty falls back to the default loading rules
    (``KUBECONFIG`` or ``~/.kube/config``, then in-cluster) instead of failing.
    """
    config_file = None
    if kubeconfig:
        path = Path(kubeconfig)
        if _usable_file(path):
            _check_mapping(path)
            config_file = str(path)
        else:
            logger.warning("Passed kubeconfig %s not valid, falling back to loading rules", path)

    transport = client.Configuration()
    try:
        k8s_config.load_kube_config(config_file=config_file, client_configuration=transport)
        return transport
    except LOAD_ERRORS as e:
        if config_file is not None:
            raise ClientConfigError(f"Failed to initialize rest config: {e}") from e
        logger.debug("Default kubeconfig unavailable (%s), trying in-cluster config", e)

    try:
        k8s_config.load_incluster_config(client_configuration=transport)
    except ConfigException as e:
        raise ClientConfigError(f"Failed to initialize rest config: {e}") from e
    return transport


def build_client(kubeconfig: PathLike, verify: bool = True) -> ClientContext:
    """Build the run's API client from a credentials file.

    Args:
        kubeconfig: Path to the kubeconfig written for the test cluster
        verify: Contact the control plane once to fail fast when unreachable

    Raises:
        ClientConfigError: File missing or malformed, or control plane unreachable
    """
    path = Path(kubeconfig)
    if not path.is_file():
        raise ClientConfigError(f"Kubeconfig not found: {path}")
    _check_mapping(path)

    try:
        api_client = k8s_config.new_client_from_config(config_file=str(path))
    except LOAD_ERRORS as e:
        raise ClientConfigError(f"Invalid kubeconfig {path}: {e}") from e

    core = client.CoreV1Api(api_client)
    apps = client.AppsV1Api(api_client)

    if verify:
        try:
            core.get_api_resources()
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise ClientConfigError(f"Cannot access Kubernetes cluster: {e}") from e

    return ClientContext(
        kubeconfig=path,
        api_client=api_client,
        core=core,
        apps=apps,
        exec_transport=build_exec_transport(path),
    )
