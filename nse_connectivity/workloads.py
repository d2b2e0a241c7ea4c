"""Client workload manifests, creation and availability checks."""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Optional, TypeVar

import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException

from nse_connectivity.cluster.client import ClientContext
from nse_connectivity.errors import AvailabilityError, DeploymentError
from nse_connectivity.models import WorkloadRef
from nse_connectivity.settings import Settings

logger = logging.getLogger(__name__)

NS_ANNOTATION = "ns.networkservicemesh.io"
POD_RUNNING = "Running"

# Failures of a single API round trip: error responses and transport errors
API_ERRORS = (ApiException, urllib3.exceptions.HTTPError)

T = TypeVar("T")


@dataclass(frozen=True)
class DeploymentResult(Generic[T]):
    """A created object, or the reason it could not be created."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    def unwrap(self) -> T:
        if not self.ok:
            raise DeploymentError(f"Client workload creation failed: {self.error}") from self.error
        return self.value


def client_labels(settings: Settings) -> Dict[str, str]:
    return {"app": settings.workload_name, "version": "v1"}


def client_selector(settings: Settings) -> str:
    return f"app={settings.workload_name}"


def build_client_deployment(settings: Settings) -> client.V1Deployment:
    """Deployment of helloworld clients attached to the network service."""
    labels = client_labels(settings)

    container = client.V1Container(
        name=settings.container_name,
        image=settings.image,
        image_pull_policy="IfNotPresent",
        resources=client.V1ResourceRequirements(requests={"cpu": settings.cpu_request}),
        ports=[client.V1ContainerPort(container_port=settings.container_port)],
    )

    return client.V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=client.V1ObjectMeta(
            name=settings.workload_name,
            namespace=settings.namespace,
            labels={"version": "v1"},
            annotations={NS_ANNOTATION: settings.service_name},
        ),
        spec=client.V1DeploymentSpec(
            replicas=settings.replicas,
            selector=client.V1LabelSelector(match_labels=labels),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels=labels),
                spec=client.V1PodSpec(containers=[container], restart_policy="Always"),
            ),
        ),
    )


def build_client_service(settings: Settings) -> client.V1Service:
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(
            name=settings.workload_name,
            labels={"app": settings.workload_name, "nsm/role": "client"},
        ),
        spec=client.V1ServiceSpec(
            ports=[client.V1ServicePort(name="http", port=settings.container_port)],
            selector={"app": settings.workload_name},
        ),
    )


def create_client_deployment(ctx: ClientContext, settings: Settings) -> DeploymentResult[client.V1Deployment]:
    """Create the client Deployment and its Service.

    Never returns a bare ``None``: failures come back as a result carrying
    the API error.
    """
    try:
        deployment = ctx.apps.create_namespaced_deployment(
            namespace=settings.namespace, body=build_client_deployment(settings)
        )
    except API_ERRORS as e:
        logger.error("Failed to create deployment %s: %s", settings.workload_name, e)
        return DeploymentResult(error=e)

    try:
        ctx.core.create_namespaced_service(
            namespace=settings.namespace, body=build_client_service(settings)
        )
    except API_ERRORS as e:
        logger.error("Failed to create service %s: %s", settings.workload_name, e)
        return DeploymentResult(error=e)

    return DeploymentResult(value=deployment)


def list_pods(ctx: ClientContext, namespace: str, *selectors: str) -> List[client.V1Pod]:
    """List pods in ``namespace`` matching all given label selectors."""
    pods = ctx.core.list_namespaced_pod(
        namespace=namespace, label_selector=",".join(s for s in selectors if s)
    )
    return list(pods.items)


def workload_refs(pods: List[client.V1Pod], container: str) -> List[WorkloadRef]:
    return [
        WorkloadRef(namespace=p.metadata.namespace, name=p.metadata.name, container=container)
        for p in pods
    ]


def check_availability(ctx: ClientContext, namespace: str, minimum: int = 0) -> Callable[[], None]:
    """Build a check that raises until every pod in ``namespace`` is running.

    ``minimum`` guards against passing before the expected pods are scheduled.
    """

    def _check() -> None:
        try:
            pods = list_pods(ctx, namespace)
        except API_ERRORS as e:
            raise AvailabilityError(f"Cannot list pods in {namespace}: {e}") from e

        if len(pods) < minimum:
            raise AvailabilityError(f"Expected {minimum} pods in {namespace}, found {len(pods)}")

        not_running = [
            f"{p.metadata.name} ({p.status.phase})" for p in pods if p.status.phase != POD_RUNNING
        ]
        if not_running:
            raise AvailabilityError(f"Pods are not ready yet: {not_running}")

    return _check
