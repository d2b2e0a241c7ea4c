"""End-to-end connectivity scenario across chained network service clients.

The run is a linear pipeline: cluster, credentials and client; mesh and
endpoint install; client deployment; availability polling; mesh address
discovery; then a probe for every unordered pair of discovered workloads.
Transient steps go through the retry executor; setup failures abort at once.
"""

import itertools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from nse_connectivity.cluster.client import ClientContext, build_client
from nse_connectivity.cluster.kind import KindCluster
from nse_connectivity.discovery import discover_targets
from nse_connectivity.errors import HarnessError, ProbeError, ScriptError
from nse_connectivity.models import ProbeResult, ProbeTarget, RunReport, Stage
from nse_connectivity.process import run_script
from nse_connectivity.remote import RemoteExecutor
from nse_connectivity.retry import RetryPolicy, retry_execution
from nse_connectivity.settings import Settings
from nse_connectivity.workloads import (
    API_ERRORS,
    check_availability,
    client_selector,
    create_client_deployment,
    list_pods,
    workload_refs,
)

logger = logging.getLogger(__name__)


def probe_pairs(targets: List[ProbeTarget]) -> List[Tuple[ProbeTarget, ProbeTarget]]:
    """Every unordered pair of discovered targets, in discovery order.

    Targets without an address are left out, so no workload probes itself and
    no probe is aimed at an empty address.
    """
    discovered = [t for t in targets if t.discovered]
    return list(itertools.combinations(discovered, 2))


class ConnectivityOrchestrator:
    """Drives one harness run. Collaborators can be swapped for testing."""

    def __init__(
        self,
        settings: Settings,
        cluster: Optional[KindCluster] = None,
        client_factory: Callable[..., ClientContext] = build_client,
        executor_factory: Callable[..., RemoteExecutor] = RemoteExecutor,
        script_runner: Callable[..., bool] = run_script,
        policy: Optional[RetryPolicy] = None,
    ):
        self.settings = settings
        self.cluster = cluster or KindCluster(settings.cluster_name, tool=settings.cluster_tool)
        self.client_factory = client_factory
        self.executor_factory = executor_factory
        self.script_runner = script_runner
        self.policy = policy or RetryPolicy(max_attempts=settings.max_tries)

    # Stage 1
    def setup(self) -> ClientContext:
        logger.info("Creating cluster `%s`...", self.cluster.name)
        self.cluster.ensure()

        logger.info("Getting kubeconfig for cluster `%s`", self.cluster.name)
        kubeconfig = self.cluster.fetch_credentials()

        return self.client_factory(kubeconfig, verify=self.settings.verify_client)

    # Stage 2
    def install(self, ctx: ClientContext) -> None:
        env_vars = {"KCONF": str(ctx.kubeconfig), "REMOTE_IP": self.settings.remote_ip}

        logger.info("Installing NSM...")
        if not self.script_runner(self.settings.nsm_command, env_vars):
            raise ScriptError(f"NSM install failed: {self.settings.nsm_command}")

        logger.info("Installing NSEs...")
        if not self.script_runner(self.settings.nse_command, env_vars):
            raise ScriptError(f"NSE install failed: {self.settings.nse_command}")

    # Stage 3
    def deploy(self, ctx: ClientContext):
        logger.info("Installing NSCs...")
        return create_client_deployment(ctx, self.settings).unwrap()

    # Stage 4
    def wait_for_workloads(self, ctx: ClientContext) -> None:
        logger.info("Checking if all client pods are available...")
        retry_execution(
            self.policy,
            check_availability(ctx, self.settings.namespace, minimum=self.settings.replicas),
        )
        logger.info("Client pods are now running! Now ready to check connectivity")

    # Stage 5
    def discover(self, ctx: ClientContext, executor: RemoteExecutor) -> List[ProbeTarget]:
        try:
            pods = list_pods(ctx, self.settings.namespace, client_selector(self.settings))
        except API_ERRORS as e:
            raise HarnessError(f"Cannot list client pods: {e}", Stage.DISCOVERY) from e
        workloads = workload_refs(pods, self.settings.container_name)
        return discover_targets(executor, workloads, self.settings.interface_name)

    # Stage 6
    def probe_url(self, target: ProbeTarget) -> str:
        s = self.settings
        if s.probe_remote_cluster:
            host = f"{s.probe_dns_host}.{s.probe_remote_cluster}.{s.probe_dns_domain}"
        else:
            host = target.address
        return f"http://{host}:{s.container_port}{s.probe_path}"

    def probe_pair(self, executor: RemoteExecutor, source: ProbeTarget, target: ProbeTarget) -> ProbeResult:
        """Probe ``target`` from inside ``source`` under the retry policy."""
        url = self.probe_url(target)
        command = ["curl", "-v", url]
        attempts = 0

        def _curl():
            nonlocal attempts
            attempts += 1
            result = executor.exec_in(source.workload, command, Stage.PROBE)
            logger.info("Curl from %s to %s result: %s", source.workload.name, url, result.stdout)
            expect = self.settings.probe_expect
            if expect and expect not in result.output:
                raise HarnessError(f"'{expect}' not in response from {url}", Stage.PROBE)
            return result

        try:
            result = retry_execution(self.policy, _curl)
        except HarnessError as e:
            logger.error("Probe %s -> %s failed after %d attempts: %s",
                         source.workload.name, target.workload.name, attempts, e)
            return ProbeResult(source=source, target=target, url=url, passed=False,
                               attempts=attempts, error=e.message)

        return ProbeResult(source=source, target=target, url=url, passed=True,
                           attempts=attempts, output=result.output)

    def probe_all(self, ctx: ClientContext, executor: RemoteExecutor,
                  targets: List[ProbeTarget]) -> List[ProbeResult]:
        pairs = probe_pairs(targets)
        logger.info("Probing %d pairs across %d workloads", len(pairs), len(targets))

        workers = self.settings.probe_workers
        if workers <= 1 or len(pairs) <= 1:
            return [self.probe_pair(executor, src, dst) for src, dst in pairs]

        # Exec streams are not safe to share between threads
        def _probe(pair):
            return self.probe_pair(self.executor_factory(ctx.exec_transport), *pair)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(_probe, pairs))

    def run(self) -> RunReport:
        """Run every stage and return the report.

        Raises:
            HarnessError: A stage failed; ``ProbeError`` lists every failed pair
        """
        ctx = self.setup()
        self.install(ctx)
        self.deploy(ctx)
        self.wait_for_workloads(ctx)

        executor = self.executor_factory(ctx.exec_transport)
        targets = self.discover(ctx, executor)
        results = self.probe_all(ctx, executor, targets)

        report = RunReport(cluster=self.cluster.handle, targets=targets, results=results)
        if not report.passed:
            raise ProbeError(results)
        return report
