"""Run commands inside workload containers over the exec sub-resource."""

import io
import logging
from dataclasses import dataclass
from typing import Sequence

import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException
from kubernetes.stream import stream
from websocket import WebSocketException

from nse_connectivity.errors import ExecError
from nse_connectivity.models import Stage, WorkloadRef

logger = logging.getLogger(__name__)

# Seconds to block on the channel per read
READ_TIMEOUT = 1


@dataclass(frozen=True)
class ExecResult:
    """Captured output of a remote command.

    The command's exit status is not inspected: a command that prints nothing
    looks the same as one that failed silently.
    """

    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        return self.stdout + self.stderr


class RemoteExecutor:
    """Executes commands in containers through a multiplexed websocket channel."""

    def __init__(self, transport: client.Configuration):
        # The stream helper swaps the request method on its ApiClient, so exec
        # gets a client of its own.
        self.api = client.CoreV1Api(client.ApiClient(transport))

    def exec_in(
        self, workload: WorkloadRef, command: Sequence[str], stage: Stage = Stage.DISCOVERY
    ) -> ExecResult:
        """Run ``command`` in the workload's container and capture both streams.

        Raises:
            ExecError: The exec request or the channel failed
        """
        logger.debug("Exec in %s/%s: %s", workload, workload.container, " ".join(command))

        stdout = io.StringIO()
        stderr = io.StringIO()
        try:
            resp = stream(
                self.api.connect_get_namespaced_pod_exec,
                workload.name,
                workload.namespace,
                container=workload.container,
                command=list(command),
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=False,
            )
            try:
                while resp.is_open():
                    resp.update(timeout=READ_TIMEOUT)
                    if resp.peek_stdout():
                        stdout.write(resp.read_stdout())
                    if resp.peek_stderr():
                        stderr.write(resp.read_stderr())
                # Drain whatever arrived with the closing frame
                if resp.peek_stdout():
                    stdout.write(resp.read_stdout())
                if resp.peek_stderr():
                    stderr.write(resp.read_stderr())
            finally:
                resp.close()
        except (ApiException, WebSocketException, urllib3.exceptions.HTTPError, OSError) as e:
            raise ExecError(f"exec stream error in {workload}: {e}", stage) from e

        return ExecResult(stdout=stdout.getvalue(), stderr=stderr.getvalue())
