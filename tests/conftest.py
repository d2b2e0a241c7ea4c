"""Pytest configuration and shared fixtures for the connectivity harness tests."""

import subprocess
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set
from unittest.mock import MagicMock

import pytest

from nse_connectivity.cluster.client import ClientContext
from nse_connectivity.models import Stage, WorkloadRef
from nse_connectivity.remote import ExecResult
from nse_connectivity.retry import RetryPolicy
from nse_connectivity.settings import Settings

KUBECONFIG_TEMPLATE = """apiVersion: v1
kind: Config
clusters:
- cluster:
    insecure-skip-tls-verify: true
    server: {server}
  name: kind-{name}
contexts:
- context:
    cluster: kind-{name}
    user: kind-{name}
  name: kind-{name}
current-context: kind-{name}
users:
- name: kind-{name}
  user:
    token: test-token
"""


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom command-line options."""
    parser.addoption(
        "--use-mocks",
        action="store_true",
        dest="use_mocks",
        default=True,
        help="Use mock objects for the Kubernetes API and kind (default: True)",
    )
    parser.addoption(
        "--no-mocks",
        action="store_false",
        dest="use_mocks",
        default=True,
        help="Run against a real kind cluster instead of mocks",
    )
    parser.addoption(
        "--cluster-name",
        action="store",
        default="test-1",
        help="Name of kind cluster for live runs",
    )
    parser.addoption(
        "--remote-ip",
        action="store",
        default="127.0.0.1",
        help="REMOTE_IP exported to the install scripts in live runs",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "cluster: Cluster lifecycle and client tests")
    config.addinivalue_line("markers", "remote: Remote exec and discovery tests")
    config.addinivalue_line("markers", "orchestrator: End-to-end scenario tests")
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring kind, Docker and NSM scripts"
    )


def kubeconfig_content(name: str, server: str = "https://127.0.0.1:6443") -> str:
    return KUBECONFIG_TEMPLATE.format(name=name, server=server)


def interface_output(ip: str, interface: str = "nsm0") -> str:
    """Realistic ``ip a show dev`` output for an interface holding ``ip``."""
    return (
        f"7: {interface}@if8: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc noqueue state UP\n"
        f"    link/ether 6e:2f:91:0a:bc:11 brd ff:ff:ff:ff:ff:ff link-netnsid 0\n"
        f"    inet {ip}/24 brd {ip.rsplit('.', 1)[0]}.255 scope global {interface}\n"
        f"       valid_lft forever preferred_lft forever\n"
    )


@pytest.fixture(scope="session")
def use_mocks(request: pytest.FixtureRequest) -> bool:
    return bool(request.config.getoption("use_mocks"))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway checkout, with a small retry budget."""
    return Settings(
        cluster_name="t1",
        base_dir=tmp_path / "nsm-nse",
        max_tries=3,
        verify_client=False,
    )


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def policy(sleeps: List[float]) -> RetryPolicy:
    """Three attempts, recording delays instead of sleeping."""
    return RetryPolicy(max_attempts=3, sleep=sleeps.append)


@pytest.fixture
def make_pod() -> Callable[..., MagicMock]:
    def create_mock_pod(name: str, phase: str = "Running", namespace: str = "default") -> MagicMock:
        mock_pod = MagicMock()
        mock_pod.metadata.name = name
        mock_pod.metadata.namespace = namespace
        mock_pod.status.phase = phase
        return mock_pod

    return create_mock_pod


@pytest.fixture
def mock_context(tmp_path: Path) -> ClientContext:
    """A client context whose API handles are mocks."""
    kubeconfig = tmp_path / "t1.kubeconfig"
    kubeconfig.write_text(kubeconfig_content("t1"))

    mock_core = MagicMock()
    mock_pod_list = MagicMock()
    mock_pod_list.items = []
    mock_core.list_namespaced_pod.return_value = mock_pod_list

    return ClientContext(
        kubeconfig=kubeconfig,
        api_client=MagicMock(),
        core=mock_core,
        apps=MagicMock(),
        exec_transport=MagicMock(),
    )


class FakeExecutor:
    """Stands in for RemoteExecutor, answering exec calls through ``handler``."""

    def __init__(self, handler: Callable[[WorkloadRef, List[str]], ExecResult]):
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []

    def exec_in(self, workload: WorkloadRef, command, stage: Stage = Stage.DISCOVERY) -> ExecResult:
        self.calls.append({"workload": workload, "command": list(command), "stage": stage})
        return self.handler(workload, list(command))

    def commands(self, program: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["command"][0] == program]


@pytest.fixture
def fake_executor() -> Callable[..., FakeExecutor]:
    return FakeExecutor


class FakeKind:
    """In-memory ``kind`` CLI, patched over ``subprocess.run``."""

    def __init__(self):
        self.clusters: Set[str] = set()
        self.calls: List[List[str]] = []
        self.fail: Dict[str, int] = {}
        self.kubeconfig_override: Optional[str] = None

    def __call__(self, cmd, *args, **kwargs) -> subprocess.CompletedProcess:
        self.calls.append(list(cmd))
        returncode, stdout, stderr = self._dispatch(list(cmd))
        if kwargs.get("check") and returncode != 0:
            raise subprocess.CalledProcessError(returncode, cmd, stdout, stderr)
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)

    def _dispatch(self, cmd: List[str]):
        if cmd[0] != "kind":
            raise FileNotFoundError(cmd[0])

        action = cmd[1]
        if action in self.fail:
            return self.fail[action], "", f"ERROR: failed to {action}"

        name = next((a.split("=", 1)[1] for a in cmd if a.startswith("--name=")), None)
        if cmd[1:3] == ["get", "clusters"]:
            return 0, "".join(f"{c}\n" for c in sorted(self.clusters)), ""
        if cmd[1:3] == ["get", "kubeconfig"]:
            if name not in self.clusters:
                return 1, "", f"ERROR: could not locate any control plane nodes for cluster named '{name}'"
            if self.kubeconfig_override is not None:
                return 0, self.kubeconfig_override, ""
            return 0, kubeconfig_content(name), ""
        if action == "create":
            if name in self.clusters:
                return 1, "", f"ERROR: node(s) already exist for a cluster with the name \"{name}\""
            self.clusters.add(name)
            return 0, "", ""
        if action == "delete":
            self.clusters.discard(name)
            return 0, "", ""
        return 1, "", f"unknown command {cmd}"

    def actions(self) -> List[str]:
        return [c[1] for c in self.calls if len(c) > 2 and c[2] == "cluster"]


@pytest.fixture
def fake_kind(monkeypatch) -> FakeKind:
    kind = FakeKind()
    monkeypatch.setattr(subprocess, "run", kind)
    return kind


# Monkey patches for testing without actual infrastructure
@pytest.fixture(autouse=True)
def patch_time_sleep(use_mocks: bool, monkeypatch):
    """Patch time.sleep to speed up tests when using mocks."""
    if use_mocks:
        monkeypatch.setattr(time, "sleep", lambda x: None)


@pytest.fixture
def interface_text() -> Callable[..., str]:
    return interface_output


@pytest.fixture
def kubeconfig_text() -> Callable[..., str]:
    return kubeconfig_content
