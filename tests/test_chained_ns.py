"""
Single cluster chained network service test

Creates a real kind cluster, installs NSM and the pass-through vl3 endpoints,
deploys two helloworld clients and curls from one to the other over nsm0.
Needs kind, Docker, and the nsm-nse checkout under $GOPATH.
"""
import logging

import pytest

from nse_connectivity.orchestrator import ConnectivityOrchestrator
from nse_connectivity.settings import Settings

logger = logging.getLogger(__name__)


@pytest.mark.integration
class TestChainedNs:
    """Live multi-client connectivity in a single cluster"""

    def test_multi_nsc_single_cluster(self, request, use_mocks, tmp_path, monkeypatch):
        if use_mocks:
            pytest.skip("Live cluster test, run with --no-mocks")

        settings = Settings(
            cluster_name=request.config.getoption("--cluster-name"),
            remote_ip=request.config.getoption("--remote-ip"),
        )
        missing = settings.project_paths.validate()
        if missing and not (settings.nsm_path and settings.nse_path):
            pytest.skip(f"nsm-nse checkout incomplete: {missing}")

        monkeypatch.chdir(tmp_path)
        logger.info("Running test case: Single Cluster chained NS test")

        report = ConnectivityOrchestrator(settings).run()

        assert report.passed
        assert len(report.targets) == settings.replicas
        assert all(t.discovered for t in report.targets)
        assert len(report.results) == settings.replicas * (settings.replicas - 1) // 2
