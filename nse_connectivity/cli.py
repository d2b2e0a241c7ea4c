#!/usr/bin/env python3
"""Chained network service connectivity check.

Creates a kind cluster, installs NSM and the pass-through endpoints, deploys
helloworld clients and verifies every pair of clients can reach each other
over their mesh interface.

## Usage

    nse-connectivity --cluster-name test-1 --remote-ip 127.0.0.1

Every option can also be set through an ``NSE_``-prefixed environment
variable (e.g. ``NSE_MAX_TRIES=5``).
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from nse_connectivity.errors import HarnessError, ProbeError
from nse_connectivity.orchestrator import ConnectivityOrchestrator
from nse_connectivity.settings import Settings

logger = logging.getLogger(__name__)

SEPARATOR_WIDTH = 60

# argparse destination -> Settings field
OVERRIDES = {
    "cluster_name": "cluster_name",
    "remote_ip": "remote_ip",
    "nsm_path": "nsm_path",
    "nse_path": "nse_path",
    "base_dir": "base_dir",
    "max_tries": "max_tries",
    "probe_workers": "probe_workers",
    "remote_cluster": "probe_remote_cluster",
}


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Chained network service connectivity check",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--cluster-name", help="Name of kind cluster for this test")
    parser.add_argument("--remote-ip", help="Set ENV to REMOTE_IP")
    parser.add_argument("--nsm-path", help="Path of script to install NSM")
    parser.add_argument("--nse-path", help="Path of script to install NSE")
    parser.add_argument("--base-dir", type=Path, help="Root of the nsm-nse checkout")
    parser.add_argument("--max-tries", type=int, help="Attempts for each retried step")
    parser.add_argument("--probe-workers", type=int, help="Concurrent pair probes")
    parser.add_argument(
        "--remote-cluster",
        help="Probe helloworld.<cluster>.<domain> instead of peer addresses",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides = {
        field: getattr(args, dest)
        for dest, field in OVERRIDES.items()
        if getattr(args, dest) is not None
    }
    return Settings(**overrides)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = build_settings(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logger.info("Running test case: Single Cluster chained NS test")

    try:
        report = ConnectivityOrchestrator(settings).run()
    except ProbeError as e:
        for result in e.failed:
            logger.error("Unreachable: %s -> %s (%s)", result.pair[0], result.pair[1], result.error)
        print(f"FAILED: {e}")
        return 1
    except HarnessError as e:
        print(f"FAILED: {e}")
        return 1

    print("=" * SEPARATOR_WIDTH)
    print(f"Cluster: {report.cluster.name}")
    for target in report.targets:
        print(f"  {target.workload.name}: {target.address or '<no address>'}")
    for result in report.results:
        print(f"  {result.pair[0]} -> {result.pair[1]}: ok ({result.attempts} attempts)")
    print("=" * SEPARATOR_WIDTH)
    print(f"PASSED: {len(report.results)} pairs reachable")
    return 0


if __name__ == "__main__":
    sys.exit(main())
