"""Mesh address discovery from in-container interface listings."""

import logging
import re
from typing import Iterable, List

from nse_connectivity.models import ProbeTarget, WorkloadRef
from nse_connectivity.remote import RemoteExecutor

logger = logging.getLogger(__name__)

_OCTET = r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
IPV4_PATTERN = re.compile(rf"\b{_OCTET}\.{_OCTET}\.{_OCTET}\.{_OCTET}\b")


def extract_ipv4(text: str) -> str:
    """Return the first dotted-quad in ``text``, or ``""`` when there is none.

    Any IPv4-looking substring matches; the caller is responsible for
    narrowing the text to the right interface.
    """
    match = IPV4_PATTERN.search(text)
    return match.group(0) if match else ""


def interface_command(interface_name: str) -> List[str]:
    return ["ip", "a", "show", "dev", interface_name]


def discover_target(executor: RemoteExecutor, workload: WorkloadRef, interface_name: str) -> ProbeTarget:
    """Query the workload's mesh interface and pair the workload with its address."""
    result = executor.exec_in(workload, interface_command(interface_name))
    address = extract_ipv4(result.stdout)
    if address:
        logger.info("Workload %s has %s address %s", workload, interface_name, address)
    else:
        logger.warning("No %s address found for workload %s", interface_name, workload)
    return ProbeTarget(workload=workload, address=address)


def discover_targets(
    executor: RemoteExecutor, workloads: Iterable[WorkloadRef], interface_name: str
) -> List[ProbeTarget]:
    return [discover_target(executor, w, interface_name) for w in workloads]
