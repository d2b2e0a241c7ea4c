"""
NSE Connectivity Harness

End-to-end reachability checks for workloads attached to chained network
service endpoints in a disposable kind cluster.

Stages:
    1. Cluster creation and credentials
    2. Mesh and endpoint installation
    3. Client workload deployment
    4. Availability polling
    5. Mesh address discovery
    6. Pairwise connectivity probes
"""

__version__ = "1.0.0"
