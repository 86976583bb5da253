"""
Provisioning for the netbench ECS topology.

This package declares the server and client roles as CDK constructs: an
allow-all security group, a single-instance ARM capacity pool, a UDP task
definition per role, Cloud Map discovery plus a long-running service for the
server, and a run-to-completion Step Functions state for the client.
"""

from .config import HarnessSettings, Role, RoleSpec
from .topology import ClientTopology, ServerTopology, build_role_topology, provision_topologies

__all__ = [
    "ClientTopology",
    "HarnessSettings",
    "Role",
    "RoleSpec",
    "ServerTopology",
    "build_role_topology",
    "provision_topologies",
]
