from __future__ import annotations

import logging

from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from .config import Role

LOGGER = logging.getLogger("netbench.infra.security")


def allow_all_security_group(scope: Construct, network: ec2.IVpc, role: Role) -> ec2.SecurityGroup:
    """Security group admitting every protocol and port from anywhere, in and out.

    Benchmark hosts only ever talk to each other inside the VPC, so both roles
    share the same permissive policy.
    """
    group = ec2.SecurityGroup(
        scope,
        f"{role.value}ecs-service-sg",
        vpc=network,
        allow_all_outbound=True,
    )
    group.add_ingress_rule(ec2.Peer.any_ipv4(), ec2.Port.all_traffic())
    LOGGER.debug("Registered allow-all security group for %s role", role.value)
    return group
