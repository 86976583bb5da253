from __future__ import annotations

import logging
from dataclasses import dataclass

from aws_cdk import aws_autoscaling as autoscaling
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_ecs as ecs
from constructs import Construct

from .config import Role

LOGGER = logging.getLogger("netbench.infra.capacity")

# One host per role: the pool may idle at zero but is never grown past one.
MIN_CAPACITY = 0
DESIRED_CAPACITY = 1


@dataclass(frozen=True)
class CapacityBinding:
    cluster: ecs.Cluster
    auto_scaling_group: autoscaling.AutoScalingGroup
    provider: ecs.AsgCapacityProvider

    @property
    def provider_name(self) -> str:
        return self.provider.capacity_provider_name


def provision_capacity(
    scope: Construct,
    network: ec2.IVpc,
    instance_type: str,
    role: Role,
    security_group: ec2.ISecurityGroup,
) -> CapacityBinding:
    """Create the role's cluster and bind a single-instance ARM pool to it."""
    cluster = ecs.Cluster(scope, f"{role.value}-cluster", vpc=network)

    asg = autoscaling.AutoScalingGroup(
        scope,
        f"{role.value}-asg",
        vpc=network,
        instance_type=ec2.InstanceType(instance_type),
        machine_image=ecs.EcsOptimizedImage.amazon_linux2(ecs.AmiHardwareType.ARM),
        min_capacity=MIN_CAPACITY,
        desired_capacity=DESIRED_CAPACITY,
        security_group=security_group,
    )

    provider = ecs.AsgCapacityProvider(
        scope,
        f"{role.value}-asg-provider",
        auto_scaling_group=asg,
    )
    cluster.add_asg_capacity_provider(provider)

    LOGGER.info(
        "Provisioned %s capacity: instance_type=%s min=%d desired=%d",
        role.value,
        instance_type,
        MIN_CAPACITY,
        DESIRED_CAPACITY,
    )
    return CapacityBinding(cluster=cluster, auto_scaling_group=asg, provider=provider)
