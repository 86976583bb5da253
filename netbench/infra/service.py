from __future__ import annotations

import logging

from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_ecs as ecs
from constructs import Construct

from .capacity import CapacityBinding
from .config import Role
from .discovery import DiscoveryBinding

LOGGER = logging.getLogger("netbench.infra.service")

SERVICE_DESIRED_COUNT = 1
CAPACITY_WEIGHT = 1


def launch_service(
    scope: Construct,
    role: Role,
    capacity: CapacityBinding,
    task_definition: ecs.TaskDefinition,
    discovery: DiscoveryBinding,
    security_group: ec2.ISecurityGroup,
) -> ecs.Ec2Service:
    service = ecs.Ec2Service(
        scope,
        f"ec2service-{role.value}",
        cluster=capacity.cluster,
        task_definition=task_definition,
        cloud_map_options=discovery.cloud_map_options,
        capacity_provider_strategies=[
            ecs.CapacityProviderStrategy(
                capacity_provider=capacity.provider_name,
                weight=CAPACITY_WEIGHT,
            )
        ],
        desired_count=SERVICE_DESIRED_COUNT,
        security_groups=[security_group],
    )
    LOGGER.info("Launched %s service (desired_count=%d)", role.value, SERVICE_DESIRED_COUNT)
    return service
