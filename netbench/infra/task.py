from __future__ import annotations

import logging
from dataclasses import dataclass

from aws_cdk import aws_ecs as ecs
from constructs import Construct

from .config import (
    BENCHMARK_PORT,
    SERVER_DNS_SUFFIX,
    ContainerSpec,
    PortSpec,
    Role,
    RoleSpec,
    TopologyContractError,
)

LOGGER = logging.getLogger("netbench.infra.task")

@dataclass(frozen=True)
class TaskBinding:
    container_spec: ContainerSpec
    task_definition: ecs.Ec2TaskDefinition
    container: ecs.ContainerDefinition


def container_environment(
    role: Role | str,
    scenario: str,
    peer_address: str | None = None,
    bucket_name: str | None = None,
) -> dict[str, str]:
    """Environment delivered to the benchmark container of ``role``.

    Both roles get ``SCENARIO`` and ``PORT``; the client additionally learns
    where the server lives and which bucket to write results to.
    """
    role = Role.parse(role)
    env = {
        "SCENARIO": scenario,
        "PORT": str(BENCHMARK_PORT),
    }
    if role is Role.CLIENT:
        if not (peer_address or "").strip():
            raise TopologyContractError("client environment requires the server discovery address")
        if not bucket_name:
            raise TopologyContractError("client environment requires the result bucket name")
        env["DNS_ADDRESS"] = peer_address + SERVER_DNS_SUFFIX
        env["SERVER_PORT"] = str(BENCHMARK_PORT)
        env["S3_BUCKET"] = bucket_name
    return env


def container_spec_for(
    role: Role | str,
    image: str,
    scenario: str,
    peer_address: str | None = None,
    bucket_name: str | None = None,
) -> ContainerSpec:
    role = Role.parse(role)
    return ContainerSpec(
        image=image,
        env=container_environment(role, scenario, peer_address, bucket_name),
        log_prefix=role.log_prefix(),
        port=PortSpec(),
    )


def build_container_spec(spec: RoleSpec) -> ContainerSpec:
    bucket_name = spec.bucket_name if spec.role is Role.CLIENT else None
    return container_spec_for(spec.role, spec.image_ref, spec.scenario, spec.peer_address, bucket_name)


def build_task_definition(scope: Construct, spec: RoleSpec) -> TaskBinding:
    # Computed before any construct exists so contract violations leave the scope untouched.
    container_spec = build_container_spec(spec)
    role = spec.role.value

    task_definition = ecs.Ec2TaskDefinition(
        scope,
        f"{role}-task",
        network_mode=ecs.NetworkMode.AWS_VPC,
    )
    # Constructed directly: add_container on awsvpc task definitions injects AWS_REGION,
    # and the container environment must carry only the benchmark keys.
    container = ecs.ContainerDefinition(
        task_definition,
        f"{role}-driver",
        task_definition=task_definition,
        image=ecs.ContainerImage.from_registry(container_spec.image),
        environment=container_spec.environment(),
        memory_limit_mib=container_spec.memory_limit_mib,
        logging=ecs.LogDriver.aws_logs(stream_prefix=container_spec.log_prefix),
        port_mappings=[
            ecs.PortMapping(
                container_port=container_spec.port.container_port,
                host_port=container_spec.port.host_port,
                protocol=ecs.Protocol.UDP,
            )
        ],
    )

    spec.bucket.grant_write(task_definition.task_role)

    LOGGER.info("Built %s task definition from image %s", role, container_spec.image)
    LOGGER.debug("%s environment keys: %s", role, ", ".join(container_spec.env))
    return TaskBinding(container_spec=container_spec, task_definition=task_definition, container=container)
