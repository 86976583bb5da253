"""
Role topologies for the two-node network benchmark.

A server build yields a :class:`ServerTopology` carrying the discovery
address; a client build yields a :class:`ClientTopology` carrying the
run-task state for the external workflow. The client can only be built from
a finished server topology, which fixes the build order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Tuple, Union

from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_stepfunctions_tasks as sfn_tasks
from constructs import Construct

from .capacity import CapacityBinding, provision_capacity
from .config import (
    SERVER_DNS_SUFFIX,
    ContainerSpec,
    HarnessSettings,
    Role,
    RoleSpec,
    TopologyContractError,
    TopologyOrderError,
)
from .discovery import DiscoveryBinding, bind_service_discovery
from .invocation import define_run_task
from .security import allow_all_security_group
from .service import launch_service
from .task import TaskBinding, build_task_definition

LOGGER = logging.getLogger("netbench.infra.topology")


@dataclass(frozen=True)
class ServerTopology:
    spec: RoleSpec
    security_group: ec2.SecurityGroup
    capacity: CapacityBinding
    task: TaskBinding
    discovery: DiscoveryBinding
    service: ecs.Ec2Service

    role = Role.SERVER

    @property
    def cluster(self) -> ecs.Cluster:
        return self.capacity.cluster

    @property
    def task_definition(self) -> ecs.Ec2TaskDefinition:
        return self.task.task_definition

    @property
    def container_spec(self) -> ContainerSpec:
        return self.task.container_spec

    @property
    def discovery_address(self) -> str:
        return self.discovery.address

    @property
    def dns_name(self) -> str:
        return self.discovery_address + SERVER_DNS_SUFFIX


@dataclass(frozen=True)
class ClientTopology:
    spec: RoleSpec
    security_group: ec2.SecurityGroup
    capacity: CapacityBinding
    task: TaskBinding
    invocation: sfn_tasks.EcsRunTask

    role = Role.CLIENT

    @property
    def cluster(self) -> ecs.Cluster:
        return self.capacity.cluster

    @property
    def task_definition(self) -> ecs.Ec2TaskDefinition:
        return self.task.task_definition

    @property
    def container_spec(self) -> ContainerSpec:
        return self.task.container_spec


RoleTopology = Union[ServerTopology, ClientTopology]


def _provision_common(scope: Construct, spec: RoleSpec) -> Tuple[ec2.SecurityGroup, CapacityBinding, TaskBinding]:
    security_group = allow_all_security_group(scope, spec.network, spec.role)
    capacity = provision_capacity(scope, spec.network, spec.instance_type, spec.role, security_group)
    task = build_task_definition(scope, spec)
    return security_group, capacity, task


def _build_server(scope: Construct, spec: RoleSpec) -> ServerTopology:
    security_group, capacity, task = _provision_common(scope, spec)
    # The address is fixed here, before the service exists; a failed service
    # launch still aborts the whole build so no topology escapes with it.
    discovery = bind_service_discovery(scope, spec.network, spec.role)
    service = launch_service(scope, spec.role, capacity, task.task_definition, discovery, security_group)
    return ServerTopology(
        spec=spec,
        security_group=security_group,
        capacity=capacity,
        task=task,
        discovery=discovery,
        service=service,
    )


def _build_client(scope: Construct, spec: RoleSpec) -> ClientTopology:
    security_group, capacity, task = _provision_common(scope, spec)
    invocation = define_run_task(scope, spec.role, capacity.cluster, task.task_definition)
    return ClientTopology(
        spec=spec,
        security_group=security_group,
        capacity=capacity,
        task=task,
        invocation=invocation,
    )


_BUILDERS = {
    Role.SERVER: _build_server,
    Role.CLIENT: _build_client,
}


def build_role_topology(scope: Construct, spec: RoleSpec) -> RoleTopology:
    """Provision every resource for one role and return its topology."""
    if not isinstance(spec, RoleSpec):
        raise TopologyContractError(f"expected a RoleSpec, got {type(spec).__name__}")
    LOGGER.info("Building %s topology (instance_type=%s)", spec.role.value, spec.instance_type)
    return _BUILDERS[spec.role](scope, spec)


def build_server_topology(scope: Construct, spec: RoleSpec) -> ServerTopology:
    if spec.role is not Role.SERVER:
        raise TopologyContractError(f"expected a server RoleSpec, got {spec.role.value}")
    return _build_server(scope, spec)


def build_client_topology(
    scope: Construct,
    settings: HarnessSettings,
    network: Any,
    bucket: Any,
    server: ServerTopology,
) -> ClientTopology:
    """Build the client against an already provisioned server."""
    if not isinstance(server, ServerTopology):
        raise TopologyOrderError("client topology requires a completed server topology")
    spec = settings.role_spec(Role.CLIENT, network, bucket, peer_address=server.discovery_address)
    return _build_client(scope, spec)


def provision_topologies(
    scope: Construct,
    settings: HarnessSettings,
    network: Any,
    bucket: Any,
) -> Tuple[ServerTopology, ClientTopology]:
    server_spec = settings.role_spec(Role.SERVER, network, bucket)
    server = build_server_topology(scope, server_spec)
    LOGGER.info("Server reachable at %s", server.dns_name)
    client = build_client_topology(scope, settings, network, bucket, server)
    return server, client
