from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

# Fixed network facts shared by both roles. The discovery service name and the
# DNS suffix are pinned literals so the client can be handed a predictable
# address at synth time; a production deployment would look the generated
# Cloud Map record name up instead.
BENCHMARK_PORT = 3000
PORT_PROTOCOL = "udp"
CONTAINER_MEMORY_LIMIT_MIB = 2048
DISCOVERY_SERVICE_NAME = "ec2serviceserverCloudmapSrv-UEyneXTpp1nx"
SERVER_DNS_SUFFIX = ".serverecs.com"

DEFAULT_SCENARIO = "echo"
DEFAULT_INSTANCE_TYPE = "m6g.large"
DEFAULT_STACK_NAME = "netbench-ecs"
DEFAULT_OUTDIR = "cdk.out"


class TopologyError(Exception):
    """Base class for errors raised while assembling a benchmark topology."""


class TopologyContractError(TopologyError, ValueError):
    """Raised when role inputs violate the provisioning contract."""


class TopologyOrderError(TopologyError, RuntimeError):
    """Raised when the client is built without a completed server topology."""


class Role(str, enum.Enum):
    SERVER = "server"
    CLIENT = "client"

    @classmethod
    def parse(cls, value: str | Role) -> Role:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise TopologyContractError(
                f"unknown role {value!r}; expected one of {[r.value for r in cls]}"
            ) from None

    def namespace_name(self) -> str:
        return f"{self.value}ecs.com"

    def log_prefix(self) -> str:
        return f"{self.value}-ecs-task"


@dataclass(frozen=True)
class RoleSpec:
    """Inputs for one role of the benchmark topology.

    ``network`` and ``bucket`` are opaque handles (an ``ec2.IVpc`` and an
    ``s3.IBucket`` in the CDK path). ``peer_address`` is the server discovery
    address and must be set for, and only for, the client role.
    """

    role: Role
    instance_type: str
    network: Any
    bucket: Any
    scenario: str
    image_ref: str
    peer_address: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role.parse(self.role))
        for name in ("instance_type", "scenario", "image_ref"):
            if not getattr(self, name):
                raise TopologyContractError(f"{self.role.value} role requires a non-empty {name}")
        if self.role is Role.CLIENT and not (self.peer_address or "").strip():
            raise TopologyContractError("client role requires the server discovery address as peer_address")
        if self.role is Role.SERVER and self.peer_address is not None:
            raise TopologyContractError("server role does not accept a peer_address")

    @property
    def bucket_name(self) -> str:
        return self.bucket.bucket_name


@dataclass(frozen=True)
class PortSpec:
    container_port: int = BENCHMARK_PORT
    host_port: int = BENCHMARK_PORT
    protocol: str = PORT_PROTOCOL


@dataclass(frozen=True)
class ContainerSpec:
    """Immutable description of the single container a role task runs."""

    image: str
    env: Mapping[str, str]
    log_prefix: str
    memory_limit_mib: int = CONTAINER_MEMORY_LIMIT_MIB
    port: PortSpec = field(default_factory=PortSpec)

    def __post_init__(self) -> None:
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    def __hash__(self) -> int:
        return hash((self.image, tuple(self.env.items()), self.log_prefix, self.memory_limit_mib, self.port))

    def environment(self) -> dict[str, str]:
        return dict(self.env)


@dataclass(frozen=True)
class HarnessSettings:
    """Deployment-wide settings shared by both roles."""

    image_ref: str
    scenario: str = DEFAULT_SCENARIO
    server_instance_type: str = DEFAULT_INSTANCE_TYPE
    client_instance_type: str = DEFAULT_INSTANCE_TYPE
    vpc_id: str | None = None
    bucket_name: str | None = None
    stack_name: str = DEFAULT_STACK_NAME
    outdir: str = DEFAULT_OUTDIR
    account: str | None = None
    region: str | None = None

    def __post_init__(self) -> None:
        if not self.image_ref:
            raise TopologyContractError("an image reference is required (NETBENCH_IMAGE or --image)")
        if not self.scenario:
            raise TopologyContractError("scenario must not be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> HarnessSettings:
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "image_ref": env.get("NETBENCH_IMAGE", ""),
            "scenario": env.get("SCENARIO", DEFAULT_SCENARIO),
            "server_instance_type": env.get("NETBENCH_SERVER_INSTANCE_TYPE", DEFAULT_INSTANCE_TYPE),
            "client_instance_type": env.get("NETBENCH_CLIENT_INSTANCE_TYPE", DEFAULT_INSTANCE_TYPE),
            "vpc_id": env.get("NETBENCH_VPC_ID"),
            "bucket_name": env.get("NETBENCH_BUCKET"),
            "stack_name": env.get("NETBENCH_STACK_NAME", DEFAULT_STACK_NAME),
            "outdir": env.get("CDK_OUTDIR", DEFAULT_OUTDIR),
            "account": env.get("CDK_DEFAULT_ACCOUNT"),
            "region": env.get("CDK_DEFAULT_REGION"),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def instance_type_for(self, role: Role | str) -> str:
        if Role.parse(role) is Role.SERVER:
            return self.server_instance_type
        return self.client_instance_type

    def role_spec(self, role: Role | str, network: Any, bucket: Any, peer_address: str | None = None) -> RoleSpec:
        role = Role.parse(role)
        return RoleSpec(
            role=role,
            instance_type=self.instance_type_for(role),
            network=network,
            bucket=bucket,
            scenario=self.scenario,
            image_ref=self.image_ref,
            peer_address=peer_address,
        )

    def require_deploy_targets(self) -> None:
        missing = [name for name in ("vpc_id", "bucket_name") if not getattr(self, name)]
        if missing:
            raise TopologyContractError(f"missing deployment settings: {', '.join(missing)}")
