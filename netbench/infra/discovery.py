from __future__ import annotations

import logging
from dataclasses import dataclass

from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_servicediscovery as servicediscovery
from constructs import Construct

from .config import DISCOVERY_SERVICE_NAME, SERVER_DNS_SUFFIX, Role

LOGGER = logging.getLogger("netbench.infra.discovery")


@dataclass(frozen=True)
class DiscoveryBinding:
    namespace: servicediscovery.PrivateDnsNamespace
    cloud_map_options: ecs.CloudMapOptions
    address: str

    @property
    def dns_name(self) -> str:
        return self.address + SERVER_DNS_SUFFIX


def bind_service_discovery(scope: Construct, network: ec2.IVpc, role: Role) -> DiscoveryBinding:
    """Create the private namespace and the A-record options for ``role``.

    The record name is pinned to ``DISCOVERY_SERVICE_NAME`` so the address is
    known at synth time and can be threaded into the client environment.
    """
    namespace = servicediscovery.PrivateDnsNamespace(
        scope,
        f"{role.value}-namespace",
        name=role.namespace_name(),
        vpc=network,
    )
    options = ecs.CloudMapOptions(
        dns_record_type=servicediscovery.DnsRecordType.A,
        cloud_map_namespace=namespace,
        name=DISCOVERY_SERVICE_NAME,
    )
    address = options.name
    LOGGER.info("Discovery namespace %s exposes %s", role.namespace_name(), address)
    return DiscoveryBinding(namespace=namespace, cloud_map_options=options, address=address)
