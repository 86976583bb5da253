from __future__ import annotations

import logging
from typing import Any

from aws_cdk import CfnOutput, Stack
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_s3 as s3
from constructs import Construct

from .config import HarnessSettings
from .topology import provision_topologies

LOGGER = logging.getLogger("netbench.infra.stack")


class NetbenchStack(Stack):
    """Server and client benchmark topologies on an existing VPC and bucket."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        settings: HarnessSettings,
        network: ec2.IVpc | None = None,
        bucket: s3.IBucket | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        if network is None or bucket is None:
            settings.require_deploy_targets()
        if network is None:
            network = ec2.Vpc.from_lookup(self, "Vpc", vpc_id=settings.vpc_id)
        if bucket is None:
            bucket = s3.Bucket.from_bucket_name(self, "ResultBucket", settings.bucket_name)

        self.server, self.client = provision_topologies(self, settings, network, bucket)

        CfnOutput(self, "DiscoveryAddress", value=self.server.discovery_address)
        CfnOutput(self, "ServerDnsName", value=self.server.dns_name)
        CfnOutput(
            self,
            "ClientTaskDefinitionArn",
            value=self.client.task_definition.task_definition_arn,
        )
        LOGGER.info("Stack %s defines server and client topologies", construct_id)
