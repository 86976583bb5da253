from __future__ import annotations

import pytest
from aws_cdk import App, Stack
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_s3 as s3

from netbench.infra.config import HarnessSettings, Role, RoleSpec

BUCKET_NAME = "bench-bucket"
IMAGE_REF = "public.ecr.aws/netbench/driver:latest"
SERVER_ADDRESS = "ec2serviceserverCloudmapSrv-UEyneXTpp1nx"


@pytest.fixture
def stack() -> Stack:
    return Stack(App(), "NetbenchTestStack")


@pytest.fixture
def vpc(stack: Stack) -> ec2.Vpc:
    return ec2.Vpc(stack, "Vpc", max_azs=2)


@pytest.fixture
def bucket(stack: Stack) -> s3.IBucket:
    return s3.Bucket.from_bucket_name(stack, "ResultBucket", BUCKET_NAME)


@pytest.fixture
def settings() -> HarnessSettings:
    return HarnessSettings(
        image_ref=IMAGE_REF,
        scenario="echo",
        server_instance_type="m6g.large",
        client_instance_type="m6g.large",
    )


@pytest.fixture
def server_spec(settings: HarnessSettings, vpc, bucket) -> RoleSpec:
    return settings.role_spec(Role.SERVER, vpc, bucket)


@pytest.fixture
def client_spec(settings: HarnessSettings, vpc, bucket) -> RoleSpec:
    return settings.role_spec(Role.CLIENT, vpc, bucket, peer_address=SERVER_ADDRESS)
