from __future__ import annotations

import argparse
import logging
import os
import sys

from aws_cdk import App, Environment

from .config import (
    DISCOVERY_SERVICE_NAME,
    HarnessSettings,
    Role,
    TopologyContractError,
    TopologyError,
)
from .docker_control import LocalRunError, LocalTopologyRunner
from .stack import NetbenchStack
from .task import container_spec_for

LOGGER = logging.getLogger("netbench.infra")

LOCAL_BUCKET_PLACEHOLDER = "netbench-local"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Netbench ECS topology provisioning")
    parser.add_argument("command", choices=("plan", "synth", "local"))
    parser.add_argument("--scenario", help="Benchmark scenario passed to both roles")
    parser.add_argument("--image", help="Container image reference for both roles")
    parser.add_argument("--server-instance-type", help="EC2 instance type for the server host")
    parser.add_argument("--client-instance-type", help="EC2 instance type for the client host")
    parser.add_argument("--vpc-id", help="Existing VPC to deploy into")
    parser.add_argument("--bucket", help="Existing S3 bucket for benchmark results")
    parser.add_argument("--stack-name", help="CloudFormation stack name")
    parser.add_argument("--outdir", help="Directory for the synthesized cloud assembly")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("NETBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def settings_from_args(args: argparse.Namespace, environ=None) -> HarnessSettings:
    return HarnessSettings.from_env(
        environ,
        image_ref=args.image,
        scenario=args.scenario,
        server_instance_type=args.server_instance_type,
        client_instance_type=args.client_instance_type,
        vpc_id=args.vpc_id,
        bucket_name=args.bucket,
        stack_name=args.stack_name,
        outdir=args.outdir,
    )


def build_app(settings: HarnessSettings) -> App:
    settings.require_deploy_targets()
    if not (settings.account and settings.region):
        # Vpc.from_lookup needs a concrete environment.
        raise TopologyContractError("CDK_DEFAULT_ACCOUNT and CDK_DEFAULT_REGION must be set to synthesize")
    app = App(outdir=settings.outdir)
    NetbenchStack(
        app,
        settings.stack_name,
        settings=settings,
        env=Environment(account=settings.account, region=settings.region),
    )
    return app


def run_local(settings: HarnessSettings) -> int:
    bucket_name = settings.bucket_name or LOCAL_BUCKET_PLACEHOLDER
    server = container_spec_for(Role.SERVER, settings.image_ref, settings.scenario)
    client = container_spec_for(
        Role.CLIENT,
        settings.image_ref,
        settings.scenario,
        peer_address=DISCOVERY_SERVICE_NAME,
        bucket_name=bucket_name,
    )
    try:
        result = LocalTopologyRunner(DISCOVERY_SERVICE_NAME).run(server, client)
    except LocalRunError as exc:
        LOGGER.error("%s", exc)
        return 1
    if not result.succeeded:
        LOGGER.error("Client run failed with exit code %d", result.exit_code)
        print(result.client_logs, file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        settings = settings_from_args(args)
        if args.command == "plan":
            _print_plan(settings)
            return 0
        if args.command == "local":
            return run_local(settings)

        app = build_app(settings)
        app.synth()
        LOGGER.info("Cloud assembly written to %s", settings.outdir)
        return 0
    except TopologyError as exc:
        LOGGER.error("%s", exc)
        return 2


def _print_plan(settings: HarnessSettings) -> None:
    dns_address = None
    for role in Role:
        peer = DISCOVERY_SERVICE_NAME if role is Role.CLIENT else None
        spec = container_spec_for(
            role,
            settings.image_ref,
            settings.scenario,
            peer_address=peer,
            bucket_name=settings.bucket_name or "<bucket>",
        )
        print(f"Role: {role.value}")
        print(f"  instance_type={settings.instance_type_for(role)} image={spec.image}")
        print(f"  log_prefix={spec.log_prefix} memory={spec.memory_limit_mib}MiB port={spec.port.container_port}/{spec.port.protocol}")
        if role is Role.SERVER:
            print(f"  namespace={role.namespace_name()} address={DISCOVERY_SERVICE_NAME}")
        else:
            dns_address = spec.env["DNS_ADDRESS"]
        for key, value in spec.env.items():
            print(f"  {key}={value}")
    print(f"Client resolves the server at {dns_address}")


if __name__ == "__main__":
    sys.exit(main())
