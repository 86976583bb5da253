from __future__ import annotations

import logging

from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_stepfunctions as sfn
from aws_cdk import aws_stepfunctions_tasks as sfn_tasks
from constructs import Construct

from .config import Role

LOGGER = logging.getLogger("netbench.infra.invocation")


def define_run_task(
    scope: Construct,
    role: Role,
    cluster: ecs.ICluster,
    task_definition: ecs.TaskDefinition,
) -> sfn_tasks.EcsRunTask:
    """Step Functions state that runs the role's task once on EC2 capacity and waits for it.

    The state is only defined here; a workflow owned elsewhere chains and starts it.
    """
    run_task = sfn_tasks.EcsRunTask(
        scope,
        f"{role.value}-run-task",
        integration_pattern=sfn.IntegrationPattern.RUN_JOB,
        cluster=cluster,
        task_definition=task_definition,
        launch_target=sfn_tasks.EcsEc2LaunchTarget(),
    )
    LOGGER.info("Defined run-to-completion invocation for %s role", role.value)
    return run_task
