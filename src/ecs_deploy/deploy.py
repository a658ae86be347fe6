"""Register an ECS task definition and roll it out to a service."""
import json
import logging
import time
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError, ParamValidationError

from ecs_deploy import outputs
from ecs_deploy.aws.utils import get_codedeploy_client, get_ecs_client
from ecs_deploy.deployer import CodeDeployConfig, DeploymentResult, ServiceDeployer, platform_for
from ecs_deploy.exceptions import DeploymentError, RegistrationRejectedError
from ecs_deploy.outputs import OutputSink
from ecs_deploy.settings import Settings
from ecs_deploy.task_definition import load_task_definition, resolve_workspace_path, sanitize

logger = logging.getLogger(__name__)


def log_operation(description: str):
    """Decorator for timing and logging deployment steps."""
    def decorator(func):
        def wrapper(*args, **kwargs):
            logger.debug(f"Starting: {description}")
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
                duration = time.time() - start_time
                logger.debug(f"Completed: {description} in {duration:.2f}s")
                return result
            except Exception as e:
                duration = time.time() - start_time
                logger.debug(f"Failed: {description} after {duration:.2f}s - {str(e)}")
                raise
        return wrapper
    return decorator


@log_operation("Load task definition")
def prepare_task_definition(path: str, workspace: Optional[str] = None) -> Dict[str, Any]:
    """Load the task definition file and clean it for registration."""
    task_def_path = resolve_workspace_path(path, workspace)
    return sanitize(load_task_definition(task_def_path))


@log_operation("Register task definition")
def register_task_definition(ecs_client, task_def: Dict[str, Any]) -> str:
    """Register the task definition and return its ARN."""
    logger.debug("Registering the task definition")
    if not isinstance(task_def, dict):
        raise RegistrationRejectedError(
            "Failed to register task definition in ECS: the task definition file must contain a mapping",
            payload=task_def
        )
    try:
        response = ecs_client.register_task_definition(**task_def)
    except (ClientError, ParamValidationError) as e:
        logger.debug("Task definition contents:")
        logger.debug(json.dumps(task_def, indent=4, default=str))
        raise RegistrationRejectedError(
            f"Failed to register task definition in ECS: {e}", payload=task_def
        ) from e

    return response['taskDefinition']['taskDefinitionArn']


def run_deployment(settings: Settings, sink: OutputSink,
                   ecs_client=None, codedeploy_client=None) -> DeploymentResult:
    """Register the task definition and deploy it to the service, if one is given.

    Steps run strictly in order and the first failure aborts the run.
    Outputs written before the failure stay written.

    Args:
        settings: Resolved inputs
        sink: Where outputs are written
        ecs_client: ECS client, created from settings when omitted
        codedeploy_client: CodeDeploy client, created from settings when omitted

    Returns:
        DeploymentResult describing what was registered and deployed
    """
    region = settings.aws_region
    if not settings.task_definition:
        raise DeploymentError("Input required and not supplied: task-definition")
    if not region:
        raise DeploymentError("Input required and not supplied: region")

    ecs_client = ecs_client or get_ecs_client(region)

    # Common outputs
    sink.set_output(outputs.REGION, region)
    sink.set_output(outputs.SERVICE, settings.service)
    sink.set_output(outputs.CLUSTER, settings.cluster)

    task_def = prepare_task_definition(settings.task_definition, settings.workspace_dir)
    task_def_arn = register_task_definition(ecs_client, task_def)
    sink.set_output(outputs.TASK_DEFINITION_ARN, task_def_arn)
    logger.info(f"Registered task definition {task_def_arn}")

    if not settings.service:
        logger.debug("Service was not specified, no service updated")
        return DeploymentResult(task_definition_arn=task_def_arn)

    deployer = ServiceDeployer(
        ecs_client,
        codedeploy_client or get_codedeploy_client(region),
        region,
        force_new_deployment=settings.force_new_deployment,
        codedeploy_config=CodeDeployConfig(
            appspec_file=settings.codedeploy_appspec,
            application=settings.codedeploy_application,
            deployment_group=settings.codedeploy_deployment_group,
            description=settings.codedeploy_deployment_description,
            workspace=settings.workspace_dir
        )
    )

    controller = deployer.select_controller(settings.service, settings.cluster)
    sink.set_output(outputs.DEPLOYMENT_PLATFORM, platform_for(controller).value)

    result = deployer.deploy(controller, settings.service, settings.cluster, task_def_arn)
    if result.deployment_id:
        sink.set_output(outputs.CODEDEPLOY_DEPLOYMENT_ID, result.deployment_id)
    sink.set_output(outputs.DEPLOYMENT_URL, result.deployment_url)

    return result
