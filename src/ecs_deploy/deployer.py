"""Deploy a registered task definition to an ECS service.

The service's deployment controller decides how:

* ECS (rolling update): UpdateService with the new task definition
* CODE_DEPLOY (blue/green): a CodeDeploy deployment from the patched AppSpec
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ecs_deploy.appspec import load_appspec, patch_appspec
from ecs_deploy.exceptions import (
    ServiceLookupFailedError,
    ServiceNotActiveError,
    UnsupportedDeploymentControllerError,
)
from ecs_deploy.task_definition import resolve_workspace_path

logger = logging.getLogger(__name__)

DEFAULT_CLUSTER = 'default'
DEFAULT_APPSPEC_FILE = 'appspec.yaml'


class DeploymentController(str, Enum):
    """Deployment controllers we know how to drive"""
    ECS = "ECS"                  # Rolling update through UpdateService
    CODE_DEPLOY = "CODE_DEPLOY"  # Blue/green through CodeDeploy


class DeploymentPlatform(str, Enum):
    """Values of the deployment-platform output"""
    ECS = "AWS:ECS"
    CODE_DEPLOY = "AWS:CodeDeploy"


@dataclass
class CodeDeployConfig:
    """Optional CodeDeploy inputs; unset values get computed defaults."""
    appspec_file: Optional[str] = None
    application: Optional[str] = None
    deployment_group: Optional[str] = None
    description: Optional[str] = None
    workspace: Optional[str] = None


@dataclass
class DeploymentResult:
    """What a run did."""
    task_definition_arn: str
    platform: Optional[str] = None
    deployment_url: Optional[str] = None
    deployment_id: Optional[str] = None


def platform_for(controller: DeploymentController) -> DeploymentPlatform:
    if controller == DeploymentController.CODE_DEPLOY:
        return DeploymentPlatform.CODE_DEPLOY
    return DeploymentPlatform.ECS


def resolve_cluster_name(cluster: Optional[str]) -> str:
    """Unset and empty cluster names both mean the default cluster."""
    return cluster if cluster else DEFAULT_CLUSTER


def ecs_service_url(region: str, cluster: str, service: str) -> str:
    return f"https://console.aws.amazon.com/ecs/home?region={region}#/clusters/{cluster}/services/{service}/events"


def codedeploy_deployment_url(region: str, deployment_id: str) -> str:
    return f"https://console.aws.amazon.com/codesuite/codedeploy/deployments/{deployment_id}?region={region}"


def describe_service(ecs_client, cluster: str, service: str) -> Dict[str, Any]:
    """Look up the service and check it can be deployed to."""
    response = ecs_client.describe_services(services=[service], cluster=cluster)

    failures = response.get('failures') or []
    if failures:
        failure = failures[0]
        raise ServiceLookupFailedError(f"{failure.get('arn')} is {failure.get('reason')}")

    services = response.get('services') or []
    if not services:
        raise ServiceLookupFailedError(f"{service} is MISSING")

    service_response = services[0]
    if service_response.get('status') != 'ACTIVE':
        raise ServiceNotActiveError(service_response.get('status'))

    return service_response


def resolve_deployment_controller(service_response: Dict[str, Any]) -> DeploymentController:
    """Map the service's deployment controller to a deployment strategy."""
    controller = service_response.get('deploymentController')

    # Only services without a deployment controller take rolling updates
    if controller is None:
        return DeploymentController.ECS

    controller_type = controller.get('type') if isinstance(controller, dict) else controller
    if controller_type == DeploymentController.CODE_DEPLOY.value:
        return DeploymentController.CODE_DEPLOY

    raise UnsupportedDeploymentControllerError(controller_type)


def update_ecs_service(ecs_client, cluster: str, service: str, task_definition_arn: str,
                       force_new_deployment: bool, region: str) -> str:
    """Roll the service onto the new task definition.

    Returns:
        Console URL for following the deployment
    """
    logger.debug("Updating the service")
    ecs_client.update_service(
        cluster=cluster,
        service=service,
        taskDefinition=task_definition_arn,
        forceNewDeployment=force_new_deployment
    )
    url = ecs_service_url(region, cluster, service)
    logger.info(f"Deployment started. Watch this deployment's progress in the Amazon ECS console: {url}")
    return url


def create_codedeploy_deployment(codedeploy_client, cluster: str, service: str,
                                 task_definition_arn: str, region: str,
                                 config: CodeDeployConfig) -> Dict[str, str]:
    """Start a blue/green deployment of the new task definition.

    Returns:
        Dict with the deployment_id and the console deployment_url
    """
    logger.debug("Updating AppSpec file with new task definition ARN")

    appspec_file = config.appspec_file or DEFAULT_APPSPEC_FILE
    application = config.application or f"AppECS-{cluster}-{service}"
    deployment_group = config.deployment_group or f"DgpECS-{cluster}-{service}"

    appspec_path = resolve_workspace_path(appspec_file, config.workspace)
    appspec = load_appspec(appspec_path)
    content, digest = patch_appspec(appspec, task_definition_arn)

    logger.debug("Starting CodeDeploy deployment")
    deployment_params = {
        'applicationName': application,
        'deploymentGroupName': deployment_group,
        'revision': {
            'revisionType': 'AppSpecContent',
            'appSpecContent': {
                'content': content,
                'sha256': digest
            }
        }
    }
    # Leave it out entirely when unset so CodeDeploy keeps its default
    if config.description:
        deployment_params['description'] = config.description

    response = codedeploy_client.create_deployment(**deployment_params)
    deployment_id = response['deploymentId']
    url = codedeploy_deployment_url(region, deployment_id)
    logger.info(f"Deployment started. Watch this deployment's progress in the AWS CodeDeploy console: {url}")
    return {'deployment_id': deployment_id, 'deployment_url': url}


class ServiceDeployer:
    """Deploys a task definition to a service using the service's own controller."""

    def __init__(self, ecs_client, codedeploy_client, region: str,
                 force_new_deployment: bool = False,
                 codedeploy_config: Optional[CodeDeployConfig] = None):
        self.ecs_client = ecs_client
        self.codedeploy_client = codedeploy_client
        self.region = region
        self.force_new_deployment = force_new_deployment
        self.codedeploy_config = codedeploy_config or CodeDeployConfig()

    def select_controller(self, service: str, cluster: Optional[str]) -> DeploymentController:
        """Check the service is deployable and pick the deployment strategy."""
        cluster_name = resolve_cluster_name(cluster)
        service_response = describe_service(self.ecs_client, cluster_name, service)
        controller = resolve_deployment_controller(service_response)
        logger.info(f"Service {service} in cluster {cluster_name} uses the {controller.value} deployment controller")
        return controller

    def deploy(self, controller: DeploymentController, service: str, cluster: Optional[str],
               task_definition_arn: str) -> DeploymentResult:
        """Run the deployment for the selected controller, one API call."""
        cluster_name = resolve_cluster_name(cluster)
        result = DeploymentResult(
            task_definition_arn=task_definition_arn,
            platform=platform_for(controller).value
        )

        if controller == DeploymentController.ECS:
            result.deployment_url = update_ecs_service(
                self.ecs_client, cluster_name, service, task_definition_arn,
                self.force_new_deployment, self.region
            )
        else:
            deployment = create_codedeploy_deployment(
                self.codedeploy_client, cluster_name, service, task_definition_arn,
                self.region, self.codedeploy_config
            )
            result.deployment_id = deployment['deployment_id']
            result.deployment_url = deployment['deployment_url']

        return result
