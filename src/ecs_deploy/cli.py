# cli.py
import sys
import json
import click
import logging

from ecs_deploy.deploy import prepare_task_definition, run_deployment
from ecs_deploy.logging_config import setup_logging
from ecs_deploy.outputs import create_output_sink
from ecs_deploy.settings import Settings

logger = logging.getLogger(__name__)


def _load_settings(**overrides) -> Settings:
    """Settings from the environment, with CLI options taking precedence."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


@click.group()
def cli():
    """Register ECS task definitions and deploy them to ECS services"""
    pass


@cli.command()
@click.option("--task-definition", help="Path to the task definition file to register")
@click.option("--region", help="AWS region name")
@click.option("--service", help="ECS service to deploy to; register only when omitted")
@click.option("--cluster", help="ECS cluster of the service (default: 'default')")
@click.option("--force-new-deployment/--no-force-new-deployment", default=None,
              help="Force a new deployment of the service")
@click.option("--codedeploy-appspec", help="AppSpec file for CODE_DEPLOY services (default: appspec.yaml)")
@click.option("--codedeploy-application", help="CodeDeploy application (default: AppECS-{cluster}-{service})")
@click.option("--codedeploy-deployment-group", help="CodeDeploy deployment group (default: DgpECS-{cluster}-{service})")
@click.option("--codedeploy-deployment-description", help="Description of the CodeDeploy deployment")
def deploy(task_definition, region, service, cluster, force_new_deployment,
           codedeploy_appspec, codedeploy_application, codedeploy_deployment_group,
           codedeploy_deployment_description):
    """Register the task definition and deploy it to the service"""
    settings = _load_settings(
        task_definition=task_definition,
        region=region,
        service=service,
        cluster=cluster,
        force_new_deployment=force_new_deployment,
        codedeploy_appspec=codedeploy_appspec,
        codedeploy_application=codedeploy_application,
        codedeploy_deployment_group=codedeploy_deployment_group,
        codedeploy_deployment_description=codedeploy_deployment_description,
    )
    setup_logging(settings.log_level, settings.github_actions)

    try:
        run_deployment(settings, create_output_sink(settings))
    except Exception as e:
        logger.error(str(e))
        logger.debug("Deployment failed", exc_info=True)
        sys.exit(1)


@cli.command()
@click.argument("task_definition")
def render(task_definition):
    """Print the RegisterTaskDefinition payload for a task definition file"""
    settings = _load_settings()
    setup_logging(settings.log_level, settings.github_actions)

    try:
        task_def = prepare_task_definition(task_definition, settings.workspace_dir)
    except Exception as e:
        logger.error(str(e))
        logger.debug("Rendering failed", exc_info=True)
        sys.exit(1)

    click.echo(json.dumps(task_def, indent=4, default=str))


@cli.command()
def show_config():
    """Show current configuration"""
    settings = _load_settings()

    click.echo("Current Configuration:")
    for key, value in settings.summary().items():
        click.echo(f"  {key}: {value}")


def main():
    cli()


if __name__ == "__main__":
    main()
