# src/ecs_deploy/settings.py
import os
from typing import Optional, Dict, Any
from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """
    Single source of truth for all deployment inputs.

    Configuration precedence:
    1. Explicit keyword arguments (CLI options)
    2. Environment variables, including the INPUT_* variables the
       GitHub Actions runner exports for `with:` inputs
    3. .env file (if exists)
    4. Default values in this class (lowest priority)

    Usage:
        from ecs_deploy.settings import get_settings
        settings = get_settings()
        task_definition_file = settings.task_definition
    """

    # Task definition
    task_definition: Optional[str] = Field(
        default=None,
        alias="INPUT_TASK-DEFINITION",
        description="Path to the ECS task definition file to register"
    )

    # AWS Core Settings
    region: Optional[str] = Field(
        default=None,
        alias="INPUT_REGION",
        description="AWS region name"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL",
        description="Endpoint override for local or mocked AWS APIs"
    )

    # ECS service
    service: Optional[str] = Field(
        default=None,
        alias="INPUT_SERVICE",
        description="ECS service to deploy to; only register when unset"
    )

    cluster: Optional[str] = Field(
        default=None,
        alias="INPUT_CLUSTER",
        description="ECS cluster of the service, 'default' when unset"
    )

    force_new_deployment: bool = Field(
        default=False,
        alias="INPUT_FORCE-NEW-DEPLOYMENT",
        description="Force a new deployment of the service"
    )

    # CodeDeploy (blue/green services only)
    codedeploy_appspec: Optional[str] = Field(
        default=None,
        alias="INPUT_CODEDEPLOY-APPSPEC",
        description="Path to the AppSpec file, 'appspec.yaml' when unset"
    )

    codedeploy_application: Optional[str] = Field(
        default=None,
        alias="INPUT_CODEDEPLOY-APPLICATION",
        description="CodeDeploy application, 'AppECS-{cluster}-{service}' when unset"
    )

    codedeploy_deployment_group: Optional[str] = Field(
        default=None,
        alias="INPUT_CODEDEPLOY-DEPLOYMENT-GROUP",
        description="CodeDeploy deployment group, 'DgpECS-{cluster}-{service}' when unset"
    )

    codedeploy_deployment_description: Optional[str] = Field(
        default=None,
        alias="INPUT_CODEDEPLOY-DEPLOYMENT-DESCRIPTION",
        description="Description of the CodeDeploy deployment"
    )

    # Runner environment
    workspace: Optional[str] = Field(
        default=None,
        alias="GITHUB_WORKSPACE",
        description="Root that relative file paths are resolved against"
    )

    github_output: Optional[str] = Field(
        default=None,
        alias="GITHUB_OUTPUT",
        description="File that step outputs are appended to"
    )

    github_actions: bool = Field(
        default=False,
        alias="GITHUB_ACTIONS",
        description="Whether we are running inside a GitHub Actions job"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level"
    )

    @validator(
        'task_definition', 'region', 'aws_endpoint_url', 'service', 'cluster',
        'codedeploy_appspec', 'codedeploy_application',
        'codedeploy_deployment_group', 'codedeploy_deployment_description',
        'workspace', 'github_output',
        pre=True
    )
    def blank_to_none(cls, v):
        """Unset action inputs arrive as empty strings."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @validator('force_new_deployment', 'github_actions', pre=True)
    def parse_flag(cls, v):
        # Anything other than "true" (any casing) means false
        if isinstance(v, str):
            return v.strip().lower() == 'true'
        return bool(v)

    @property
    def aws_region(self) -> Optional[str]:
        """Region input, falling back to the region configured for the AWS SDK."""
        return self.region or os.environ.get('AWS_REGION') or os.environ.get('AWS_DEFAULT_REGION')

    @property
    def workspace_dir(self) -> str:
        """Workspace root, or the current directory outside of a runner."""
        return self.workspace or os.getcwd()

    def summary(self) -> Dict[str, Any]:
        """Resolved configuration, for display."""
        return {
            'task_definition': self.task_definition,
            'region': self.aws_region,
            'service': self.service,
            'cluster': self.cluster,
            'force_new_deployment': self.force_new_deployment,
            'codedeploy_appspec': self.codedeploy_appspec,
            'codedeploy_application': self.codedeploy_application,
            'codedeploy_deployment_group': self.codedeploy_deployment_group,
            'codedeploy_deployment_description': self.codedeploy_deployment_description,
            'workspace': self.workspace_dir,
            'aws_endpoint_url': self.aws_endpoint_url,
            'log_level': self.log_level,
        }

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
