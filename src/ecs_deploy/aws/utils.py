"""AWS utility functions and client management."""
import boto3
import logging
from typing import Dict, Optional, Any, Tuple
from botocore.config import Config

from ecs_deploy.settings import get_settings

logger = logging.getLogger(__name__)

USER_AGENT = 'amazon-ecs-deploy-task-definition-for-github-actions'

# Every remote call is attempted once, failures surface immediately
CLIENT_CONFIG = Config(
    user_agent_extra=USER_AGENT,
    retries={'total_max_attempts': 1, 'mode': 'standard'}
)


class AWSClientManager:
    """Singleton manager for AWS service clients."""
    _instance = None
    _clients: Dict[Tuple[str, Optional[str]], Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(AWSClientManager, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize the client manager with settings."""
        self.settings = get_settings()
        self.endpoint_url = self.settings.aws_endpoint_url

        logger.debug("Initializing AWSClientManager")
        logger.debug(f"  Region: {self.settings.aws_region}")
        logger.debug(f"  Endpoint: {self.endpoint_url}")

    def get_client(self, service_name: str, region: Optional[str] = None) -> Any:
        """Get or create an AWS service client."""
        region = region or self.settings.aws_region
        key = (service_name, region)
        if key in self._clients:
            return self._clients[key]

        client_kwargs = {
            'region_name': region,
            'config': CLIENT_CONFIG
        }

        # Local/mock endpoints
        if self.endpoint_url:
            client_kwargs['endpoint_url'] = self.endpoint_url

        try:
            client = boto3.client(service_name, **client_kwargs)
            self._clients[key] = client
            logger.debug(f"Created {service_name} client for {region}")
            return client
        except Exception as e:
            logger.error(f"Error creating {service_name} client: {str(e)}")
            raise

    @classmethod
    def clear_clients(cls):
        """Clear all cached clients and the settings they were built from."""
        cls._clients.clear()
        cls._instance = None
        logger.debug("Cleared all AWS clients")


def get_ecs_client(region: Optional[str] = None):
    """Get the ECS client."""
    return AWSClientManager().get_client('ecs', region)


def get_codedeploy_client(region: Optional[str] = None):
    """Get the CodeDeploy client."""
    return AWSClientManager().get_client('codedeploy', region)
