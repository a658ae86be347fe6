"""CodeDeploy AppSpec handling for blue/green ECS deployments."""
import json
import hashlib
import logging
from typing import Any, Dict, Tuple

from ecs_deploy.exceptions import MissingRequiredFieldError
from ecs_deploy.yaml_utils import load_yaml_file

logger = logging.getLogger(__name__)


def load_appspec(path: str) -> Dict[str, Any]:
    """Read a YAML or JSON AppSpec file."""
    return load_yaml_file(path)


def find_key(obj: Any, key_name: str) -> str:
    """Find a key by case-insensitive name, keeping its original casing."""
    if not isinstance(obj, dict):
        raise MissingRequiredFieldError(key_name)

    key_to_match = key_name.lower()
    for key in obj:
        if isinstance(key, str) and key.lower() == key_to_match:
            return key

    raise MissingRequiredFieldError(key_name)


def find_value(obj: Any, key_name: str) -> Any:
    """Value of a case-insensitively matched key."""
    return obj[find_key(obj, key_name)]


def serialize_appspec(appspec: Any) -> Tuple[str, str]:
    """Compact JSON form of the AppSpec and the SHA-256 hex digest of it."""
    content = json.dumps(appspec, separators=(',', ':'), ensure_ascii=False, default=str)
    digest = hashlib.sha256(content.encode('utf-8')).hexdigest()
    return content, digest


def patch_appspec(appspec: Dict[str, Any], task_definition_arn: str) -> Tuple[str, str]:
    """Point every resource in the AppSpec at the new task definition.

    The AppSpec is modified in place. Returns the serialized content and
    its digest, as CreateDeployment expects them.
    """
    resources = find_value(appspec, 'resources')
    if not isinstance(resources, list):
        raise MissingRequiredFieldError('resources')

    for resource in resources:
        if not isinstance(resource, dict):
            raise MissingRequiredFieldError('properties')
        for name in resource:
            properties = find_value(resource[name], 'properties')
            task_def_key = find_key(properties, 'taskDefinition')
            properties[task_def_key] = task_definition_arn
            logger.debug(f"Set {name}.{task_def_key} to {task_definition_arn}")

    return serialize_appspec(appspec)
