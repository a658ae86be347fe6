"""
ECS Task Definition Sanitizer
Turns a user-authored task definition file into a valid RegisterTaskDefinition payload.
"""
import os
import logging
from typing import Dict, Any, List, Optional

from ecs_deploy.yaml_utils import load_yaml_file

logger = logging.getLogger(__name__)

# Attributes that are returned by DescribeTaskDefinition, but are not valid RegisterTaskDefinition inputs
IGNORED_TASK_DEFINITION_ATTRIBUTES = [
    'compatibilities',
    'taskDefinitionArn',
    'requiresAttributes',
    'revision',
    'status',
    'registeredAt',
    'deregisteredAt',
    'registeredBy'
]


def resolve_workspace_path(path: str, workspace: Optional[str] = None) -> str:
    """Resolve a path relative to the workspace root unless it is absolute."""
    if os.path.isabs(path):
        return path
    return os.path.join(workspace or os.getcwd(), path)


def load_task_definition(path: str) -> Any:
    """Read a YAML or JSON task definition file."""
    return load_yaml_file(path)


def is_empty_value(value: Any) -> bool:
    """Whether a value carries nothing the API cares about.

    None and "" are empty, a list or dict is empty when all of its
    members are. Any other scalar, 0 and False included, is not.
    """
    if value is None or value == '':
        return True

    if isinstance(value, list):
        return all(is_empty_value(element) for element in value)

    if isinstance(value, dict):
        return all(is_empty_value(child) for child in value.values())

    return False


def clean_empty_values(value: Any) -> Any:
    """Recursively drop empty fields and list elements.

    Returns None when the value itself is empty.
    """
    if isinstance(value, dict):
        cleaned = {}
        for key, child in value.items():
            child = clean_empty_values(child)
            if child is not None:
                cleaned[key] = child
        return cleaned or None

    if isinstance(value, list):
        cleaned = [clean_empty_values(element) for element in value]
        cleaned = [element for element in cleaned if element is not None]
        return cleaned or None

    if is_empty_value(value):
        return None

    return value


def remove_ignored_attributes(task_def: Dict[str, Any]) -> Dict[str, Any]:
    """Delete read-only attributes that DescribeTaskDefinition adds."""
    if not isinstance(task_def, dict):
        return task_def

    for attribute in IGNORED_TASK_DEFINITION_ATTRIBUTES:
        if attribute in task_def:
            logger.warning(
                f"Ignoring property '{attribute}' in the task definition file. "
                "This property is returned by the Amazon ECS DescribeTaskDefinition API and may be shown in the ECS console, "
                "but it is not a valid field when registering a new task definition. "
                "This field can be safely removed from your task definition file."
            )
            del task_def[attribute]

    return task_def


def _has_appmesh_properties(task_def: Dict[str, Any]) -> bool:
    proxy = task_def.get('proxyConfiguration')
    if not isinstance(proxy, dict):
        return False
    properties = proxy.get('properties')
    return proxy.get('type') == 'APPMESH' and isinstance(properties, list) and len(properties) > 0


def maintain_valid_objects(task_def: Dict[str, Any]) -> Dict[str, Any]:
    """Add the keys RegisterTaskDefinition requires even when blank."""
    if not isinstance(task_def, dict):
        return task_def

    if _has_appmesh_properties(task_def):
        for prop in task_def['proxyConfiguration']['properties']:
            if isinstance(prop, dict):
                prop.setdefault('value', '')
                prop.setdefault('name', '')

    containers: List[Any] = task_def.get('containerDefinitions') or []
    if isinstance(containers, list):
        for container in containers:
            if not isinstance(container, dict):
                continue
            environment = container.get('environment')
            if isinstance(environment, list):
                for variable in environment:
                    if isinstance(variable, dict):
                        variable.setdefault('value', '')

    return task_def


def sanitize(task_def: Any) -> Any:
    """Clean a parsed task definition into a RegisterTaskDefinition payload.

    Elision runs first, repair last so the blank values it adds survive.
    """
    cleaned = clean_empty_values(task_def)
    if cleaned is None:
        cleaned = {} if isinstance(task_def, dict) or task_def is None else task_def
    return maintain_valid_objects(remove_ignored_attributes(cleaned))
