"""YAML loading with YAML 1.2 booleans.

PyYAML resolves plain scalars the YAML 1.1 way, where on/off/yes/no are
booleans. Task definition values such as `value: on` must stay strings.
"""
import re
from typing import Any

import yaml


class StrictBoolLoader(yaml.SafeLoader):
    """SafeLoader that only reads true/false as booleans"""
    pass


StrictBoolLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != 'tag:yaml.org,2002:bool']
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
StrictBoolLoader.add_implicit_resolver(
    'tag:yaml.org,2002:bool',
    re.compile(r'^(?:true|True|TRUE|false|False|FALSE)$'),
    list('tTfF')
)


def load_yaml_file(path: str) -> Any:
    """Parse a YAML (or JSON) file."""
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.load(f, Loader=StrictBoolLoader)
