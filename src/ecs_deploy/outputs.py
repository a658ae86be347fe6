"""Step outputs of a deployment run.

The orchestration code never writes outputs to the environment directly,
it is handed an OutputSink and writes through it.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Output names
DEPLOYMENT_PLATFORM = 'deployment-platform'
TASK_DEFINITION_ARN = 'task-definition-arn'
CODEDEPLOY_DEPLOYMENT_ID = 'codedeploy-deployment-id'
REGION = 'region'
CLUSTER = 'cluster'
SERVICE = 'service'
DEPLOYMENT_URL = 'deployment-url'


class OutputSink(ABC):
    """Destination for the named results of a run."""

    @abstractmethod
    def set_output(self, name: str, value: Optional[str]) -> None:
        """Record an output value."""
        pass


class MemoryOutputSink(OutputSink):
    """Keeps outputs in a dict."""

    def __init__(self):
        self.outputs: Dict[str, str] = {}

    def set_output(self, name: str, value: Optional[str]) -> None:
        self.outputs[name] = '' if value is None else str(value)

    def get(self, name: str) -> Optional[str]:
        return self.outputs.get(name)


class ConsoleOutputSink(OutputSink):
    """Prints outputs as name=value lines."""

    def set_output(self, name: str, value: Optional[str]) -> None:
        print(f"{name}={'' if value is None else value}")


class GitHubOutputSink(OutputSink):
    """Appends outputs to the file named by $GITHUB_OUTPUT."""

    def __init__(self, path: str):
        self.path = path

    def set_output(self, name: str, value: Optional[str]) -> None:
        value = '' if value is None else str(value)
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        # Multiline-safe heredoc form understood by the runner
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
        logger.debug(f"Set output {name}")


def create_output_sink(settings) -> OutputSink:
    """Pick the sink for the current environment."""
    if settings.github_output:
        return GitHubOutputSink(settings.github_output)
    return ConsoleOutputSink()
