"""Logging setup for local runs and GitHub Actions jobs."""
import logging
import sys

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class GitHubActionsFormatter(logging.Formatter):
    """Render records as GitHub Actions workflow commands.

    Warnings and errors become annotations on the run summary, debug
    records only show up when step debug logging is enabled.
    """

    COMMANDS = {
        logging.DEBUG: 'debug',
        logging.WARNING: 'warning',
        logging.ERROR: 'error',
        logging.CRITICAL: 'error',
    }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = self.COMMANDS.get(record.levelno)
        if command is None:
            return message
        # Workflow commands are single-line, newlines must be escaped
        escaped = message.replace('%', '%25').replace('\r', '%0D').replace('\n', '%0A')
        return f"::{command}::{escaped}"


def setup_logging(level: str = "INFO", github_actions: bool = False) -> None:
    """Configure the root logger once per process."""
    handler = logging.StreamHandler(sys.stdout)
    if github_actions:
        handler.setFormatter(GitHubActionsFormatter('%(message)s'))
        # The runner filters ::debug:: lines itself
        level = "DEBUG"
    else:
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())

    # botocore is chatty at DEBUG
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
