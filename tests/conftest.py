import os
import pytest
from moto import mock_aws

from ecs_deploy.aws.utils import AWSClientManager
from ecs_deploy.settings import get_settings
from tests.consts import TEST_REGION


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    # Keep the runner's own environment out of the settings under test
    for name in ("GITHUB_ACTIONS", "GITHUB_OUTPUT", "GITHUB_WORKSPACE", "AWS_ENDPOINT_URL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_caches():
    get_settings.cache_clear()
    AWSClientManager.clear_clients()
    yield
    get_settings.cache_clear()
    AWSClientManager.clear_clients()


@pytest.fixture
def mocked_aws():
    with mock_aws():
        yield


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """A GitHub workspace directory that relative paths resolve against."""
    monkeypatch.setenv("GITHUB_WORKSPACE", str(tmp_path))
    return tmp_path
