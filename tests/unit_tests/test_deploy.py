"""
Tests for the register-then-deploy sequence.
"""
import json
import logging

import boto3
import pytest
from botocore.stub import Stubber

from ecs_deploy.deploy import register_task_definition, run_deployment
from ecs_deploy.exceptions import (
    RegistrationRejectedError,
    ServiceNotActiveError,
    UnsupportedDeploymentControllerError,
)
from ecs_deploy.outputs import MemoryOutputSink
from ecs_deploy.settings import Settings
from tests.consts import (
    TEST_CLUSTER,
    TEST_DEPLOYMENT_ID,
    TEST_FAMILY,
    TEST_REGION,
    TEST_SERVICE,
    TEST_TASK_DEFINITION_ARN,
)
from tests.fixtures.task_definitions import appspec, described_task_definition, write_json, write_yaml


@pytest.fixture
def task_definition_file(workspace):
    return write_json(workspace / "task-definition.json", described_task_definition())


class TestRegistration:

    def test_register_only(self, mocked_aws, task_definition_file):
        ecs = boto3.client("ecs", region_name=TEST_REGION)
        sink = MemoryOutputSink()
        settings = Settings(task_definition="task-definition.json", region=TEST_REGION)

        result = run_deployment(settings, sink, ecs_client=ecs)

        assert result.task_definition_arn.endswith(f"task-definition/{TEST_FAMILY}:1")
        assert result.platform is None
        assert sink.get("task-definition-arn") == result.task_definition_arn
        assert sink.get("region") == TEST_REGION
        assert sink.get("service") == ""
        assert sink.get("deployment-platform") is None

        registered = ecs.describe_task_definition(taskDefinition=result.task_definition_arn)["taskDefinition"]
        environment = registered["containerDefinitions"][0]["environment"]
        assert {"name": "FEATURE_FLAG", "value": ""} in environment

    def test_rejected_payload_is_kept(self, caplog):
        ecs = boto3.client("ecs", region_name=TEST_REGION)
        task_def = {"family": TEST_FAMILY, "containerDefinitions": [{"name": "web", "image": "nginx"}]}

        with Stubber(ecs) as stubber:
            stubber.add_client_error(
                "register_task_definition",
                service_error_code="ClientException",
                service_message="Invalid setting for container 'web'",
            )
            with caplog.at_level(logging.DEBUG, logger="ecs_deploy.deploy"):
                with pytest.raises(RegistrationRejectedError) as exc_info:
                    register_task_definition(ecs, task_def)

        assert str(exc_info.value).startswith("Failed to register task definition in ECS:")
        assert "Invalid setting for container 'web'" in str(exc_info.value)
        assert exc_info.value.payload == task_def
        assert "Task definition contents:" in caplog.messages
        assert json.dumps(task_def, indent=4) in caplog.messages

    def test_invalid_field_is_rejected(self):
        ecs = boto3.client("ecs", region_name=TEST_REGION)
        task_def = {"family": TEST_FAMILY, "containerDefinitions": [], "notAField": "x"}

        with pytest.raises(RegistrationRejectedError):
            register_task_definition(ecs, task_def)

    def test_registration_failure_stops_the_run(self, task_definition_file):
        ecs = boto3.client("ecs", region_name=TEST_REGION)
        sink = MemoryOutputSink()
        settings = Settings(task_definition="task-definition.json", region=TEST_REGION, service=TEST_SERVICE)

        with Stubber(ecs) as stubber:
            stubber.add_client_error("register_task_definition", service_error_code="ClientException")
            with pytest.raises(RegistrationRejectedError):
                run_deployment(settings, sink, ecs_client=ecs, codedeploy_client=object())
            stubber.assert_no_pending_responses()

        assert sink.get("region") == TEST_REGION
        assert sink.get("task-definition-arn") is None

    def test_missing_inputs(self):
        with pytest.raises(Exception, match="task-definition"):
            run_deployment(Settings(region=TEST_REGION), MemoryOutputSink(), ecs_client=object())


class TestRollingDeployment:

    def test_updates_service(self, task_definition_file):
        ecs = boto3.client("ecs", region_name=TEST_REGION)
        sink = MemoryOutputSink()
        settings = Settings(
            task_definition="task-definition.json",
            region=TEST_REGION,
            service=TEST_SERVICE,
            cluster=TEST_CLUSTER,
            force_new_deployment=True,
        )

        with Stubber(ecs) as ecs_stub:
            ecs_stub.add_response(
                "register_task_definition",
                {"taskDefinition": {"taskDefinitionArn": TEST_TASK_DEFINITION_ARN}},
            )
            ecs_stub.add_response(
                "describe_services",
                {"services": [{"serviceName": TEST_SERVICE, "status": "ACTIVE"}], "failures": []},
                {"services": [TEST_SERVICE], "cluster": TEST_CLUSTER},
            )
            ecs_stub.add_response(
                "update_service",
                {"service": {"serviceName": TEST_SERVICE, "taskDefinition": TEST_TASK_DEFINITION_ARN}},
                {
                    "cluster": TEST_CLUSTER,
                    "service": TEST_SERVICE,
                    "taskDefinition": TEST_TASK_DEFINITION_ARN,
                    "forceNewDeployment": True,
                },
            )

            result = run_deployment(settings, sink, ecs_client=ecs, codedeploy_client=object())
            ecs_stub.assert_no_pending_responses()

        assert result.task_definition_arn == TEST_TASK_DEFINITION_ARN
        assert sink.outputs["deployment-platform"] == "AWS:ECS"
        assert sink.outputs["cluster"] == TEST_CLUSTER
        assert sink.outputs["deployment-url"] == (
            f"https://console.aws.amazon.com/ecs/home?region={TEST_REGION}"
            f"#/clusters/{TEST_CLUSTER}/services/{TEST_SERVICE}/events"
        )
        assert "codedeploy-deployment-id" not in sink.outputs

    def test_ecs_controller_is_rejected_before_update(self, task_definition_file):
        ecs = boto3.client("ecs", region_name=TEST_REGION)
        sink = MemoryOutputSink()
        settings = Settings(task_definition="task-definition.json", region=TEST_REGION, service=TEST_SERVICE)

        with Stubber(ecs) as ecs_stub:
            ecs_stub.add_response(
                "register_task_definition",
                {"taskDefinition": {"taskDefinitionArn": TEST_TASK_DEFINITION_ARN}},
            )
            ecs_stub.add_response(
                "describe_services",
                {"services": [{"status": "ACTIVE", "deploymentController": {"type": "ECS"}}], "failures": []},
                {"services": [TEST_SERVICE], "cluster": "default"},
            )
            with pytest.raises(UnsupportedDeploymentControllerError, match="ECS"):
                run_deployment(settings, sink, ecs_client=ecs, codedeploy_client=object())
            ecs_stub.assert_no_pending_responses()

        assert sink.get("deployment-platform") is None


class TestBlueGreenDeployment:

    def test_creates_codedeploy_deployment(self, workspace, task_definition_file):
        write_yaml(workspace / "appspec.yaml", appspec())
        ecs = boto3.client("ecs", region_name=TEST_REGION)
        codedeploy = boto3.client("codedeploy", region_name=TEST_REGION)
        sink = MemoryOutputSink()
        settings = Settings(
            task_definition="task-definition.json",
            region=TEST_REGION,
            service=TEST_SERVICE,
            cluster=TEST_CLUSTER,
        )

        with Stubber(ecs) as ecs_stub, Stubber(codedeploy) as codedeploy_stub:
            ecs_stub.add_response(
                "register_task_definition",
                {"taskDefinition": {"taskDefinitionArn": TEST_TASK_DEFINITION_ARN}},
            )
            ecs_stub.add_response(
                "describe_services",
                {"services": [{"status": "ACTIVE", "deploymentController": {"type": "CODE_DEPLOY"}}], "failures": []},
                {"services": [TEST_SERVICE], "cluster": TEST_CLUSTER},
            )
            codedeploy_stub.add_response("create_deployment", {"deploymentId": TEST_DEPLOYMENT_ID})

            result = run_deployment(settings, sink, ecs_client=ecs, codedeploy_client=codedeploy)

        assert result.deployment_id == TEST_DEPLOYMENT_ID
        assert sink.outputs == {
            "region": TEST_REGION,
            "service": TEST_SERVICE,
            "cluster": TEST_CLUSTER,
            "task-definition-arn": TEST_TASK_DEFINITION_ARN,
            "deployment-platform": "AWS:CodeDeploy",
            "codedeploy-deployment-id": TEST_DEPLOYMENT_ID,
            "deployment-url": (
                f"https://console.aws.amazon.com/codesuite/codedeploy/deployments/{TEST_DEPLOYMENT_ID}"
                f"?region={TEST_REGION}"
            ),
        }

    def test_inactive_service_keeps_earlier_outputs(self, task_definition_file):
        ecs = boto3.client("ecs", region_name=TEST_REGION)
        sink = MemoryOutputSink()
        settings = Settings(task_definition="task-definition.json", region=TEST_REGION, service=TEST_SERVICE)

        with Stubber(ecs) as ecs_stub:
            ecs_stub.add_response(
                "register_task_definition",
                {"taskDefinition": {"taskDefinitionArn": TEST_TASK_DEFINITION_ARN}},
            )
            ecs_stub.add_response(
                "describe_services",
                {"services": [{"status": "INACTIVE"}], "failures": []},
                {"services": [TEST_SERVICE], "cluster": "default"},
            )
            with pytest.raises(ServiceNotActiveError):
                run_deployment(settings, sink, ecs_client=ecs, codedeploy_client=object())

        assert sink.get("task-definition-arn") == TEST_TASK_DEFINITION_ARN
        assert sink.get("cluster") == ""
        assert sink.get("deployment-platform") is None
