"""Errors raised while registering and deploying a task definition."""


class DeploymentError(Exception):
    """Base class for fatal deployment errors"""
    pass


class MissingRequiredFieldError(DeploymentError):
    """Raised when a document is missing a key it must contain"""

    def __init__(self, key_name: str, message: str = None):
        self.key_name = key_name
        super().__init__(message or f"AppSpec file must include property '{key_name}'")


class RegistrationRejectedError(DeploymentError):
    """Raised when ECS rejects the task definition payload"""

    def __init__(self, message: str, payload=None):
        self.payload = payload
        super().__init__(message)


class ServiceLookupFailedError(DeploymentError):
    """Raised when DescribeServices reports a failure for the service"""
    pass


class ServiceNotActiveError(DeploymentError):
    """Raised when the service exists but is not ACTIVE"""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Service is {status}")


class UnsupportedDeploymentControllerError(DeploymentError):
    """Raised for deployment controllers other than ECS and CODE_DEPLOY"""

    def __init__(self, controller_type: str):
        self.controller_type = controller_type
        super().__init__(f"Unsupported deployment controller: {controller_type}")
