"""Register an ECS task definition and deploy it to an ECS service."""

__version__ = "1.0.0"
