"""Find and delete ECR image tags that no ECS task or Lambda function references."""

__version__ = "0.1.0"
