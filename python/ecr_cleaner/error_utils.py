"""
Error types for the cleaner and helpers for actionable AWS error messages.

Every failure is wrapped with a short description of the operation that
failed plus the underlying cause, then surfaced to the CLI, which prints it
and exits with status 1.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from botocore.exceptions import ClientError, NoCredentialsError, NoRegionError


class CleanerError(Exception):
    """An operation failed; carries the operation description and the cause"""

    def __init__(self, description: str, cause: Optional[BaseException] = None):
        self.description = description
        self.cause = cause
        message = f"{description}: {cause}" if cause is not None else description
        super().__init__(message)


class CollectionError(CleanerError):
    """One or more inventory collectors failed"""

    def __init__(self, errors: Sequence[BaseException]):
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))
        self.cause = self.errors[-1] if self.errors else None


class DeletionError(CleanerError):
    """One or more batch-delete calls failed; the sweep still ran to the end"""

    def __init__(self, errors: Sequence[BaseException]):
        self.errors = list(errors)
        joined = "; ".join(str(e) for e in self.errors)
        super().__init__("failed to delete image tags", joined)
        self.cause = self.errors[-1] if self.errors else None


class ErrorCategory(Enum):
    """Categories of errors for better error handling"""
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    PERMISSION = "permission"
    RESOURCE = "resource"
    THROTTLING = "throttling"
    UNKNOWN = "unknown"


class ActionableError(Exception):
    """Exception with actionable guidance for users"""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN,
                 suggestions: Optional[List[str]] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize actionable error

        Args:
            message: Primary error message
            category: Error category for classification
            suggestions: List of suggested fixes
            details: Additional context information
        """
        self.message = message
        self.category = category
        self.suggestions = suggestions or []
        self.details = details or {}
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message with suggestions"""
        lines = [self.message]

        if self.suggestions:
            lines.append("\nSuggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        if self.details:
            lines.append("\nAdditional details:")
            for key, value in self.details.items():
                lines.append(f"   {key}: {value}")

        return "\n".join(lines)


def _root_causes(error: BaseException) -> List[BaseException]:
    """Unwrap cleaner errors down to the SDK exceptions that caused them."""
    if isinstance(error, (CollectionError, DeletionError)):
        causes = []
        for inner in error.errors:
            causes.extend(_root_causes(inner))
        return causes
    if isinstance(error, CleanerError) and error.cause is not None:
        return _root_causes(error.cause)
    return [error]


def _error_code(error: BaseException) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code", "")
    return ""


def describe_aws_error(error: BaseException) -> Optional[ActionableError]:
    """Build guidance for the most actionable AWS failure behind ``error``.

    Returns None when nothing useful can be suggested.
    """
    for cause in _root_causes(error):
        code = _error_code(cause)

        if isinstance(cause, NoCredentialsError):
            return ActionableError(
                message="No AWS credentials were found",
                category=ErrorCategory.AUTHENTICATION,
                suggestions=[
                    "Configure credentials: aws configure",
                    "Or set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables",
                    "Or set AWS_PROFILE / aws.profile in config.yaml to a configured profile",
                ],
            )

        if isinstance(cause, NoRegionError):
            return ActionableError(
                message="No AWS region is configured",
                category=ErrorCategory.CONFIGURATION,
                suggestions=[
                    "Set AWS_REGION (or AWS_DEFAULT_REGION)",
                    "Or set aws.region in config.yaml",
                ],
            )

        if code in ("ExpiredToken", "ExpiredTokenException", "UnrecognizedClientException",
                    "InvalidClientTokenId"):
            return ActionableError(
                message="AWS rejected the credentials in use",
                category=ErrorCategory.AUTHENTICATION,
                suggestions=[
                    "Refresh the session (e.g. aws sso login) and retry",
                    "Check that AWS_PROFILE points at the intended account",
                ],
                details={"error_code": code},
            )

        if code.startswith("AccessDenied"):
            return ActionableError(
                message="AWS denied access to an API this tool needs",
                category=ErrorCategory.PERMISSION,
                suggestions=[
                    "Grant ecr:DescribeRepositories, ecr:ListImages and ecr:BatchDeleteImage",
                    "Grant ecs:ListTaskDefinitions, ecs:DescribeTaskDefinition, ecs:ListClusters, "
                    "ecs:ListServices, ecs:DescribeServices, ecs:ListTasks and ecs:DescribeTasks",
                    "Grant lambda:ListFunctions and lambda:GetFunction",
                ],
                details={"error_code": code},
            )

        if code.startswith("Throttling") or code in ("TooManyRequestsException", "RequestLimitExceeded"):
            return ActionableError(
                message="AWS throttled the request",
                category=ErrorCategory.THROTTLING,
                suggestions=[
                    "Increase aws.max_attempts in config.yaml",
                    "Use aws.retry_mode: adaptive for client-side rate limiting",
                    "Run the tool again later",
                ],
                details={"error_code": code},
            )

        if code in ("RepositoryNotFoundException", "ClusterNotFoundException",
                    "ServiceNotFoundException", "ResourceNotFoundException"):
            return ActionableError(
                message="A resource disappeared while it was being listed",
                category=ErrorCategory.RESOURCE,
                suggestions=["Re-run the tool; resources may have been deleted concurrently"],
                details={"error_code": code},
            )

    return None
