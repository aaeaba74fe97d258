"""
Images referenced by ECS.

Two ways of finding them are supported:

- ``task_definitions``: every container definition of every active task
  definition. This counts images that are registered but not scheduled, so it
  keeps more images than strictly necessary.
- ``running_tasks``: every container of every task currently running for a
  service, walking clusters -> services -> tasks. Standalone tasks started
  outside a service are not seen.

Any API failure aborts the collector; partial results are never returned.
"""

from typing import Any, Dict, List

from botocore.exceptions import BotoCoreError, ClientError

from ecr_cleaner.config_manager import (
    USAGE_SOURCE_RUNNING_TASKS,
    USAGE_SOURCE_TASK_DEFINITIONS,
    USAGE_SOURCES,
)
from ecr_cleaner.error_utils import CleanerError
from ecr_cleaner.logging_utils import get_logger
from ecr_cleaner.models import SOURCE_ECS, InUseImage
from ecr_cleaner.pagination import chunked, paginate_all

logger = get_logger(__name__)

# DescribeServices and DescribeTasks accept at most 10 identifiers per call
DESCRIBE_BATCH_SIZE = 10


def _log_failures(response: Dict[str, Any], what: str) -> None:
    for failure in response.get("failures", []):
        logger.warning(f"Could not describe {what} {failure.get('arn')}: {failure.get('reason')}")


def get_task_definition_images(ecs_client) -> List[InUseImage]:
    """Collect container images from every registered task definition."""
    arns = paginate_all(ecs_client, "list_task_definitions", "taskDefinitionArns", "task definitions")

    images: List[InUseImage] = []
    for arn in arns:
        try:
            response = ecs_client.describe_task_definition(taskDefinition=arn)
        except (ClientError, BotoCoreError) as e:
            raise CleanerError(f"failed to describe task definition {arn}", e) from e
        for container in response["taskDefinition"].get("containerDefinitions", []):
            images.append(InUseImage(label=container["name"], image=container["image"], source=SOURCE_ECS))

    logger.info(f"Found {len(images)} container images in {len(arns)} task definitions")
    return images


def _describe_service_names(ecs_client, cluster_arn: str, service_arns: List[str]) -> List[str]:
    names: List[str] = []
    for batch in chunked(service_arns, DESCRIBE_BATCH_SIZE):
        try:
            response = ecs_client.describe_services(cluster=cluster_arn, services=batch)
        except (ClientError, BotoCoreError) as e:
            raise CleanerError(f"failed to describe services in cluster {cluster_arn}", e) from e
        _log_failures(response, "service")
        names.extend(service["serviceName"] for service in response.get("services", []))
    return names


def _describe_task_images(ecs_client, cluster_arn: str, service_name: str,
                          task_arns: List[str]) -> List[InUseImage]:
    images: List[InUseImage] = []
    for batch in chunked(task_arns, DESCRIBE_BATCH_SIZE):
        try:
            response = ecs_client.describe_tasks(cluster=cluster_arn, tasks=batch)
        except (ClientError, BotoCoreError) as e:
            raise CleanerError(f"failed to describe tasks for service {service_name}", e) from e
        _log_failures(response, "task")
        for task in response.get("tasks", []):
            for container in task.get("containers", []):
                images.append(InUseImage(
                    label=f"{service_name}/{container['name']}",
                    image=container["image"],
                    source=SOURCE_ECS,
                ))
    return images


def get_running_task_images(ecs_client) -> List[InUseImage]:
    """Collect container images from tasks running under every service in every cluster."""
    images: List[InUseImage] = []
    clusters = paginate_all(ecs_client, "list_clusters", "clusterArns", "clusters")
    for cluster_arn in clusters:
        service_arns = paginate_all(
            ecs_client, "list_services", "serviceArns", f"services in cluster {cluster_arn}",
            cluster=cluster_arn,
        )
        for service_name in _describe_service_names(ecs_client, cluster_arn, service_arns):
            task_arns = paginate_all(
                ecs_client, "list_tasks", "taskArns", f"tasks for service {service_name}",
                cluster=cluster_arn, serviceName=service_name, desiredStatus="RUNNING",
            )
            images.extend(_describe_task_images(ecs_client, cluster_arn, service_name, task_arns))

    logger.info(f"Found {len(images)} running containers in {len(clusters)} clusters")
    return images


def get_in_use_images_ecs(ecs_client, usage_source: str = USAGE_SOURCE_TASK_DEFINITIONS) -> List[InUseImage]:
    """Collect ECS image references using the configured strategy."""
    if usage_source == USAGE_SOURCE_TASK_DEFINITIONS:
        return get_task_definition_images(ecs_client)
    if usage_source == USAGE_SOURCE_RUNNING_TASKS:
        return get_running_task_images(ecs_client)
    raise ValueError(f"usage_source must be one of {', '.join(USAGE_SOURCES)}, got: {usage_source}")
