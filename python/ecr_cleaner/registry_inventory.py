"""
Inventory of every tagged image in the ECR registry.

Repositories are walked one at a time in listing order; a failure on any
repository aborts the whole inventory.
"""

from typing import List

from ecr_cleaner.error_utils import CleanerError
from ecr_cleaner.logging_utils import get_logger
from ecr_cleaner.models import Image, Repository
from ecr_cleaner.pagination import paginate_all

logger = get_logger(__name__)


def list_repositories(ecr_client) -> List[Repository]:
    records = paginate_all(ecr_client, "describe_repositories", "repositories", "repositories")
    return [Repository(name=r["repositoryName"], uri=r["repositoryUri"]) for r in records]


def list_repository_tags(ecr_client, repository_name: str) -> List[str]:
    """Return the tags in a repository, skipping untagged image identifiers."""
    image_ids = paginate_all(
        ecr_client,
        "list_images",
        "imageIds",
        f"images in repository {repository_name}",
        repositoryName=repository_name,
    )
    return [image_id["imageTag"] for image_id in image_ids if image_id.get("imageTag")]


def get_all_images(ecr_client) -> List[Image]:
    """List every tagged image across all repositories.

    Returns:
        Images ordered by repository listing order, then tag listing order.

    Raises:
        CleanerError: if listing repositories or any repository's tags fails
    """
    try:
        repositories = list_repositories(ecr_client)
    except CleanerError as e:
        raise CleanerError("failed to get repositories", e) from e

    images: List[Image] = []
    for repo in repositories:
        try:
            tags = list_repository_tags(ecr_client, repo.name)
        except CleanerError as e:
            raise CleanerError(f"failed to list image tags for repository {repo.name}", e) from e
        for tag in tags:
            images.append(Image(repository=repo, uri=f"{repo.uri}:{tag}", tag=tag))
        logger.debug(f"{repo.name}: {len(tags)} tag(s)")

    logger.info(f"Found {len(images)} tagged images in {len(repositories)} repositories")
    return images
