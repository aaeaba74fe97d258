"""
Batched deletion of image tags from ECR repositories.

Each repository's tags are split into consecutive batches of at most 100 and
deleted with one BatchDeleteImage call per batch. A failed call does not stop
the sweep: later batches and other repositories are still attempted and every
error is reported together at the end.
"""

from dataclasses import dataclass, field
from typing import List

from botocore.exceptions import BotoCoreError, ClientError

from ecr_cleaner.config_manager import MAX_DELETE_BATCH_SIZE
from ecr_cleaner.error_utils import CleanerError, DeletionError
from ecr_cleaner.logging_utils import get_logger
from ecr_cleaner.pagination import chunked
from ecr_cleaner.reconcile import UnusedImages

logger = get_logger(__name__)

# Tag already gone; deleting it again is not an error
IMAGE_NOT_FOUND = "ImageNotFound"


@dataclass
class BatchDeleteResult:
    """Outcome of deleting tags from one or more repositories"""

    deleted: int = 0
    batches: int = 0
    failed_images: int = 0
    errors: List[CleanerError] = field(default_factory=list)

    def merge(self, other: "BatchDeleteResult") -> None:
        self.deleted += other.deleted
        self.batches += other.batches
        self.failed_images += other.failed_images
        self.errors.extend(other.errors)


class BatchDeleter:
    """Deletes image tags repository by repository in fixed-size batches"""

    def __init__(self, ecr_client, batch_size: int = MAX_DELETE_BATCH_SIZE):
        if batch_size < 1 or batch_size > MAX_DELETE_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_DELETE_BATCH_SIZE}, got {batch_size}")
        self.ecr_client = ecr_client
        self.batch_size = batch_size

    def _delete_batch(self, repository_name: str, tags: List[str]) -> BatchDeleteResult:
        result = BatchDeleteResult(batches=1)
        try:
            response = self.ecr_client.batch_delete_image(
                repositoryName=repository_name,
                imageIds=[{"imageTag": tag} for tag in tags],
            )
        except (ClientError, BotoCoreError) as e:
            error = CleanerError(f"failed to delete batch of {len(tags)} tags from {repository_name}", e)
            logger.error(str(error))
            result.errors.append(error)
            return result

        result.deleted = len(response.get("imageIds", []))
        for failure in response.get("failures", []):
            tag = failure.get("imageId", {}).get("imageTag")
            if failure.get("failureCode") == IMAGE_NOT_FOUND:
                logger.debug(f"{repository_name}:{tag} was already deleted")
                continue
            result.failed_images += 1
            logger.warning(
                f"Could not delete {repository_name}:{tag}: "
                f"{failure.get('failureCode')} {failure.get('failureReason')}"
            )
        return result

    def delete_tags(self, repository_name: str, tags: List[str]) -> BatchDeleteResult:
        """Delete ``tags`` from one repository, batch by batch, in the given order."""
        result = BatchDeleteResult()
        if not tags:
            return result

        print(f"  {repository_name} - deleting {len(tags)} tags...")
        for batch in chunked(tags, self.batch_size):
            print(f"    deleting batch of {len(batch)} tags...")
            result.merge(self._delete_batch(repository_name, batch))
        return result

    def delete_unused(self, unused: UnusedImages) -> BatchDeleteResult:
        """Delete every unused tag in every repository.

        Errors never stop the sweep; they are collected on the returned result.
        Use :func:`raise_for_errors` to turn them into a :class:`DeletionError`.
        """
        total = BatchDeleteResult()
        for repository_name in unused.repository_names:
            total.merge(self.delete_tags(repository_name, unused.tags_for(repository_name)))
        logger.info(
            f"Deletion finished: {total.deleted} deleted in {total.batches} batches, "
            f"{len(total.errors)} failed batches, {total.failed_images} failed images"
        )
        return total


def raise_for_errors(result: BatchDeleteResult) -> None:
    """Raise a DeletionError carrying every batch error, if there were any."""
    if result.errors:
        raise DeletionError(result.errors)
