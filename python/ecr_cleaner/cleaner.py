"""
Find ECR image tags that no ECS task or Lambda function references, and
optionally delete them.

The run has two phases:

1. Collect: the registry inventory, ECS usage and Lambda usage are gathered
   concurrently, each on its own thread with its own client. If any of the
   three fails, every failure is reported together and nothing else happens.
2. Report & act: in-use and unused images are printed; unless this is a dry
   run, the unused tags are deleted.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from tabulate import tabulate

from ecr_cleaner.config_manager import config_manager
from ecr_cleaner.deletion import BatchDeleter, raise_for_errors
from ecr_cleaner.error_utils import CleanerError, CollectionError
from ecr_cleaner.function_usage import get_in_use_images_lambda
from ecr_cleaner.logging_utils import get_logger
from ecr_cleaner.models import Image, InUseImage
from ecr_cleaner.orchestrator_usage import get_in_use_images_ecs
from ecr_cleaner.pagination import chunked
from ecr_cleaner.reconcile import UnusedImages, build_usage_set, find_unused_images
from ecr_cleaner.registry_inventory import get_all_images

logger = get_logger(__name__)

ClientFactory = Callable[[str], object]


@dataclass
class Inventories:
    """Results of the collect phase"""

    images: List[Image]
    ecs_images: List[InUseImage]
    lambda_images: List[InUseImage]


@dataclass
class CleanupResult:
    """Summary of a run"""

    unused: UnusedImages
    dry_run: bool
    deleted: int = 0

    @property
    def unused_count(self) -> int:
        return self.unused.total


def _run_collector(description: str, collector: Callable[[], list]) -> list:
    try:
        return collector()
    except CleanerError as e:
        raise CleanerError(description, e) from e
    except (ClientError, BotoCoreError) as e:
        # client construction errors (missing profile, region, credentials)
        raise CleanerError(description, e) from e


def collect_inventories(client_factory: ClientFactory, usage_source: str) -> Inventories:
    """Gather the three inventories concurrently and wait for all of them.

    Raises:
        CollectionError: if one or more collectors failed; carries every failure
    """
    collectors = {
        "images": ("failed to get registry images",
                   lambda: get_all_images(client_factory("ecr"))),
        "ecs_images": ("failed to get images in use by ECS",
                       lambda: get_in_use_images_ecs(client_factory("ecs"), usage_source)),
        "lambda_images": ("failed to get images in use by Lambda",
                          lambda: get_in_use_images_lambda(client_factory("lambda"))),
    }

    with ThreadPoolExecutor(max_workers=len(collectors)) as executor:
        futures = {
            slot: executor.submit(_run_collector, description, collector)
            for slot, (description, collector) in collectors.items()
        }

    results = {}
    errors = []
    for slot, future in futures.items():
        try:
            results[slot] = future.result()
        except CleanerError as e:
            errors.append(e)
    if errors:
        raise CollectionError(errors)

    return Inventories(**results)


def print_in_use(inventories: Inventories) -> None:
    print("Images in use (ECS):")
    for ref in inventories.ecs_images:
        print(f"  {ref.label} {ref.image}")
    print("Images in use (Lambda):")
    for ref in inventories.lambda_images:
        print(f"  {ref.label} {ref.image}")


def print_unused(unused: UnusedImages, batch_size: int) -> None:
    print("Images that aren't used in ECS or Lambda:")
    for image in unused.images():
        print(f"  {image.uri}")

    if not unused.total:
        return
    rows = [
        [name, len(images), len(list(chunked(images, batch_size)))]
        for name, images in unused.by_repository.items()
    ]
    rows.append(["TOTAL", unused.total, sum(row[2] for row in rows)])
    print()
    print(tabulate(rows, headers=["Repository", "Unused tags", "Delete batches"], tablefmt="simple"))


def run_cleanup(
    dry_run: bool = True,
    client_factory: Optional[ClientFactory] = None,
    usage_source: Optional[str] = None,
    batch_size: Optional[int] = None,
) -> CleanupResult:
    """Collect, reconcile, report and (unless ``dry_run``) delete unused image tags.

    Args:
        dry_run: When True no deletion call is made
        client_factory: Returns a boto3 client for a service name (default: config_manager.get_client)
        usage_source: ECS usage strategy (default: from config)
        batch_size: Tags per BatchDeleteImage call (default: from config)

    Raises:
        CollectionError: if any collector failed; nothing is reported or deleted
        DeletionError: if any delete batch failed; raised after the whole sweep
    """
    client_factory = client_factory or config_manager.get_client
    usage_source = usage_source or config_manager.get_ecs_usage_source()
    batch_size = batch_size or config_manager.get_delete_batch_size()

    logger.info(f"Collecting inventories (ECS usage from {usage_source}, dry run: {dry_run})")
    inventories = collect_inventories(client_factory, usage_source)

    print_in_use(inventories)
    usage = build_usage_set(inventories.ecs_images, inventories.lambda_images)
    unused = find_unused_images(inventories.images, usage)
    print_unused(unused, batch_size)

    result = CleanupResult(unused=unused, dry_run=dry_run)
    if dry_run:
        logger.info(f"Dry run: {unused.total} unused images would be deleted")
    elif not unused.total:
        print("No unused images to delete.")
    else:
        print(f"Deleting {unused.total} unused images...")
        deleter = BatchDeleter(client_factory("ecr"), batch_size=batch_size)
        outcome = deleter.delete_unused(unused)
        result.deleted = outcome.deleted
        print(f"Deleted {outcome.deleted} unused images.")
        raise_for_errors(outcome)

    print()
    return result
