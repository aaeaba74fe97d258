"""Helpers for draining boto3 paginators and splitting work into batches."""

from typing import Any, Iterator, List, Sequence, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from ecr_cleaner.error_utils import CleanerError
from ecr_cleaner.logging_utils import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def paginate_all(client, operation: str, result_key: str, resource_kind: str, **params) -> List[Any]:
    """Fetch every page of ``operation`` and return the records in page order.

    Args:
        client: boto3 client exposing ``get_paginator``
        operation: Paginated API operation, e.g. ``"describe_repositories"``
        result_key: Key holding the records in each page, e.g. ``"repositories"``
        resource_kind: Human readable name used in the error message
        **params: Arguments passed to every page request

    Raises:
        CleanerError: ``"failed to list <resource_kind>"`` on the first failed page.
            Records from earlier pages are discarded.
    """
    results: List[Any] = []
    pages = 0
    try:
        for page in client.get_paginator(operation).paginate(**params):
            pages += 1
            results.extend(page.get(result_key, []))
    except (ClientError, BotoCoreError) as e:
        raise CleanerError(f"failed to list {resource_kind}", e) from e
    logger.debug(f"Listed {len(results)} {resource_kind} in {pages} page(s)")
    return results


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` entries."""
    if size < 1:
        raise ValueError(f"batch size must be at least 1, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])
