"""Images referenced by container-packaged Lambda functions."""

from typing import List

from botocore.exceptions import BotoCoreError, ClientError

from ecr_cleaner.error_utils import CleanerError
from ecr_cleaner.logging_utils import get_logger
from ecr_cleaner.models import SOURCE_LAMBDA, InUseImage
from ecr_cleaner.pagination import paginate_all

logger = get_logger(__name__)

PACKAGE_TYPE_IMAGE = "Image"


def get_in_use_images_lambda(lambda_client) -> List[InUseImage]:
    """List functions, keep those packaged as images, and read each one's image URI.

    ``Code.ImageUri`` is used rather than ``Code.ResolvedImageUri``: the former
    keeps the tag form the function was deployed with, the latter is always a
    digest and would never match a registry tag.

    Raises:
        CleanerError: if listing fails or any single function lookup fails
    """
    functions = paginate_all(lambda_client, "list_functions", "Functions", "functions")

    images: List[InUseImage] = []
    for function in functions:
        if function.get("PackageType") != PACKAGE_TYPE_IMAGE:
            continue
        name = function["FunctionName"]
        try:
            details = lambda_client.get_function(FunctionName=name)
        except (ClientError, BotoCoreError) as e:
            raise CleanerError(f"failed to get function details for {name}", e) from e
        images.append(InUseImage(label=name, image=details["Code"]["ImageUri"], source=SOURCE_LAMBDA))

    logger.info(f"Found {len(images)} image-based functions out of {len(functions)}")
    return images
