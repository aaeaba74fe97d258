"""Unit tests for ecr_cleaner/function_usage.py"""

import pytest

from ecr_cleaner.error_utils import CleanerError
from ecr_cleaner.function_usage import get_in_use_images_lambda
from ecr_cleaner.models import SOURCE_LAMBDA, InUseImage


def _function(name, package_type):
    return {"FunctionName": name, "PackageType": package_type}


class TestGetInUseImagesLambda:
    """Tests for get_in_use_images_lambda"""

    def test_only_image_functions_are_fetched(self, make_client):
        lambda_client = make_client(
            {"list_functions": [
                {"Functions": [_function("zip-fn", "Zip"), _function("img-fn", "Image")]},
                {"Functions": [_function("other-img", "Image")]},
            ]},
            get_function=lambda FunctionName: {"Code": {
                "ImageUri": f"repo/{FunctionName}:v1",
                "ResolvedImageUri": f"repo/{FunctionName}@sha256:abc",
            }},
        )

        assert get_in_use_images_lambda(lambda_client) == [
            InUseImage("img-fn", "repo/img-fn:v1", SOURCE_LAMBDA),
            InUseImage("other-img", "repo/other-img:v1", SOURCE_LAMBDA),
        ]
        fetched = [c.kwargs["FunctionName"] for c in lambda_client.get_function.call_args_list]
        assert fetched == ["img-fn", "other-img"]

    def test_functions_without_package_type_are_skipped(self, make_client):
        lambda_client = make_client({"list_functions": [{"Functions": [{"FunctionName": "legacy"}]}]})

        assert get_in_use_images_lambda(lambda_client) == []
        lambda_client.get_function.assert_not_called()

    def test_detail_failure_is_fatal(self, make_client, client_error):
        lambda_client = make_client(
            {"list_functions": [{"Functions": [_function("broken", "Image")]}]},
            get_function=client_error("ResourceNotFoundException", "GetFunction"),
        )

        with pytest.raises(CleanerError, match="failed to get function details for broken"):
            get_in_use_images_lambda(lambda_client)

    def test_listing_failure_is_fatal(self, make_client, client_error):
        lambda_client = make_client({"list_functions": [client_error("TooManyRequestsException")]})

        with pytest.raises(CleanerError, match="failed to list functions"):
            get_in_use_images_lambda(lambda_client)
