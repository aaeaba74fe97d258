"""
Pytest configuration file.

Sets up the Python path so test files can import from the python/ directory,
and provides fake boto3 clients whose paginators return scripted pages.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

# Add python directory to path for all tests
_python_dir = Path(__file__).parent.parent / 'python'
_python_dir_abs = str(_python_dir.absolute())
if _python_dir_abs not in sys.path:
    sys.path.insert(0, _python_dir_abs)


def _make_client(pages=None, **methods):
    """Build a MagicMock boto3 client.

    ``pages`` maps an operation name to either a list of pages or a callable
    taking the paginate() kwargs and returning one. A page that is an
    exception is raised when the paginator reaches it.
    """
    pages = pages or {}
    client = MagicMock()

    def get_paginator(operation):
        def paginate(**params):
            source = pages.get(operation, [])
            for page in (source(**params) if callable(source) else source):
                if isinstance(page, BaseException):
                    raise page
                yield page

        paginator = MagicMock()
        paginator.paginate.side_effect = paginate
        return paginator

    client.get_paginator.side_effect = get_paginator
    for name, behaviour in methods.items():
        getattr(client, name).side_effect = behaviour
    return client


def _client_error(code="AccessDeniedException", operation="ListImages", message="denied"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


@pytest.fixture
def make_client():
    return _make_client


@pytest.fixture
def client_error():
    return _client_error
