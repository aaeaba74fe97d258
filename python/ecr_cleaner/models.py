"""Records produced by the inventory collectors."""

from dataclasses import dataclass

SOURCE_ECS = "ECS"
SOURCE_LAMBDA = "Lambda"


@dataclass(frozen=True)
class Repository:
    """An ECR repository"""

    name: str
    uri: str


@dataclass(frozen=True)
class Image:
    """One tag inside one repository; ``uri`` is the key matched against usage"""

    repository: Repository
    uri: str
    tag: str


@dataclass(frozen=True)
class InUseImage:
    """An image reference found in a workload.

    ``label`` names where it was found (container or function name) and is
    only printed; matching uses ``image`` alone.
    """

    label: str
    image: str
    source: str
