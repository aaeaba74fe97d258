"""
Reconciliation of the registry inventory against image usage.

An image is in use only when its full URI appears verbatim in the usage set.
There is no case folding and no tag/digest normalisation: a workload that
pins ``repo@sha256:...`` does not protect ``repo:tag``.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from ecr_cleaner.models import Image, InUseImage


@dataclass
class UnusedImages:
    """Unused images grouped by repository name, in registry listing order"""

    by_repository: Dict[str, List[Image]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(len(images) for images in self.by_repository.values())

    @property
    def repository_names(self) -> List[str]:
        """Repositories with at least one unused image, in order of first appearance."""
        return list(self.by_repository)

    def tags_for(self, repository_name: str) -> List[str]:
        return [image.tag for image in self.by_repository.get(repository_name, [])]

    def images(self) -> List[Image]:
        return [image for images in self.by_repository.values() for image in images]


def build_usage_set(*sources: Iterable[InUseImage]) -> Set[str]:
    """Union the image references from every usage source."""
    usage: Set[str] = set()
    for source in sources:
        usage.update(ref.image for ref in source)
    return usage


def find_unused_images(images: Iterable[Image], usage: Set[str]) -> UnusedImages:
    """Group every image whose URI is not in ``usage`` by its repository."""
    unused = UnusedImages()
    for image in images:
        if image.uri in usage:
            continue
        unused.by_repository.setdefault(image.repository.name, []).append(image)
    return unused
