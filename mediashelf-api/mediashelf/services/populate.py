# mediashelf/services/populate.py
# Lazy completion of width/height/size for items the index left blank.
#
# Size is looked up through an ordered list of strategies (first positive
# answer wins); dimensions come from one probe call. Any OSError while
# resolving an item leaves that item exactly as it was.
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from mediashelf.schemas.media import MediaItem
from mediashelf.services.probes import GenericResourceProbe, LocalAuthorityResolver, PermissionChecker

LOGGER = logging.getLogger("mediashelf.populate")

SizeStrategy = Callable[[str], Optional[int]]


def first_known_size(strategies: Sequence[SizeStrategy], locator: str) -> Optional[int]:
    for strategy in strategies:
        size = strategy(locator)
        if size is not None and size > 0:
            return size
    return None


class MetadataCompleter:
    def __init__(self,
                 authority: LocalAuthorityResolver,
                 probe: GenericResourceProbe,
                 permissions: Optional[PermissionChecker] = None) -> None:
        self.authority = authority
        self.probe = probe
        self.permissions = permissions

    def size_strategies(self, locator: str) -> List[SizeStrategy]:
        """Local blobs ask the authority first; everything else asks the metadata query."""
        if self.authority.is_local(locator):
            return [self.authority.size_of, self.probe.resource_size]
        return [self.probe.metadata_query, self.probe.resource_size]

    def populate(self, items: Sequence[MediaItem]) -> Sequence[MediaItem]:
        """Same order and length; unresolvable items come back untouched."""
        if all(item.is_populated for item in items):
            return items
        if self.permissions is not None and not self.permissions.has_read_access():
            return items
        return [self.populate_one(item) for item in items]

    def populate_one(self, item: MediaItem) -> MediaItem:
        if item.is_populated:
            return item
        try:
            return self._resolve(item)
        except OSError as e:
            LOGGER.warning("Could not populate %s: %s", item.location, e)
            return item

    def _resolve(self, item: MediaItem) -> MediaItem:
        width, height, size = item.width, item.height, item.size

        if size <= 0:
            size = first_known_size(self.size_strategies(item.location), item.location) or size

        if width <= 0 or height <= 0:
            width, height = self.probe.dimensions_of(item.mime_type, item.location)

        return item.model_copy(update={"width": width, "height": height, "size": size})
