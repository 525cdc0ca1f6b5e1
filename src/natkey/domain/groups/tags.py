"""Invalidation tags for user groups."""

from __future__ import annotations

from natkey.finder.coordinator import CacheCoordinator
from natkey.finder.invalidation import EntityTags, TagInvalidator

GROUP_TAGS = EntityTags("group_id")
GROUP_NEW_TAG = GROUP_TAGS.new


def group_tag(group_id: int) -> str:
    return GROUP_TAGS.entity(group_id)


class GroupInvalidator(TagInvalidator):
    """Tag invalidation for user group writers."""

    def __init__(self, cache: CacheCoordinator):
        super().__init__(cache, GROUP_TAGS)


__all__ = [
    "GROUP_TAGS",
    "GROUP_NEW_TAG",
    "group_tag",
    "GroupInvalidator",
]
