"""
User groups domain.
"""

from natkey.domain.groups.finder import GroupFinder
from natkey.domain.groups.source import GroupIndex, GroupSource, apply_group_schema
from natkey.domain.groups.tags import GROUP_NEW_TAG, GroupInvalidator, group_tag

__all__ = [
    "GroupFinder",
    "GroupIndex",
    "GroupSource",
    "apply_group_schema",
    "GroupInvalidator",
    "group_tag",
    "GROUP_NEW_TAG",
]
