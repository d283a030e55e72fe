"""
TogetherLog Backend - ORM Models
=================================

Importing this package registers every table with `Base.metadata`
(used by Alembic autogenerate and by the relationship string lookups).
"""

from togetherlog.models.tag import Tag, entry_tags
from togetherlog.models.log import LOG_TYPES, Log
from togetherlog.models.photo import Photo
from togetherlog.models.entry import Entry

__all__ = ["Entry", "Log", "LOG_TYPES", "Photo", "Tag", "entry_tags"]
