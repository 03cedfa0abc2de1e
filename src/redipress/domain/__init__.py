"""Domain layer - content records with no infrastructure dependencies."""

from redipress.domain.model import PUBLISHED_STATUS, REVISION_POST_TYPE, Author, ContentEntity


__all__ = [
    "PUBLISHED_STATUS",
    "REVISION_POST_TYPE",
    "Author",
    "ContentEntity",
]
