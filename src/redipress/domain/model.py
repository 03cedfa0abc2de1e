"""Domain model - the content records mirrored into the search index.

The pipeline never owns these objects. A content store hands them over, the
converter reads them, and nothing writes them back. They are immutable
Pydantic dataclasses so that malformed input is rejected at construction
while the conversion step itself stays free of validation logic.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any

from pydantic import Field
from pydantic.dataclasses import dataclass


PUBLISHED_STATUS = "publish"
REVISION_POST_TYPE = "revision"


@dataclass(frozen=True)
class Author:
    """Value object for the user record an entity points at."""

    id: int
    display_name: str = ""
    user_login: str = ""
    user_nicename: str = ""
    user_email: str = ""
    first_name: str = ""
    last_name: str = ""
    meta: dict[str, Any] = Field(default_factory=dict)

    def get(self, field_name: str) -> Any:
        """Read an attribute by name, falling back to user meta."""
        if field_name in self.__dataclass_fields__ and field_name != "meta":
            return getattr(self, field_name)
        return self.meta.get(field_name)


@dataclass(frozen=True)
class ContentEntity:
    """A post-like record from the content store.

    ``id`` is optional here so that incomplete records can still be
    enumerated; conversion refuses entities without one.
    """

    id: int | None = None
    title: str = ""
    content: str = ""
    excerpt: str = ""
    author_id: int = 0
    status: str = "draft"
    post_type: str = "post"
    menu_order: int = 0
    post_date: datetime | str | None = None
    permalink: str = ""
    parent_id: int = 0
    autosave: bool = False
    meta: dict[str, Any] = Field(default_factory=dict)
    terms: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def is_revision(self) -> bool:
        """True for revisions and autosaves, which never reach the index."""
        return self.autosave or self.post_type == REVISION_POST_TYPE

    @property
    def is_published(self) -> bool:
        return self.status == PUBLISHED_STATUS

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
