"""Domain model for documentation pages served by the documentation engine.

The generic pipeline treats documents as opaque values; this module defines
the concrete page type the bundled documentation engine indexes. Extractor
helpers live next to the type so scorers and rankers never reach into fields
directly.
"""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import Field
from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class DocPage:
    """Value object representing one documentation page.

    Immutable - replacing a page means upserting a new value under its URL.
    """

    url: Annotated[str, Field(min_length=1)]
    title: str
    content: str = ""
    tags: tuple[str, ...] = ()
    category: str | None = None
    official: bool = False
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Normalize naive timestamps to UTC so age arithmetic stays consistent."""
        if self.updated_at is not None and self.updated_at.tzinfo is None:
            object.__setattr__(self, "updated_at", self.updated_at.replace(tzinfo=timezone.utc))

    @property
    def searchable_text(self) -> str:
        return " ".join([self.title, self.content, *self.tags])


def page_title(page: DocPage) -> str:
    return page.title


def page_content(page: DocPage) -> str:
    return page.content


def page_tags(page: DocPage) -> tuple[str, ...]:
    return page.tags


def page_searchable_text(page: DocPage) -> str:
    return page.searchable_text


def page_updated_at(page: DocPage) -> datetime | None:
    return page.updated_at
