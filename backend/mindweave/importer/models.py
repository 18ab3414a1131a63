"""Canonical representation for imported content.

Every format-specific parser converges on ParsedItem, and every parse
produces exactly one ParseResult. Both are frozen once built; the
ParseAccumulator is the only thing that constructs a successful result.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ItemType(StrEnum):
    NOTE = "note"
    LINK = "link"


class ParsedItem(BaseModel):
    """A single normalized record ready for bulk creation."""

    model_config = ConfigDict(frozen=True)

    title: str
    type: ItemType
    url: str | None = None
    body: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _link_requires_url(self) -> "ParsedItem":
        if self.type == ItemType.LINK and not self.url:
            raise ValueError("link items require a url")
        if len(set(self.tags)) != len(self.tags):
            raise ValueError("tags must not contain duplicates")
        return self


class ParseError(BaseModel):
    """A record that was skipped. `item` is a label, not a stable index."""

    model_config = ConfigDict(frozen=True)

    item: str | None = None
    message: str


class ParseStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    parsed: int = 0
    skipped: int = 0


class ParseResult(BaseModel):
    """Outcome of parsing one upload.

    success is False only when the file as a whole could not be parsed;
    a successful result may still carry errors and warnings for skipped
    records.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    items: list[ParsedItem] = Field(default_factory=list)
    errors: list[ParseError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    stats: ParseStats = Field(default_factory=ParseStats)

    @model_validator(mode="after")
    def _stats_consistent(self) -> "ParseResult":
        if self.stats.parsed != len(self.items):
            raise ValueError(
                f"stats.parsed ({self.stats.parsed}) != len(items) ({len(self.items)})"
            )
        if self.stats.skipped != self.stats.total - self.stats.parsed:
            raise ValueError("stats.skipped must equal stats.total - stats.parsed")
        return self

    @classmethod
    def failure(cls, message: str) -> "ParseResult":
        """Result for a file that could not be parsed at all."""
        return cls(success=False, errors=[ParseError(message=message)])
