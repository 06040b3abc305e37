"""Domain models for the search pipeline.

Following Cosmic Python principles:
- Value Objects are immutable (frozen=True)
- Domain logic lives in domain layer
- No infrastructure dependencies

Documents are opaque to these models. The pipeline never inspects their
fields, it only carries them alongside scores, modes and summaries.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_serializer, field_validator, model_validator


DEFAULT_MAX_RESULTS = 15

V = TypeVar("V")


class SearchMode(str, Enum):
    """Intent of a query: exact lookup, topic search or guided browse."""

    SPECIFIC = "specific"
    VAGUE = "vague"
    EXPLORATORY = "exploratory"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        return _MODE_DESCRIPTIONS[self]

    @classmethod
    def from_string(cls, value: str | None) -> SearchMode:
        """Parse a mode from external text such as a CLI flag or tool argument.

        Accepts the display name or the enum name, case-insensitively.

        Raises:
            ValueError: If the value is blank or names no known mode.
        """
        if value is None or not value.strip():
            raise ValueError("Search mode must not be blank")

        normalized = value.strip().lower()
        for mode in cls:
            if normalized in (mode.value, mode.name.lower()):
                return mode

        valid = ", ".join(mode.value for mode in cls)
        raise ValueError(f"Unknown search mode: '{value}'. Valid values: {valid}")


_MODE_DESCRIPTIONS: dict[SearchMode, str] = {
    SearchMode.SPECIFIC: "Exact match: the user knows exactly what they want",
    SearchMode.VAGUE: "Topic match: the user knows the area but not the resource",
    SearchMode.EXPLORATORY: "Explore: the user wants guidance and curated recommendations",
}


class SearchContext(BaseModel):
    """Value object capturing one query request.

    The raw input is normalized (trimmed, lower-cased) once at construction so
    every pipeline stage observes identical text.
    """

    model_config = ConfigDict(frozen=True)

    raw_input: str
    forced_mode: SearchMode | None = None
    filters: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
    max_results: int = DEFAULT_MAX_RESULTS

    _normalized_input: str = PrivateAttr(default="")

    @field_validator("max_results")
    @classmethod
    def _check_max_results(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"max_results must be >= 1, got {value}")
        return value

    @field_validator("filters")
    @classmethod
    def _freeze_filters(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("filters")
    def _dump_filters(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)

    def model_post_init(self, context: Any, /) -> None:
        self._normalized_input = self.raw_input.strip().lower()

    @classmethod
    def of(
        cls,
        raw_input: str,
        forced_mode: SearchMode | None = None,
        max_results: int | None = None,
        filters: dict[str, Any] | None = None,
    ) -> SearchContext:
        """Build a context, falling back to the default cap when none is given."""
        return cls(
            raw_input=raw_input,
            forced_mode=forced_mode,
            filters=filters or {},
            max_results=DEFAULT_MAX_RESULTS if max_results is None else max_results,
        )

    @property
    def normalized_input(self) -> str:
        return self._normalized_input

    @property
    def words(self) -> list[str]:
        return self._normalized_input.split()

    @property
    def has_forced_mode(self) -> bool:
        return self.forced_mode is not None

    def get_filter(self, key: str, expected_type: type[V]) -> V | None:
        """Return the filter value for ``key`` if it has the expected type, else None."""
        value = self.filters.get(key)
        return value if isinstance(value, expected_type) else None

    def with_filters(self, **extra: Any) -> SearchContext:
        """Return a copy with additional filter parameters merged in."""
        return type(self)(
            raw_input=self.raw_input,
            forced_mode=self.forced_mode,
            filters={**self.filters, **extra},
            max_results=self.max_results,
        )


class ScoreBreakdown(BaseModel):
    """Value object explaining how a score was assembled.

    Components keep insertion order so explanations read in scoring order.
    """

    model_config = ConfigDict(frozen=True)

    components: dict[str, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.components.values())

    def get(self, name: str) -> int:
        return self.components.get(name, 0)

    @classmethod
    def builder(cls) -> ScoreBreakdownBuilder:
        return ScoreBreakdownBuilder()

    def __str__(self) -> str:
        parts = " ".join(f"{name}={points}" for name, points in self.components.items())
        return f"ScoreBreakdown(total={self.total}: {parts})"


class ScoreBreakdownBuilder:
    """Accumulates named score components; zero-point entries are skipped."""

    def __init__(self) -> None:
        self._components: dict[str, int] = {}

    def add(self, name: str, points: int) -> ScoreBreakdownBuilder:
        if points:
            self._components[name] = self._components.get(name, 0) + points
        return self

    @property
    def current_total(self) -> int:
        return sum(self._components.values())

    def build(self) -> ScoreBreakdown:
        return ScoreBreakdown(components=dict(self._components))


class ScoredItem(BaseModel):
    """A document paired with its relevance score (never negative)."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    document: Any
    score: int = 0
    breakdown: ScoreBreakdown | None = None

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, value: int) -> int:
        return max(0, value)

    @property
    def has_score(self) -> bool:
        return self.score > 0

    @property
    def has_breakdown(self) -> bool:
        return self.breakdown is not None

    def with_boost(self, boost: int) -> ScoredItem:
        """Return a copy with ``boost`` added to the score, floored at zero."""
        return self.model_copy(update={"score": max(0, self.score + boost)})


class SearchResult(BaseModel):
    """Value object for a complete search response.

    Suggestions are only carried by empty results; a populated result never
    has them.
    """

    model_config = ConfigDict(frozen=True)

    mode: SearchMode
    items: list[ScoredItem] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    summary: str = ""

    @model_validator(mode="after")
    def _check_suggestions(self) -> SearchResult:
        if self.items and self.suggestions:
            raise ValueError("suggestions are only allowed on empty results")
        return self

    @classmethod
    def empty(cls, mode: SearchMode, summary: str) -> SearchResult:
        return cls(mode=mode, summary=summary)

    @classmethod
    def empty_with_suggestions(cls, mode: SearchMode, summary: str, suggestions: list[str]) -> SearchResult:
        return cls(mode=mode, suggestions=list(suggestions), summary=summary)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def top_score(self) -> int:
        return max((item.score for item in self.items), default=0)

    @property
    def documents(self) -> list[Any]:
        return [item.document for item in self.items]
